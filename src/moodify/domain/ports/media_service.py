"""
Media Service Interface for moodify.

Hey future me - this is the HEART of the multi-backend architecture!
Every backend (Spotify, YouTube, ...) implements IMediaService and gets
registered in the ServiceRegistry. The engine and the poller only ever
talk to this interface.

Why a shared interface?
1. Engine/poller work with any backend (dependency injection)
2. New backend = new adapter, nothing else changes
3. Uniform error handling through MediaServiceError
4. Testing: fake services are trivial

Rules for adapters:
1. __init__ must be lightweight (no network calls)
2. is_connected() NEVER raises - a broken vault means "not connected"
3. disconnect() is idempotent
4. Wrap backend exceptions in MediaServiceError before they leave the adapter
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum

from moodify.domain.dtos import MediaItem, PlaybackSnapshot, RecommendationContext
from moodify.domain.entities.error_codes import (
    ServiceErrorCode,
    get_user_message,
    is_retryable_error,
)


class ServiceType(StrEnum):
    """Kind of backend a service talks to."""

    MUSIC = "music"
    VIDEO = "video"
    SOCIAL = "social"


# Hey future me - MediaServiceError is THE exception for all backend failures!
# Wrap service-specific exceptions (httpx errors, SDK errors, timeouts) in it.
# Callers (UI, engine) then only need one except clause.
@dataclass
class MediaServiceError(Exception):
    """
    Unified error class for all media service operations.

    All backend-specific exceptions should be wrapped in MediaServiceError.
    """

    message: str
    service_id: str
    error_code: str | None = None  # ServiceErrorCode value
    original_error: Exception | None = None  # Wrapped original exception
    service_name: str | None = None  # Display name for user messages

    def __str__(self) -> str:
        """Return human-readable error message."""
        base = f"[{self.service_id}] {self.message}"
        if self.error_code:
            base = f"{base} (code: {self.error_code})"
        return base

    @property
    def recoverable(self) -> bool:
        """Can the next natural cycle (poll tick, user tap) succeed?"""
        return is_retryable_error(self.error_code)

    @property
    def user_message(self) -> str:
        """Friendly text for the UI - never the raw error."""
        return get_user_message(self.error_code, self.service_name or self.service_id)

    @classmethod
    def timeout(
        cls,
        service_id: str,
        operation: str,
        seconds: float,
        service_name: str | None = None,
    ) -> "MediaServiceError":
        """Build the error for a call that exceeded the network timeout."""
        return cls(
            message=f"{operation} timed out after {seconds:.1f}s",
            service_id=service_id,
            error_code=ServiceErrorCode.TIMEOUT,
            service_name=service_name,
        )


class IMediaService(ABC):
    """
    Abstract base class for all media service adapters.

    Hey future me - the five abstract methods are the WHOLE contract!
    get_playback_state() is optional: the default says "I can't tell",
    and the poller then falls back to local elapsed time.
    """

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Stable registry key, e.g. "spotify"."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name, e.g. "Spotify"."""
        ...

    @property
    @abstractmethod
    def service_type(self) -> ServiceType:
        """Kind of backend (music/video/social)."""
        ...

    @abstractmethod
    async def is_connected(self) -> bool:
        """
        Check whether a valid token for this service exists.

        Must not raise: vault failures count as "not connected".
        """
        ...

    @abstractmethod
    async def connect(self) -> bool:
        """
        Initiate or complete backend authorization.

        May suspend for a long time (user interaction, browser redirect).

        Returns:
            Whether the service is connected when the call returns

        Raises:
            MediaServiceError: If the authorization round trip fails
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Clear this service's tokens. Idempotent."""
        ...

    @abstractmethod
    async def get_recommendations(self, context: RecommendationContext) -> list[MediaItem]:
        """
        Ask the backend for recommendations.

        Returns:
            Candidate items, possibly empty when the backend has no signal

        Raises:
            MediaServiceError: On backend failure
        """
        ...

    @abstractmethod
    async def play(self, item_id: str) -> None:
        """
        Trigger playback (best effort).

        Raises:
            MediaServiceError: If the backend is unreachable or the item is unknown
        """
        ...

    async def get_playback_state(self) -> PlaybackSnapshot | None:
        """
        Report live playback state, if the backend supports it.

        Returns:
            Current snapshot, or None if unknown/unsupported
        """
        return None


__all__ = [
    "IMediaService",
    "MediaServiceError",
    "ServiceType",
]
