"""
Token-backed media service base.

Hey future me - Spotify and YouTube behave the same way towards the core:
tokens live in the vault, network calls go through an injected backend client,
every backend failure leaves the adapter as a MediaServiceError. That shared
behaviour lives HERE so the concrete adapters only describe themselves.

Architecture:
- IBackendClient: low-level network capability (owned by the host app, returns DTOs)
- TokenBackedService: token handling + error policy (this file)
- SpotifyService / YouTubeService: identity + offline behaviour
"""

import logging

from moodify.domain.dtos import MediaItem, PlaybackSnapshot, RecommendationContext
from moodify.domain.entities.error_codes import ServiceErrorCode
from moodify.domain.ports.backend_client import Authorizer, IBackendClient
from moodify.domain.ports.media_service import IMediaService, MediaServiceError
from moodify.domain.ports.token_vault import ITokenVault

logger = logging.getLogger(__name__)


class TokenBackedService(IMediaService):
    """
    Base adapter whose connection state is "is there a token in the vault".

    Hey future me - __init__ does no I/O! Adapters get built at startup before
    anything is awaited; the vault is only touched when a method runs.
    """

    def __init__(
        self,
        vault: ITokenVault,
        client: IBackendClient | None = None,
        authorizer: Authorizer | None = None,
    ) -> None:
        """
        Initialize adapter.

        Args:
            vault: Token storage shared by all services (keyed by service_id)
            client: Backend network client (None = offline mode)
            authorizer: Coroutine factory running the OAuth dance (None = can't connect)
        """
        self._vault = vault
        self._client = client
        self._authorizer = authorizer

    def set_authorizer(self, authorizer: Authorizer | None) -> None:
        """Swap the authorizer (UI shell installs it once its auth screen exists)."""
        self._authorizer = authorizer

    # =========================================================================
    # CONNECTION
    # =========================================================================

    async def is_connected(self) -> bool:
        """Check for an access token. Never raises."""
        try:
            token = await self._vault.get_token(self.service_id)
        except Exception as e:
            # Broken vault reads as "not connected" - the UI then offers to reconnect
            logger.warning("Token vault read failed for '%s': %s", self.service_id, e)
            return False
        return bool(token)

    # Listen up - the authorizer may take MINUTES (user in a browser tab). We just await
    # it; every other service and the poller keep running in their own tasks meanwhile.
    async def connect(self) -> bool:
        """
        Run authorization unless a token already exists.

        Returns:
            Whether the service is connected when the call returns

        Raises:
            MediaServiceError: If the authorizer or the vault write fails
        """
        if await self.is_connected():
            return True

        if self._authorizer is None:
            logger.info("No authorizer installed for '%s', cannot connect", self.service_id)
            return False

        logger.info("Connecting '%s'...", self.service_id)
        try:
            result = await self._authorizer()
        except MediaServiceError:
            raise
        except Exception as e:
            raise self._wrap_error("Authorization failed", e) from e

        if result is None:
            logger.info("Authorization for '%s' cancelled by user", self.service_id)
            return False

        try:
            await self._vault.set_token(self.service_id, result.access_token)
            if result.refresh_token:
                await self._vault.set_refresh_token(self.service_id, result.refresh_token)
        except Exception as e:
            raise self._wrap_error("Storing tokens failed", e) from e

        logger.info("Connected '%s'", self.service_id)
        return True

    async def disconnect(self) -> None:
        """
        Clear access and refresh token. Idempotent.

        Hey future me - only clears OUR tokens, the backend session stays alive.

        Raises:
            MediaServiceError: If the vault cannot delete
        """
        try:
            await self._vault.delete_token(self.service_id)
            await self._vault.delete_refresh_token(self.service_id)
        except Exception as e:
            raise self._wrap_error("Clearing tokens failed", e) from e
        logger.info("Disconnected '%s'", self.service_id)

    # =========================================================================
    # BACKEND CALLS
    # =========================================================================

    async def get_recommendations(self, context: RecommendationContext) -> list[MediaItem]:
        """Backend recommendations; empty when not connected."""
        if self._client is None:
            return self._offline_recommendations(context)

        token = await self._current_token()
        if token is None:
            return []

        try:
            return await self._client.fetch_candidates(token, context)
        except MediaServiceError:
            raise
        except Exception as e:
            raise self._wrap_error("Failed to fetch recommendations", e) from e

    async def play(self, item_id: str) -> None:
        """
        Trigger playback.

        Raises:
            MediaServiceError: Not connected, unknown item or backend down
        """
        if self._client is None:
            # Offline mode: the host app opens the deep link itself
            logger.info("[%s] Playing: %s", self.display_name, item_id)
            return

        token = await self._current_token()
        if token is None:
            raise MediaServiceError(
                message=f"Not authenticated. Please connect your {self.display_name} account.",
                service_id=self.service_id,
                error_code=ServiceErrorCode.NOT_AUTHENTICATED,
                service_name=self.display_name,
            )

        try:
            await self._client.trigger_playback(token, item_id)
        except MediaServiceError:
            raise
        except Exception as e:
            raise self._wrap_error(f"Failed to play {item_id}", e) from e

    async def get_playback_state(self) -> PlaybackSnapshot | None:
        """Live playback state (None offline or when not connected)."""
        if self._client is None:
            return None

        token = await self._current_token()
        if token is None:
            return None

        try:
            return await self._client.get_playback_state(token)
        except MediaServiceError:
            raise
        except Exception as e:
            raise self._wrap_error("Failed to read playback state", e) from e

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _offline_recommendations(self, context: RecommendationContext) -> list[MediaItem]:
        """Recommendations without a backend client (override per service)."""
        return []

    async def _current_token(self) -> str | None:
        try:
            return await self._vault.get_token(self.service_id)
        except Exception as e:
            raise self._wrap_error("Token vault unavailable", e) from e

    def _wrap_error(self, message: str, error: Exception) -> MediaServiceError:
        """Translate any backend/vault exception into a MediaServiceError."""
        if isinstance(error, TimeoutError):
            code = ServiceErrorCode.TIMEOUT
        elif isinstance(error, OSError):
            code = ServiceErrorCode.NETWORK_ERROR
        else:
            code = ServiceErrorCode.UNKNOWN
        return MediaServiceError(
            message=f"{message}: {error!s}",
            service_id=self.service_id,
            error_code=code,
            original_error=error,
            service_name=self.display_name,
        )


__all__ = ["TokenBackedService"]
