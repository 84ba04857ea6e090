"""Token vault port - opaque secure key-value store for service tokens."""

from abc import ABC, abstractmethod


class ITokenVault(ABC):
    """Secure token storage keyed by service id.

    Hey future me - the core NEVER knows how tokens are stored (keychain,
    encrypted prefs, a dict in tests). It only reads/writes through this port.
    Entries belong to the service registered under that id; the recommendation
    engine must never touch them.

    All methods are async because real secure stores are.
    """

    @abstractmethod
    async def get_token(self, service_id: str) -> str | None:
        """Get the access token for a service (None if absent)."""
        ...

    @abstractmethod
    async def set_token(self, service_id: str, value: str) -> None:
        """Store the access token for a service."""
        ...

    @abstractmethod
    async def delete_token(self, service_id: str) -> None:
        """Delete the access token for a service (no-op if absent)."""
        ...

    @abstractmethod
    async def get_refresh_token(self, service_id: str) -> str | None:
        """Get the refresh token for a service (None if absent)."""
        ...

    @abstractmethod
    async def set_refresh_token(self, service_id: str, value: str) -> None:
        """Store the refresh token for a service."""
        ...

    @abstractmethod
    async def delete_refresh_token(self, service_id: str) -> None:
        """Delete the refresh token for a service (no-op if absent)."""
        ...
