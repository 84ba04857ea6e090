"""In-memory token vault implementation."""

import asyncio

from moodify.domain.ports.token_vault import ITokenVault


class InMemoryTokenVault(ITokenVault):
    """Token vault backed by two dictionaries.

    This is a simple implementation for development and testing. The host app
    plugs in its platform secure store for production.
    """

    # Listen up future me, this is IN-MEMORY ONLY! Process exit = everyone logged out.
    # The _lock matters even in single-threaded asyncio: a subclass that adds real I/O
    # between read and write would otherwise interleave two writers on the same id.
    def __init__(
        self,
        tokens: dict[str, str] | None = None,
        refresh_tokens: dict[str, str] | None = None,
    ) -> None:
        """Initialize vault, optionally pre-seeded (handy in tests)."""
        self._tokens: dict[str, str] = dict(tokens or {})
        self._refresh_tokens: dict[str, str] = dict(refresh_tokens or {})
        self._lock = asyncio.Lock()

    async def get_token(self, service_id: str) -> str | None:
        """Get the access token for a service."""
        async with self._lock:
            return self._tokens.get(service_id)

    async def set_token(self, service_id: str, value: str) -> None:
        """Store the access token for a service."""
        async with self._lock:
            self._tokens[service_id] = value

    async def delete_token(self, service_id: str) -> None:
        """Delete the access token for a service."""
        async with self._lock:
            self._tokens.pop(service_id, None)

    async def get_refresh_token(self, service_id: str) -> str | None:
        """Get the refresh token for a service."""
        async with self._lock:
            return self._refresh_tokens.get(service_id)

    async def set_refresh_token(self, service_id: str, value: str) -> None:
        """Store the refresh token for a service."""
        async with self._lock:
            self._refresh_tokens[service_id] = value

    async def delete_refresh_token(self, service_id: str) -> None:
        """Delete the refresh token for a service."""
        async with self._lock:
            self._refresh_tokens.pop(service_id, None)

    def dump(self) -> dict[str, dict[str, str]]:
        """Copy of the whole vault content.

        Hey future me - ONLY for tests and debugging! Never log the result.
        """
        return {"tokens": dict(self._tokens), "refresh_tokens": dict(self._refresh_tokens)}
