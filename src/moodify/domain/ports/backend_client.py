"""Backend client port - the opaque network capability behind each adapter.

Hey future me - the core does NOT own any backend REST client! Whatever talks
HTTP to Spotify/YouTube lives outside and plugs in here. The adapters wrap every
call with the timeout/error policy, so implementations can simply raise.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from moodify.domain.dtos import MediaItem, PlaybackSnapshot, RecommendationContext, TokenResult


@runtime_checkable
class IBackendClient(Protocol):
    """Network capability of one backend."""

    async def fetch_candidates(
        self, access_token: str, context: RecommendationContext
    ) -> list[MediaItem]:
        """Fetch recommendation candidates for the given context."""
        ...

    async def trigger_playback(self, access_token: str, item_id: str) -> None:
        """Start playback of an item."""
        ...

    async def get_playback_state(self, access_token: str) -> PlaybackSnapshot | None:
        """Read live playback state (None if nothing is playing)."""
        ...


# The OAuth dance (browser redirect, PKCE, callback screen) happens in the UI shell.
# It hands the core a coroutine that resolves once the user is done - or None if they bailed.
Authorizer = Callable[[], Awaitable[TokenResult | None]]
