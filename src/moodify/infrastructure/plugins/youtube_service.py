"""
YouTube Service - the video backend adapter.

Hey future me - YouTube has no "now playing" API for our use case, so the
client usually returns None from get_playback_state() and the poller falls back
to local elapsed time. Candidates come back as VIDEO items.
"""

from moodify.domain.ports.media_service import ServiceType
from moodify.infrastructure.plugins.base import TokenBackedService

YOUTUBE_SERVICE_ID = "youtube"


class YouTubeService(TokenBackedService):
    """YouTube adapter (offline mode recommends nothing)."""

    @property
    def service_id(self) -> str:
        """Return YouTube registry key."""
        return YOUTUBE_SERVICE_ID

    @property
    def display_name(self) -> str:
        """Return human-readable service name."""
        return "YouTube"

    @property
    def service_type(self) -> ServiceType:
        """Return video service type."""
        return ServiceType.VIDEO


__all__ = ["YOUTUBE_SERVICE_ID", "YouTubeService"]
