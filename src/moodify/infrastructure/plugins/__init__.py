"""Media service adapters and the service registry."""

from moodify.infrastructure.plugins.base import TokenBackedService
from moodify.infrastructure.plugins.registry import RegistryStore, ServiceRegistry
from moodify.infrastructure.plugins.spotify_service import SpotifyService
from moodify.infrastructure.plugins.youtube_service import YouTubeService

__all__ = [
    "RegistryStore",
    "ServiceRegistry",
    "SpotifyService",
    "TokenBackedService",
    "YouTubeService",
]
