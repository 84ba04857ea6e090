"""
Spotify Service - the music backend adapter.

Hey future me - the REST client is NOT in here! The host app passes an
IBackendClient that talks to api.spotify.com and returns MediaItems. This class
only adds Spotify's identity and the offline fallback list.

Usage:
    spotify = SpotifyService(vault, client=spotify_http_client, authorizer=pkce_flow)
    registry.register(spotify)
"""

import logging

from moodify.config.settings import SpotifySettings
from moodify.domain.dtos import ContentType, MediaItem, RecommendationContext
from moodify.domain.ports.backend_client import Authorizer, IBackendClient
from moodify.domain.ports.media_service import ServiceType
from moodify.domain.ports.token_vault import ITokenVault
from moodify.infrastructure.plugins.base import TokenBackedService

logger = logging.getLogger(__name__)

SPOTIFY_SERVICE_ID = "spotify"


class SpotifyService(TokenBackedService):
    """Spotify adapter."""

    def __init__(
        self,
        vault: ITokenVault,
        client: IBackendClient | None = None,
        authorizer: Authorizer | None = None,
        settings: SpotifySettings | None = None,
    ) -> None:
        """
        Initialize Spotify adapter.

        Args:
            vault: Token storage
            client: Spotify network client (None = offline mode)
            authorizer: PKCE flow run by the UI shell
            settings: Client id and scopes handed to the authorizer
        """
        super().__init__(vault, client=client, authorizer=authorizer)
        self._settings = settings or SpotifySettings()

    @property
    def service_id(self) -> str:
        """Return Spotify registry key."""
        return SPOTIFY_SERVICE_ID

    @property
    def display_name(self) -> str:
        """Return human-readable service name."""
        return "Spotify"

    @property
    def service_type(self) -> ServiceType:
        """Return music service type."""
        return ServiceType.MUSIC

    @property
    def scopes(self) -> list[str]:
        """OAuth scopes the authorizer must request."""
        return list(self._settings.scopes)

    # Hey future me - without a client there's no way to ask Spotify anything, so a
    # fixed calming pick keeps the cold-start screen from being empty.
    def _offline_recommendations(self, context: RecommendationContext) -> list[MediaItem]:
        return [
            MediaItem(
                id="1",
                title="Calming Song",
                artist="Chill Artist",
                uri="spotify:track:12345",
                service_id=SPOTIFY_SERVICE_ID,
                type=ContentType.TRACK,
            )
        ]


__all__ = ["SPOTIFY_SERVICE_ID", "SpotifyService"]
