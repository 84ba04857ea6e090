"""Application lifecycle management for startup and shutdown.

Hey future me - this is where the ONE registry, the ONE graph and the ONE sync
store get built and handed around. Nothing else in the codebase creates them.

    async with lifespan() as core:
        core.sync_store.start("player")
        items = await core.engine.recommend(RecommendationContext(mood="focus"))
        ...
    # poller is force-stopped and awaited here, even on exceptions

The host app (UI shell) owns the OAuth screens and the HTTP clients. It passes
them in through the keyword arguments or installs them later with
core.registry.register(...) / service.set_authorizer(...).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from moodify.application.services.graph_ingestion import GraphIngestionService
from moodify.application.services.media_graph import MediaGraph
from moodify.application.services.recommendation_engine import RecommendationEngine
from moodify.application.workers.session_sync_store import SessionSyncStore
from moodify.config import Settings, get_settings
from moodify.domain.ports.backend_client import IBackendClient
from moodify.domain.ports.token_vault import ITokenVault
from moodify.infrastructure.observability import configure_logging
from moodify.infrastructure.persistence import InMemoryTokenVault
from moodify.infrastructure.plugins import ServiceRegistry, SpotifyService, YouTubeService

logger = logging.getLogger(__name__)


@dataclass
class MediaCore:
    """Container of the process-wide media core objects."""

    settings: Settings
    vault: ITokenVault
    registry: ServiceRegistry
    graph: MediaGraph
    ingestion: GraphIngestionService
    engine: RecommendationEngine
    sync_store: SessionSyncStore

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        vault: ITokenVault | None = None,
        registry: ServiceRegistry | None = None,
    ) -> "MediaCore":
        """Wire all components (no I/O, no tasks started).

        Args:
            settings: Settings (get_settings() if None)
            vault: Token storage (in-memory if None)
            registry: Pre-filled registry (empty one on sync.active_service if None)
        """
        settings = settings or get_settings()
        if registry is None:
            registry = ServiceRegistry(active_service_id=settings.sync.active_service)
        graph = MediaGraph(settings.graph)
        return cls(
            settings=settings,
            vault=vault or InMemoryTokenVault(),
            registry=registry,
            graph=graph,
            ingestion=GraphIngestionService(graph, service_id=settings.sync.active_service),
            engine=RecommendationEngine(graph, registry, settings),
            sync_store=SessionSyncStore(registry, settings.sync),
        )

    def register_builtin_services(
        self,
        spotify_client: IBackendClient | None = None,
        youtube_client: IBackendClient | None = None,
    ) -> None:
        """Register the Spotify and YouTube adapters on the shared vault."""
        self.registry.register(
            SpotifyService(self.vault, client=spotify_client, settings=self.settings.spotify)
        )
        self.registry.register(YouTubeService(self.vault, client=youtube_client))

    async def shutdown(self) -> None:
        """Stop the poller and wait for its task."""
        await self.sync_store.aclose()


# Hey future me - everything before `yield` is STARTUP, everything after is SHUTDOWN.
# The try/finally makes sure a crashing UI session still cancels the poller task;
# otherwise asyncio warns "Task was destroyed but it is pending" at exit.
@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    vault: ITokenVault | None = None,
    spotify_client: IBackendClient | None = None,
    youtube_client: IBackendClient | None = None,
) -> AsyncGenerator[MediaCore, None]:
    """Build the media core, yield it, tear it down.

    Args:
        settings: Settings (get_settings() if None)
        vault: Token storage (in-memory if None)
        spotify_client: Spotify network client (offline mode if None)
        youtube_client: YouTube network client (offline mode if None)
    """
    settings = settings or get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )

    core = MediaCore.build(settings=settings, vault=vault)
    core.register_builtin_services(spotify_client=spotify_client, youtube_client=youtube_client)
    logger.info(
        "Media core ready (services=%s, active=%s)",
        ", ".join(core.registry.service_ids),
        core.registry.active_service_id,
    )

    try:
        yield core
    finally:
        logger.info("Shutting down media core...")
        await core.shutdown()
        logger.info("Media core stopped")
