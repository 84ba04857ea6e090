"""Recommendation engine - graph ranking with a mandatory backend fallback.

Hey future me - this is what the "For you" list calls!

Flow:
    RecommendationContext
        ↓ resolve_seeds()        (seed ids, current track, mood vibe, time-of-day vibe)
    MediaGraph.rank()            (depth ≤ 2, weight × decay^depth, ties by insertion)
        ↓ exclude_ids / limit
    list[MediaItem]
        ↓ empty?  →  active service's get_recommendations() (unranked, bounded by timeout)

The fallback is NOT optional: right after install the graph is cold and the
user must still see something.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from moodify.application.services.media_graph import MediaGraph
from moodify.config.settings import Settings, get_settings
from moodify.domain.dtos import ContentType, MediaItem, RecommendationContext
from moodify.domain.entities.error_codes import ServiceErrorCode
from moodify.domain.entities.graph import GraphNode, NodeId, NodeType, ScoredNode
from moodify.domain.ports.media_service import IMediaService, MediaServiceError
from moodify.infrastructure.observability.logger_template import (
    log_operation,
    log_slow_operation,
)

if TYPE_CHECKING:
    from moodify.infrastructure.plugins.registry import ServiceRegistry

logger = logging.getLogger(__name__)


def node_to_media_item(node: GraphNode) -> MediaItem:
    """Build a fresh MediaItem from a SONG node."""
    item_id = node.external_id or str(node.id)
    uri = node.data.get("uri") or f"{node.service_id}:track:{item_id}"
    return MediaItem(
        id=item_id,
        title=node.label,
        uri=uri,
        service_id=node.service_id,
        type=ContentType.TRACK,
        artist=node.data.get("artist"),
        artwork_url=node.data.get("artwork_url"),
    )


class RecommendationEngine:
    """Produces ordered MediaItem lists from the graph and the registered services."""

    def __init__(
        self,
        graph: MediaGraph,
        registry: "ServiceRegistry",
        settings: Settings | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            graph: Shared media graph
            registry: Shared service registry (fallback + broadcast)
            settings: Application settings (get_settings() if None)
        """
        self._graph = graph
        self._registry = registry
        self._settings = settings or get_settings()

    @property
    def active_service(self) -> IMediaService | None:
        """Fallback service: the registry's active one (same one the poller reads)."""
        return self._registry.active_service

    def resolve_seeds(self, context: RecommendationContext) -> list[NodeId]:
        """Translate a context into graph seed ids (unknown references are ignored)."""
        seeds: list[NodeId] = [
            node_id for node_id in context.seed_node_ids if node_id in self._graph
        ]

        if context.current_track is not None:
            node = self._find_track_node(context.current_track)
            if node is not None:
                seeds.append(node.id)

        for vibe_name in (context.mood, context.time_of_day):
            if not vibe_name:
                continue
            vibe = self._find_vibe(str(vibe_name))
            if vibe is not None:
                seeds.append(vibe.id)

        # Keep first occurrence, drop duplicates
        return list(dict.fromkeys(seeds))

    def _find_track_node(self, track: MediaItem) -> GraphNode | None:
        node = self._graph.find_by_external_id(track.id)
        if node is not None:
            return node
        # Items built by node_to_media_item() for nodes without external id carry
        # str(node.id) as their id
        for song in self._graph.nodes(NodeType.SONG):
            if song.data.get("uri") == track.uri:
                return song
            if (
                song.external_id is None
                and song.service_id == track.service_id
                and str(song.id) == track.id
            ):
                return song
        return None

    def _find_vibe(self, name: str) -> GraphNode | None:
        vibe = self._graph.find_by_label(NodeType.VIBE, name)
        if vibe is not None:
            return vibe
        wanted = name.casefold()
        return next(
            (n for n in self._graph.nodes(NodeType.VIBE) if n.label.casefold() == wanted),
            None,
        )

    def rank(self, context: RecommendationContext) -> list[ScoredNode]:
        """Graph-only ranking for a context (no fallback, no limit)."""
        seeds = self.resolve_seeds(context)
        if not seeds:
            return []

        excluded = context.exclude_ids
        return [
            scored
            for scored in self._graph.rank(seeds)
            if str(scored.node.id) not in excluded
            and (scored.node.external_id is None or scored.node.external_id not in excluded)
        ]

    async def recommend(self, context: RecommendationContext | None = None) -> list[MediaItem]:
        """
        Ranked recommendations for a context.

        Args:
            context: What is playing / the current mood (empty context if None)

        Returns:
            Graph-ranked items; the active service's answer when the graph has nothing

        Raises:
            MediaServiceError: If the fallback service fails or times out
        """
        context = context or RecommendationContext()
        limit = context.limit or self._settings.graph.default_limit

        started = time.monotonic()
        ranked = self.rank(context)
        log_slow_operation(
            logger,
            "graph_rank",
            int((time.monotonic() - started) * 1000),
            candidates=len(ranked),
        )

        if ranked:
            return [node_to_media_item(scored.node) for scored in ranked[:limit]]

        service = self.active_service
        if service is None:
            logger.info("Graph has no candidates and no service is registered")
            return []

        async with log_operation(
            logger, "recommend_fallback", log_level=logging.DEBUG, service_id=service.service_id
        ):
            return await self._fetch_from(service, context)

    async def recommend_all(
        self, context: RecommendationContext | None = None
    ) -> dict[str, list[MediaItem]]:
        """
        Ask every registered service directly.

        Hey future me - one failing backend just drops out of the result, the
        dashboard still shows the others.

        Returns:
            service_id -> items, in registration order, failed services omitted
        """
        context = context or RecommendationContext()
        services = self._registry.get_all()
        results = await asyncio.gather(
            *(self._fetch_from(service, context) for service in services),
            return_exceptions=True,
        )

        answers: dict[str, list[MediaItem]] = {}
        for service, result in zip(services, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Recommendations from '%s' failed: %s", service.service_id, result
                )
                continue
            answers[service.service_id] = result
        return answers

    async def _fetch_from(
        self, service: IMediaService, context: RecommendationContext
    ) -> list[MediaItem]:
        timeout = self._settings.sync.network_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                return await service.get_recommendations(context)
        except TimeoutError as e:
            raise MediaServiceError.timeout(
                service.service_id, "get_recommendations", timeout, service.display_name
            ) from e
        except MediaServiceError:
            raise
        except Exception as e:
            raise MediaServiceError(
                message=f"get_recommendations failed: {e!s}",
                service_id=service.service_id,
                error_code=ServiceErrorCode.UNKNOWN,
                original_error=e,
                service_name=service.display_name,
            ) from e
