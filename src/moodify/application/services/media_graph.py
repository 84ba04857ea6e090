"""Media graph - typed in-memory property graph used to rank recommendations.

Hey future me - this is the knowledge graph behind "more like this"!

Nodes are songs, artists, vibes, audio features and genres. Edges say how they
relate (SIMILAR, NEXT, RELATED, HAS_FEATURE, HAS_GENRE). The engine seeds a
breadth expansion with what's playing right now and scores every SONG it can
reach within two hops.

Everything here is synchronous on purpose: no await = no interleaving, so a
ranking call always sees a consistent graph even while ingestion runs in another
task of the same event loop.

Scoring (see rank()):
    score(song) = sum over traversed edges reaching it at depth d of weight * decay**d
    seeds never score, ties go to the node inserted first.
"""

import logging
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from moodify.config.settings import GraphSettings
from moodify.domain.entities.graph import (
    RANKING_EDGE_TYPES,
    EdgeType,
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    NodeId,
    NodeType,
    ScoredNode,
)
from moodify.domain.exceptions import (
    DanglingEdgeError,
    DuplicateEntityException,
    EntityNotFoundException,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Hard cap, independent of settings: deeper expansion explodes on hub nodes
MAX_RANK_DEPTH = 2

# Dimensions averaged into TasteProfile.audio_profile
PROFILE_FEATURES: tuple[str, ...] = ("energy", "valence", "danceability")


@dataclass(frozen=True)
class PlayStats:
    """Play statistics for a node (kept outside the immutable node)."""

    play_count: int = 0
    last_played_at: float = 0.0


@dataclass(frozen=True)
class GenreStat:
    """Aggregated HAS_GENRE statistics for one genre node."""

    name: str
    song_count: int
    total_weight: float


@dataclass(frozen=True)
class TasteProfile:
    """Summary of what the user listens to, for prompts and the profile screen."""

    representatives: list[GraphNode] = field(default_factory=list)
    top_genres: list[GenreStat] = field(default_factory=list)
    recent_vibes: list[str] = field(default_factory=list)
    # energy/valence/danceability averages, None until audio features were ingested
    audio_profile: dict[str, float] | None = None


class MediaGraph:
    """In-memory typed property graph.

    Hey future me - ONE instance per process, created by MediaCore and injected
    into the engine and the ingestion service. Don't instantiate ad hoc copies in
    UI code or they'll silently diverge.
    """

    def __init__(self, settings: GraphSettings | None = None) -> None:
        """Initialize an empty graph.

        Args:
            settings: Ranking/reinforcement configuration (defaults if None)
        """
        self._settings = settings or GraphSettings()
        self._nodes: dict[NodeId, GraphNode] = {}
        # Insertion rank of each node id; the tie-breaker for rank()
        self._order: dict[NodeId, int] = {}
        self._edges: dict[tuple[EdgeType, Any], GraphEdge] = {}
        # node id -> keys of edges that can be walked FROM that node
        self._adjacency: dict[NodeId, dict[tuple[EdgeType, Any], None]] = {}
        self._by_external_id: dict[str, NodeId] = {}
        self._by_type_label: dict[tuple[NodeType, str], NodeId] = {}
        self._play_stats: dict[NodeId, PlayStats] = {}
        self._next_id = 1

    # =========================================================================
    # NODES
    # =========================================================================

    def add_node(
        self,
        node_type: NodeType,
        label: str,
        service_id: str,
        *,
        node_id: NodeId | None = None,
        external_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> GraphNode:
        """Insert a new node.

        Args:
            node_type: Kind of entity
            label: Display label (song title, artist name, vibe name, ...)
            service_id: Backend the node originates from
            node_id: Explicit id; auto-assigned integer if None
            external_id: Backend id (e.g. Spotify track id), must be unique
            data: Read-only extras (artist, uri, artwork_url, audio features)

        Returns:
            The created node

        Raises:
            DuplicateEntityException: If node_id or external_id is already taken
        """
        if node_id is None:
            node_id = self._allocate_id()
        elif node_id in self._nodes:
            raise DuplicateEntityException("GraphNode", node_id)

        if external_id is not None and external_id in self._by_external_id:
            raise DuplicateEntityException("GraphNode", external_id)

        node = GraphNode(
            id=node_id,
            type=node_type,
            label=label,
            service_id=service_id,
            external_id=external_id,
            data=data or {},
        )
        self._nodes[node_id] = node
        self._order[node_id] = len(self._order)
        self._adjacency[node_id] = {}

        if isinstance(node_id, int) and not isinstance(node_id, bool) and node_id >= self._next_id:
            self._next_id = node_id + 1

        if external_id is not None:
            self._by_external_id[external_id] = node_id
        else:
            self._by_type_label.setdefault((node_type, label), node_id)

        return node

    # Hey future me - this is the dedup rule from ingestion: with an external id we ONLY
    # match by external id (two different tracks can share a title!). Without one
    # (GENRE, VIBE, AUDIO_FEATURE) we match by type + label.
    def get_or_create_node(
        self,
        node_type: NodeType,
        label: str,
        service_id: str,
        external_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> GraphNode:
        """Return the matching node, creating it if needed.

        Args:
            node_type: Kind of entity
            label: Display label
            service_id: Backend of origin (used only on creation)
            external_id: Backend id used as dedup key when present
            data: Extras (used only on creation)

        Returns:
            Existing or newly created node
        """
        if external_id is not None:
            existing = self.find_by_external_id(external_id)
        else:
            existing = self.find_by_label(node_type, label)
        if existing is not None:
            return existing
        return self.add_node(
            node_type, label, service_id, external_id=external_id, data=data
        )

    def refresh_label(self, node_id: NodeId, label: str) -> GraphNode:
        """Replace a node's display label (the only mutation nodes allow).

        Raises:
            EntityNotFoundException: If the node does not exist
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise EntityNotFoundException("GraphNode", node_id)

        updated = replace(node, label=label)
        self._nodes[node_id] = updated

        if node.external_id is None:
            old_key = (node.type, node.label)
            if self._by_type_label.get(old_key) == node_id:
                del self._by_type_label[old_key]
            self._by_type_label.setdefault((node.type, label), node_id)
        return updated

    def get_node(self, node_id: NodeId) -> GraphNode | None:
        """Get a node by id (None if absent)."""
        return self._nodes.get(node_id)

    def find_by_external_id(self, external_id: str) -> GraphNode | None:
        """Get a node by backend id (None if absent)."""
        node_id = self._by_external_id.get(external_id)
        return self._nodes[node_id] if node_id is not None else None

    def find_by_label(self, node_type: NodeType, label: str) -> GraphNode | None:
        """Get a node without external id by type + label (None if absent)."""
        node_id = self._by_type_label.get((node_type, label))
        return self._nodes[node_id] if node_id is not None else None

    def nodes(self, node_type: NodeType | None = None) -> list[GraphNode]:
        """All nodes in insertion order, optionally filtered by type."""
        return [n for n in self._nodes.values() if node_type is None or n.type == node_type]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def _allocate_id(self) -> int:
        while self._next_id in self._nodes:
            self._next_id += 1
        node_id = self._next_id
        self._next_id += 1
        return node_id

    # =========================================================================
    # EDGES
    # =========================================================================

    def add_edge(
        self,
        source: NodeId,
        target: NodeId,
        edge_type: EdgeType,
        weight: float = 1.0,
    ) -> GraphEdge:
        """Connect two existing nodes.

        Inserting an edge that already exists (same logical edge - for SIMILAR/RELATED
        the direction doesn't matter) reinforces it by settings.edge_reinforcement
        instead of adding a duplicate.

        Args:
            source: Origin node id
            target: Dependent node id
            edge_type: Relation kind
            weight: Similarity strength / transition affinity (finite, >= 0)

        Returns:
            The stored edge (with its current weight)

        Raises:
            DanglingEdgeError: If either endpoint is not in this graph
            ValidationError: On self-loops or invalid weights
        """
        if source not in self._nodes:
            raise DanglingEdgeError(source, target, source)
        if target not in self._nodes:
            raise DanglingEdgeError(source, target, target)
        if source == target:
            raise ValidationError(f"Self-loop {edge_type} on node {source} is not allowed")

        edge = GraphEdge(source=source, target=target, type=edge_type, weight=weight)
        existing = self._edges.get(edge.key)
        if existing is not None:
            reinforced = replace(
                existing, weight=existing.weight + self._settings.edge_reinforcement
            )
            self._edges[edge.key] = reinforced
            return reinforced

        self._edges[edge.key] = edge
        self._adjacency[source][edge.key] = None
        if not edge_type.is_directed:
            self._adjacency[target][edge.key] = None
        return edge

    def get_edge(self, source: NodeId, target: NodeId, edge_type: EdgeType) -> GraphEdge | None:
        """Get the logical edge between two nodes (None if absent)."""
        if edge_type.is_directed:
            key: tuple[EdgeType, Any] = (edge_type, (source, target))
        else:
            key = (edge_type, frozenset((source, target)))
        return self._edges.get(key)

    def edges(self, edge_type: EdgeType | None = None) -> list[GraphEdge]:
        """All edges in insertion order, optionally filtered by type."""
        return [e for e in self._edges.values() if edge_type is None or e.type == edge_type]

    @property
    def edge_count(self) -> int:
        """Number of logical edges."""
        return len(self._edges)

    def _walk(
        self, node_id: NodeId, edge_types: Iterable[EdgeType] | None
    ) -> Iterator[tuple[GraphEdge, NodeId]]:
        """Yield (edge, neighbour id) for every edge walkable from node_id."""
        allowed = frozenset(edge_types) if edge_types is not None else None
        for key in self._adjacency.get(node_id, {}):
            edge = self._edges[key]
            if allowed is not None and edge.type not in allowed:
                continue
            yield edge, edge.other_end(node_id)

    # =========================================================================
    # TRAVERSAL
    # =========================================================================

    def neighbors(
        self, node_id: NodeId, edge_types: Iterable[EdgeType] | None = None
    ) -> list[GraphNode]:
        """Adjacent nodes, honouring edge direction.

        Directed edges are only followed source -> target; SIMILAR/RELATED both ways.
        An unknown node simply has no neighbours.

        Args:
            node_id: Node to expand
            edge_types: Restrict to these relation kinds (all if None)

        Returns:
            Neighbour nodes in edge insertion order, without duplicates
        """
        seen: dict[NodeId, None] = {}
        for _edge, other in self._walk(node_id, edge_types):
            seen.setdefault(other, None)
        return [self._nodes[other] for other in seen]

    def rank(
        self,
        seeds: Iterable[NodeId],
        *,
        max_depth: int | None = None,
        decay: float | None = None,
        edge_types: Iterable[EdgeType] = RANKING_EDGE_TYPES,
        node_type: NodeType = NodeType.SONG,
        exclude: Iterable[NodeId] = (),
    ) -> list[ScoredNode]:
        """Score every node reachable from the seeds.

        Breadth expansion level by level. An edge walked from a node at depth d-1 to a
        node not discovered at a shallower depth contributes weight * decay**d to that
        node. Nodes found at the same level through several edges collect all of them.

        Args:
            seeds: Starting node ids (unknown ids are ignored)
            max_depth: Expansion depth, 1..2 (settings default)
            decay: Depth-decay factor in (0, 1) (settings default)
            edge_types: Relations to walk (SIMILAR, RELATED, NEXT by default)
            node_type: Only nodes of this type are returned
            exclude: Node ids to drop from the result (seeds are always dropped)

        Returns:
            Scored nodes, highest score first, ties by insertion order

        Raises:
            ValidationError: If max_depth or decay is out of range
        """
        depth_limit = self._settings.max_depth if max_depth is None else max_depth
        factor = self._settings.depth_decay if decay is None else decay
        if not 1 <= depth_limit <= MAX_RANK_DEPTH:
            raise ValidationError(
                f"max_depth must be between 1 and {MAX_RANK_DEPTH}, got {depth_limit}"
            )
        if not 0 < factor < 1:
            raise ValidationError(f"decay must be in (0, 1), got {factor}")

        started = time.monotonic()
        walk_types = frozenset(edge_types)
        depth_of: dict[NodeId, int] = {}
        for seed in seeds:
            if seed in self._nodes:
                depth_of.setdefault(seed, 0)
        if not depth_of:
            return []

        seed_ids = set(depth_of)
        excluded = set(exclude)
        scores: dict[NodeId, float] = {}
        frontier = list(depth_of)

        for depth in range(1, depth_limit + 1):
            contribution = factor**depth
            next_frontier: list[NodeId] = []
            for node_id in frontier:
                for edge, other in self._walk(node_id, walk_types):
                    known = depth_of.get(other)
                    if known is not None and known < depth:
                        continue
                    if known is None:
                        depth_of[other] = depth
                        next_frontier.append(other)
                    scores[other] = scores.get(other, 0.0) + edge.weight * contribution
            frontier = next_frontier

        results = [
            ScoredNode(node=self._nodes[node_id], score=score, depth=depth_of[node_id])
            for node_id, score in scores.items()
            if node_id not in seed_ids
            and node_id not in excluded
            and self._nodes[node_id].type == node_type
        ]
        results.sort(key=lambda scored: (-scored.score, self._order[scored.node.id]))

        logger.debug(
            "Ranked %d candidates from %d seeds in %.1fms",
            len(results),
            len(seed_ids),
            (time.monotonic() - started) * 1000,
        )
        return results

    # =========================================================================
    # PLAY STATS & QUERIES
    # =========================================================================

    def record_play(self, node_id: NodeId, played_at: float | None = None) -> PlayStats:
        """Bump play count and last-played timestamp of a node.

        Raises:
            EntityNotFoundException: If the node does not exist
        """
        if node_id not in self._nodes:
            raise EntityNotFoundException("GraphNode", node_id)
        current = self._play_stats.get(node_id, PlayStats())
        stats = PlayStats(
            play_count=current.play_count + 1,
            last_played_at=time.time() if played_at is None else played_at,
        )
        self._play_stats[node_id] = stats
        return stats

    def play_stats(self, node_id: NodeId) -> PlayStats:
        """Play statistics of a node (zeros if never played)."""
        return self._play_stats.get(node_id, PlayStats())

    def recent_songs(self, limit: int = 5) -> list[GraphNode]:
        """SONG nodes by last play, most recent first (never-played last)."""
        songs = self.nodes(NodeType.SONG)
        songs.sort(key=lambda n: (-self.play_stats(n.id).last_played_at, self._order[n.id]))
        return songs[:limit]

    def top_genres(self, limit: int = 10) -> list[GenreStat]:
        """Genres ranked by summed HAS_GENRE weight.

        Returns:
            GenreStat list, heaviest first, ties by genre insertion order
        """
        songs_per_genre: dict[NodeId, set[NodeId]] = {}
        weight_per_genre: dict[NodeId, float] = {}
        for edge in self.edges(EdgeType.HAS_GENRE):
            if self._nodes[edge.target].type != NodeType.GENRE:
                continue
            songs_per_genre.setdefault(edge.target, set()).add(edge.source)
            weight_per_genre[edge.target] = weight_per_genre.get(edge.target, 0.0) + edge.weight

        ordered = sorted(
            weight_per_genre,
            key=lambda genre_id: (-weight_per_genre[genre_id], self._order[genre_id]),
        )
        return [
            GenreStat(
                name=self._nodes[genre_id].label,
                song_count=len(songs_per_genre[genre_id]),
                total_weight=weight_per_genre[genre_id],
            )
            for genre_id in ordered[:limit]
        ]

    def songs_by_genres(
        self,
        genre_names: Iterable[str],
        limit: int = 20,
        exclude_ids: Iterable[str] = (),
    ) -> list[GraphNode]:
        """Songs linked to any of the given genres, strongest link first.

        Args:
            genre_names: Genre labels to match
            limit: Max number of songs
            exclude_ids: External ids (or stringified node ids) to skip

        Returns:
            SONG nodes ordered by summed HAS_GENRE weight
        """
        genre_ids = {
            node.id
            for name in genre_names
            if (node := self.find_by_label(NodeType.GENRE, name)) is not None
        }
        if not genre_ids:
            return []

        excluded = set(exclude_ids)
        weights: dict[NodeId, float] = {}
        for edge in self.edges(EdgeType.HAS_GENRE):
            if edge.target not in genre_ids:
                continue
            song = self._nodes[edge.source]
            if song.type != NodeType.SONG:
                continue
            if str(song.id) in excluded or (song.external_id and song.external_id in excluded):
                continue
            weights[song.id] = weights.get(song.id, 0.0) + edge.weight

        ordered = sorted(weights, key=lambda node_id: (-weights[node_id], self._order[node_id]))
        return [self._nodes[node_id] for node_id in ordered[:limit]]

    # Hey future me - this is the "autoplay" pick, NOT rank(). One hop only, strongest
    # edge wins, and anything already played today is skipped so a session doesn't
    # loop back onto the same three songs.
    def next_suggested_node(
        self,
        current_id: NodeId,
        exclude_ids: Iterable[NodeId] = (),
        now: float | None = None,
    ) -> GraphNode | None:
        """Best SONG to play after current_id.

        Args:
            current_id: Node that is playing now (unknown ids give None)
            exclude_ids: Node ids to skip (e.g. already queued)
            now: Epoch seconds defining "today" (time.time() if None)

        Returns:
            Target of the heaviest walkable edge, or None if every candidate is out
        """
        today = datetime.fromtimestamp(time.time() if now is None else now)
        today_start = today.replace(hour=0, minute=0, second=0, microsecond=0).timestamp()
        excluded = set(exclude_ids)

        best: GraphNode | None = None
        best_weight = 0.0
        for edge, other in self._walk(current_id, None):
            node = self._nodes[other]
            if node.type != NodeType.SONG or other in excluded:
                continue
            if self.play_stats(other).last_played_at >= today_start:
                continue
            if best is None or edge.weight > best_weight:
                best, best_weight = node, edge.weight
        return best

    def cluster_representatives(self, limit: int = 8) -> list[GraphNode]:
        """Most played songs, one per artist first, then topped up by play count."""
        if limit <= 0:
            return []
        songs = self.nodes(NodeType.SONG)
        songs.sort(key=lambda n: (-self.play_stats(n.id).play_count, self._order[n.id]))

        selected: list[GraphNode] = []
        artists: set[Any] = set()
        for node in songs:
            if len(selected) >= limit:
                break
            artist = node.data.get("artist")
            if selected and artist in artists:
                continue
            selected.append(node)
            artists.add(artist)

        chosen = {node.id for node in selected}
        for node in songs:
            if len(selected) >= limit:
                break
            if node.id not in chosen:
                selected.append(node)
        return selected

    def taste_profile(self) -> TasteProfile:
        """Representatives, top genres, recent vibes and the average audio profile.

        The audio profile averages HAS_FEATURE weights over every song that has an
        energy link; missing valence/danceability count as 0. Values are rounded to
        two decimals.
        """
        vibes = self.nodes(NodeType.VIBE)
        vibes.sort(key=lambda n: (-self.play_stats(n.id).last_played_at, self._order[n.id]))

        per_song: dict[NodeId, dict[str, float]] = {}
        for edge in self.edges(EdgeType.HAS_FEATURE):
            feature = self._nodes[edge.target]
            if feature.type != NodeType.AUDIO_FEATURE or feature.label not in PROFILE_FEATURES:
                continue
            per_song.setdefault(edge.source, {})[feature.label] = edge.weight

        rated = [values for values in per_song.values() if "energy" in values]
        audio_profile = None
        if rated:
            audio_profile = {
                name: round(sum(values.get(name, 0.0) for values in rated) / len(rated), 2)
                for name in PROFILE_FEATURES
            }

        return TasteProfile(
            representatives=self.cluster_representatives(6),
            top_genres=self.top_genres(8),
            recent_vibes=[vibe.label for vibe in vibes[:5]],
            audio_profile=audio_profile,
        )

    def clear(self) -> None:
        """Drop every node, edge and play statistic. Ids restart at 1."""
        logger.info("Clearing media graph (%d nodes, %d edges)", len(self._nodes), len(self._edges))
        self._nodes.clear()
        self._order.clear()
        self._edges.clear()
        self._adjacency.clear()
        self._by_external_id.clear()
        self._by_type_label.clear()
        self._play_stats.clear()
        self._next_id = 1

    def is_populated(self) -> bool:
        """True if the graph holds at least one SONG node."""
        return any(node.type == NodeType.SONG for node in self._nodes.values())

    def snapshot(self) -> GraphSnapshot:
        """Immutable copy of all nodes and edges (for visualisation)."""
        return GraphSnapshot(nodes=tuple(self._nodes.values()), edges=tuple(self._edges.values()))
