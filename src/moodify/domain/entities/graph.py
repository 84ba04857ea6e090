"""Media graph entities - typed nodes and typed relations.

Hey future me - the graph is SMALL and in-memory, but the types are strict!
Five node kinds, five edge kinds, nothing else. If a new relation shows up
(e.g. "same label"), add it to EdgeType AND decide its direction below.

Direction rules:
- NEXT, HAS_FEATURE, HAS_GENRE are directed (origin -> dependent)
- SIMILAR, RELATED are undirected: A-B and B-A are the SAME logical edge
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from moodify.domain.exceptions import ValidationError

NodeId = int | str


class NodeType(StrEnum):
    """Kinds of entities in the media graph."""

    SONG = "SONG"
    ARTIST = "ARTIST"
    VIBE = "VIBE"
    AUDIO_FEATURE = "AUDIO_FEATURE"
    GENRE = "GENRE"


class EdgeType(StrEnum):
    """Kinds of relations between graph nodes."""

    SIMILAR = "SIMILAR"
    NEXT = "NEXT"
    RELATED = "RELATED"
    HAS_FEATURE = "HAS_FEATURE"
    HAS_GENRE = "HAS_GENRE"

    @property
    def is_directed(self) -> bool:
        """True if the edge only points from source to target."""
        return self not in UNDIRECTED_EDGE_TYPES


UNDIRECTED_EDGE_TYPES: frozenset[EdgeType] = frozenset({EdgeType.SIMILAR, EdgeType.RELATED})

# Edge kinds the ranking expansion walks. HAS_FEATURE/HAS_GENRE fan out to
# hub nodes (one GENRE links hundreds of songs) and would flatten every score.
RANKING_EDGE_TYPES: frozenset[EdgeType] = frozenset(
    {EdgeType.SIMILAR, EdgeType.RELATED, EdgeType.NEXT}
)


@dataclass(frozen=True)
class GraphNode:
    """A single entity in the media graph.

    Nodes are immutable. The only allowed change is a label refresh, which
    MediaGraph performs by swapping in a copy (dataclasses.replace).
    """

    id: NodeId
    type: NodeType
    label: str
    service_id: str
    external_id: str | None = None
    # Read-only extras (artist name, uri, artwork url, audio features)
    data: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


@dataclass(frozen=True)
class GraphEdge:
    """A typed, weighted relation between two nodes."""

    source: NodeId
    target: NodeId
    type: EdgeType
    weight: float = 1.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight) or self.weight < 0:
            raise ValidationError(
                f"Edge weight must be finite and >= 0, got {self.weight}"
            )

    @property
    def key(self) -> tuple[EdgeType, Any]:
        """Identity of the logical edge.

        Undirected edges use an unordered pair so A-B and B-A collapse.
        """
        if self.type.is_directed:
            return (self.type, (self.source, self.target))
        return (self.type, frozenset((self.source, self.target)))

    def other_end(self, node_id: NodeId) -> NodeId:
        """Return the endpoint opposite to node_id."""
        return self.target if node_id == self.source else self.source


@dataclass(frozen=True)
class ScoredNode:
    """A ranking result: the node plus its accumulated score."""

    node: GraphNode
    score: float
    depth: int


@dataclass(frozen=True)
class GraphSnapshot:
    """Point-in-time copy of the whole graph (for visualisation/debugging)."""

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
