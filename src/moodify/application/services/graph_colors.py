"""Graph colours - constant display colour per node and edge type.

Pure display helper: the graph view asks for colours by type tag and nothing else.
Keep the values stable; users learn "purple = vibe".
"""

from moodify.domain.entities.graph import EdgeType, NodeType

NODE_COLORS: dict[NodeType, str] = {
    NodeType.SONG: "#2196F3",
    NodeType.ARTIST: "#8BC34A",
    NodeType.VIBE: "#9C27B0",
    NodeType.AUDIO_FEATURE: "#FF9800",
    NodeType.GENRE: "#673AB7",
}

EDGE_COLORS: dict[EdgeType, str] = {
    EdgeType.SIMILAR: "#4CAF50",
    EdgeType.NEXT: "#00BCD4",
    EdgeType.RELATED: "#E91E63",
    EdgeType.HAS_FEATURE: "#FF9800",
    EdgeType.HAS_GENRE: "#673AB7",
}

DEFAULT_NODE_COLOR = "#555"
DEFAULT_EDGE_COLOR = "#999"


def get_node_color(node_type: str) -> str:
    """Colour for a node type tag (grey for unknown tags)."""
    return NODE_COLORS.get(node_type, DEFAULT_NODE_COLOR)  # type: ignore[call-overload]


def get_edge_color(edge_type: str) -> str:
    """Colour for an edge type tag (light grey for unknown tags)."""
    return EDGE_COLORS.get(edge_type, DEFAULT_EDGE_COLOR)  # type: ignore[call-overload]
