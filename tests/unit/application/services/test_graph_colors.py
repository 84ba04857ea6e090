"""Tests for graph colour mapping."""

from moodify.application.services.graph_colors import (
    DEFAULT_EDGE_COLOR,
    DEFAULT_NODE_COLOR,
    get_edge_color,
    get_node_color,
)
from moodify.domain.entities.graph import EdgeType, NodeType


class TestGraphColors:
    """Colours are a stable function of the type tag."""

    def test_every_node_type_has_a_colour(self) -> None:
        """No node type falls through to the default."""
        assert all(get_node_color(t) != DEFAULT_NODE_COLOR for t in NodeType)

    def test_every_edge_type_has_a_colour(self) -> None:
        """No edge type falls through to the default."""
        assert all(get_edge_color(t) != DEFAULT_EDGE_COLOR for t in EdgeType)

    def test_plain_strings_accepted(self) -> None:
        """Raw tag strings (from snapshots/JSON) work too."""
        assert get_node_color("VIBE") == get_node_color(NodeType.VIBE) == "#9C27B0"
        assert get_edge_color("NEXT") == "#00BCD4"

    def test_unknown_tags_get_defaults(self) -> None:
        """Unknown tags don't raise."""
        assert get_node_color("PODCAST") == DEFAULT_NODE_COLOR
        assert get_edge_color("LIKES") == DEFAULT_EDGE_COLOR
