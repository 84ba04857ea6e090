"""Domain entities."""

from moodify.domain.entities.error_codes import (
    NON_RETRYABLE_ERRORS,
    ServiceErrorCode,
    get_user_message,
    is_retryable_error,
)
from moodify.domain.entities.graph import (
    RANKING_EDGE_TYPES,
    UNDIRECTED_EDGE_TYPES,
    EdgeType,
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    NodeId,
    NodeType,
    ScoredNode,
)

__all__ = [
    # Graph
    "EdgeType",
    "GraphEdge",
    "GraphNode",
    "GraphSnapshot",
    "NodeId",
    "NodeType",
    "RANKING_EDGE_TYPES",
    "ScoredNode",
    "UNDIRECTED_EDGE_TYPES",
    # Errors
    "NON_RETRYABLE_ERRORS",
    "ServiceErrorCode",
    "get_user_message",
    "is_retryable_error",
]
