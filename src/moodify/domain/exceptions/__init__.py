"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - use a specific subclass so callers can catch
    # precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    # Only for lookups where "missing" is a defect (refreshing the label of a node that
    # was never inserted). Plain lookups like MediaGraph.get_node() return None instead.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateEntityException(DomainException):
    """Raised when trying to create a duplicate entity."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationError(DomainException):
    """Input validation failed.

    Raised when input data fails validation rules (missing fields,
    invalid formats, out-of-range values).

    Example:
        raise ValidationError("Edge weight must be finite and >= 0, got -1.0")
        raise ValidationError("max_depth must be between 1 and 2")
    """

    pass


class DanglingEdgeError(ValidationError):
    """Raised when an edge references a node that is not in the graph.

    Hey future me - this is a PROGRAMMING error, not an environmental one!
    Ingestion code must create both endpoints before connecting them.
    """

    def __init__(self, source_id: Any, target_id: Any, missing_id: Any) -> None:
        super().__init__(
            f"Edge {source_id} -> {target_id} references unknown node {missing_id}"
        )
        self.source_id = source_id
        self.target_id = target_id
        self.missing_id = missing_id


class InvalidStateException(DomainException):
    """Raised when an object is in an invalid state for the requested operation.

    Example: calling SessionSyncStore.stop() more often than start().
    """

    pass


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "DuplicateEntityException",
    "ValidationError",
    "DanglingEdgeError",
    "InvalidStateException",
]
