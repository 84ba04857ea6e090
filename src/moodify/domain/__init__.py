"""Domain layer: entities, DTOs, ports and exceptions of the media core."""
