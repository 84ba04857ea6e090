"""Infrastructure layer: adapters, persistence, observability and lifecycle."""
