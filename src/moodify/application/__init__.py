"""Application layer: graph, recommendation engine and background workers."""
