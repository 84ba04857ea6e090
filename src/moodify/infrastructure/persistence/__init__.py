"""Persistence adapters (token storage)."""

from moodify.infrastructure.persistence.token_vault import InMemoryTokenVault

__all__ = ["InMemoryTokenVault"]
