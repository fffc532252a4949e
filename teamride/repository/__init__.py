"""Practice storage adapters."""

from teamride.repository.base import Repository, load_state
from teamride.repository.memory import InMemoryRepository

__all__ = ["InMemoryRepository", "Repository", "load_state"]
