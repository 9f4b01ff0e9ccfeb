"""In-memory store and delivery channel, used by tests and the demo script."""

from .channel import InMemoryChannel
from .store import InMemoryCareRepository

__all__ = ["InMemoryCareRepository", "InMemoryChannel"]
