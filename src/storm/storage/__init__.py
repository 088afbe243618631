"""Storage interface and the in-memory store."""

from .database import Store
from .memory import MemoryStore

__all__ = [
    "MemoryStore",
    "Store",
]
