"""Shared helpers for storm tests."""

from .builders import make_stored_container
from .sessions import MemorySession, session_pair

__all__ = [
    "MemorySession",
    "make_stored_container",
    "session_pair",
]
