"""Content-addressing: tagged hash commitments and their text encoding."""

from .bech32 import Bech32Error
from .tagged_hash import TaggedHash, tagged_hash_engine

__all__ = [
    "Bech32Error",
    "TaggedHash",
    "tagged_hash_engine",
]
