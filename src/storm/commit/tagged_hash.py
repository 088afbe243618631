"""
Domain-separated (tagged) SHA-256 commitments.

Every identifier kind commits under its own ASCII label, so that the same
bytes committed in two different roles never produce the same identifier:

    tagged_hash(label, msg) = SHA256(SHA256(label) || SHA256(label) || msg)

The 64-byte prefix fills exactly one SHA-256 block. It is absorbed once per
identifier class, when the class is created, and the resulting hash state
(the "midstate") is cloned for every commitment. This matches BIP-340 tagged
hashes bit for bit.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import TYPE_CHECKING, ClassVar

from typing_extensions import Self

from storm.types import Bytes32

if TYPE_CHECKING:
    from hashlib import _Hash


def tagged_hash_engine(tag: bytes) -> _Hash:
    """
    Build the SHA-256 state primed with the tag prefix.

    Args:
        tag: ASCII label of the identifier kind, e.g. `b"storm:chunk"`.

    Returns:
        A hash object that has absorbed `SHA256(tag) || SHA256(tag)`.
        Callers must `copy()` it before feeding data.
    """
    tag_hash = hashlib.sha256(tag).digest()
    engine = hashlib.sha256()
    engine.update(tag_hash + tag_hash)
    return engine


class TaggedHash(Bytes32):
    """
    A 32-byte identifier produced by a tagged hash.

    Subclasses set `TAG`; the midstate is built once when the subclass is
    created. Identifiers of different kinds never compare equal, even if
    their bytes happen to match.
    """

    TAG: ClassVar[bytes]
    """ASCII domain-separation label."""

    _ENGINE: ClassVar[_Hash]
    """Hash state primed with the tag prefix."""

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        if "TAG" in cls.__dict__:
            cls._ENGINE = tagged_hash_engine(cls.TAG)

    @classmethod
    def commit(cls, message: bytes) -> Self:
        """Commit to `message` under this identifier's tag."""
        engine = cls._ENGINE.copy()
        engine.update(message)
        return cls(engine.digest())

    @classmethod
    def verify(cls, identifier: TaggedHash, message: bytes) -> bool:
        """Check that `identifier` is the commitment to `message`."""
        if not isinstance(identifier, cls):
            return False
        return hmac.compare_digest(identifier, cls.commit(message))

    def __eq__(self, other: object) -> bool:
        """Equal only to identifiers of the same kind with the same bytes."""
        return isinstance(other, type(self)) and bytes(self) == bytes(other)

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash((type(self), bytes(self)))

    def __str__(self) -> str:
        return self.hex()
