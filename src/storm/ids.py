"""
Content-derived identifiers.

Each identifier kind commits under its own domain-separation label:

| Identifier    | Label             |
|---------------|-------------------|
| `ChunkId`     | `storm:chunk`     |
| `ContainerId` | `storm:container` |
| `MesgId`      | `storm:message`   |
"""

from __future__ import annotations

from typing_extensions import Self

from storm.commit import TaggedHash, bech32

CONTAINER_ID_HRP = "storm"
"""Human-readable part of the bech32m form of container ids."""


class ChunkId(TaggedHash):
    """Identifier of a chunk: the tagged hash of the chunk bytes."""

    TAG = b"storm:chunk"


class ContainerId(TaggedHash):
    """Identifier of a container: the tagged hash of its serialized manifest."""

    TAG = b"storm:container"

    def to_bech32(self) -> str:
        """Encode as a checksummed `storm1...` string for out-of-band sharing."""
        return bech32.encode(CONTAINER_ID_HRP, self)

    @classmethod
    def from_bech32(cls, text: str) -> Self:
        """
        Parse a `storm1...` string.

        Raises:
            Bech32Error: On a wrong prefix, bad checksum, or wrong payload length.
        """
        payload = bech32.decode(CONTAINER_ID_HRP, text)
        if len(payload) != cls.LENGTH:
            raise bech32.Bech32Error(
                f"container id must be {cls.LENGTH} bytes, got {len(payload)}"
            )
        return cls(payload)


class MesgId(TaggedHash):
    """Identifier of a topic or message: the tagged hash of its serialization."""

    TAG = b"storm:message"
