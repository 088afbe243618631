"""
Containers: content-addressed manifests of chunked payloads.

A container describes one logical file split into chunks. It lists the chunk
identifiers in order, together with a version, a MIME type, a free-text
description and the declared total size. The container identifier is the
tagged hash of the whole serialized manifest, so changing any field,
including chunk order, changes the identifier.

The serialized manifest must fit into a single transport packet of at most
2**24 - 1 bytes. A chunk id takes 2**5 bytes, which leaves 19 bits for the
number of chunk references; with up to 24 bits of chunk size the payload size
is bounded by 43 bits. The header shares the packet, so a manifest with empty
strings holds at most 2**19 - 1 references, and fewer as `mime` and `info`
grow.

`size` is expected to equal the sum of the referenced chunk lengths, but is
advisory: `reassemble` only logs a mismatch.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Final, Protocol

from pydantic import model_validator

from storm.chunk import MAX_CHUNK_LEN, Chunk, TooLargeData
from storm.config import DEFAULT_CHUNK_SIZE
from storm.ids import ChunkId, ContainerId, MesgId
from storm.types import (
    MAX_MEDIUM_LEN,
    AsciiString,
    MediumList,
    Record,
    Uint16,
    Uint64,
    Utf8String,
)

logger = logging.getLogger(__name__)

MAX_CONTAINER_CHUNKS: Final = 2**19
"""Maximum number of chunk references in one container manifest."""

MAX_MANIFEST_LEN: Final = MAX_MEDIUM_LEN
"""Maximum size of a serialized manifest, header included."""

CONTAINER_VERSION: Final = 0
"""Current manifest version."""


class ChunkIdList(MediumList[ChunkId]):
    """Ordered chunk references of a container; duplicates are allowed."""

    ELEMENT_TYPE = ChunkId
    LIMIT = MAX_CONTAINER_CHUNKS


class ContainerHeader(Record):
    """Container metadata without the chunk list."""

    version: Uint16
    """Version of the container. Always 0 for now."""

    mime: AsciiString
    """MIME type of the file."""

    info: Utf8String
    """UTF-8 description of the file."""

    size: Uint64
    """Declared payload size, the sum of the chunk sizes."""


class Container(Record):
    """
    Manifest of a payload split into chunks.

    The chunk bytes are not part of the container; they are stored and
    exchanged separately, addressed by their ids.
    """

    version: Uint16
    """Version of the container. Always 0 for now."""

    mime: AsciiString
    """MIME type of the file."""

    info: Utf8String
    """UTF-8 description of the file."""

    size: Uint64
    """Declared payload size, the sum of the chunk sizes."""

    chunks: ChunkIdList
    """Chunk ids in payload order."""

    @model_validator(mode="after")
    def check_manifest_len(self) -> "Container":
        """Reject manifests that do not fit into one packet."""
        encoded_len = manifest_len(self.header(), len(self.chunks))
        if encoded_len > MAX_MANIFEST_LEN:
            raise TooLargeData("Container", limit=MAX_MANIFEST_LEN, actual=encoded_len)
        return self

    def container_id(self) -> ContainerId:
        """Content-derived identifier of this container."""
        return ContainerId.commit(self.encode_bytes())

    @property
    def chunk_count(self) -> int:
        """Number of chunk references, counting duplicates."""
        return len(self.chunks)

    def header(self) -> ContainerHeader:
        """Metadata of this container."""
        return ContainerHeader(version=self.version, mime=self.mime, info=self.info, size=self.size)

    def info_record(self) -> ContainerInfo:
        """What a peer announces about this container."""
        return ContainerInfo(header=self.header(), container_id=self.container_id())


class ContainerInfo(Record):
    """Announcement of a container held by a peer."""

    header: ContainerHeader
    """Container metadata."""

    container_id: ContainerId
    """Identifier of the full manifest."""


class ContainerFullId(Record):
    """A container together with the message granting access to it."""

    message_id: MesgId
    """Topic or message that references the container."""

    container_id: ContainerId
    """The container itself."""

    def __str__(self) -> str:
        return f"{self.container_id}@{self.message_id}"


class ChunkFullId(Record):
    """A chunk addressed within the container that references it."""

    container_id: ContainerId
    """Container listing the chunk."""

    chunk_id: ChunkId
    """The chunk itself."""

    def __str__(self) -> str:
        return f"{self.chunk_id}@{self.container_id}"


def manifest_len(header: ContainerHeader, chunk_count: int) -> int:
    """Serialized size of a manifest with `header` and `chunk_count` references."""
    prefix_len = ChunkIdList.PREFIX.byte_length()
    return len(header.encode_bytes()) + prefix_len + chunk_count * ChunkId.LENGTH


class ChunkSource(Protocol):
    """Anything chunks can be looked up from, e.g. a store."""

    def get_chunk(self, chunk_id: ChunkId) -> Chunk | None:
        """Return the chunk, or None if it is not available."""
        ...


class MissingChunk(LookupError):
    """
    Raised when a chunk referenced by a container is not available.

    Attributes:
        chunk_id: The first chunk that could not be found.
    """

    def __init__(self, chunk_id: ChunkId) -> None:
        self.chunk_id = chunk_id
        super().__init__(f"missing chunk {chunk_id}")


def split(
    payload: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    *,
    mime: str = "application/octet-stream",
    info: str = "",
) -> tuple[Container, list[Chunk]]:
    """
    Split a payload into fixed-size chunks and build their manifest.

    Every chunk holds `chunk_size` bytes except possibly the last one. An
    empty payload gives a container without chunks.

    Args:
        payload: Bytes to split.
        chunk_size: Size of every chunk but the last.
        mime: MIME type recorded in the manifest.
        info: Description recorded in the manifest.

    Returns:
        The container and its chunks, in manifest order.

    Raises:
        ValueError: If `chunk_size` is not in `1..MAX_CHUNK_LEN`.
        TooLargeData: If the payload needs more than `MAX_CONTAINER_CHUNKS` chunks,
            or the manifest would exceed `MAX_MANIFEST_LEN` bytes.
    """
    if not 1 <= chunk_size <= MAX_CHUNK_LEN:
        raise ValueError(f"chunk_size must be in 1..{MAX_CHUNK_LEN}, got {chunk_size}")

    count = -(-len(payload) // chunk_size)
    if count > MAX_CONTAINER_CHUNKS:
        raise TooLargeData("Container", limit=MAX_CONTAINER_CHUNKS, actual=count)

    header = ContainerHeader(version=CONTAINER_VERSION, mime=mime, info=info, size=len(payload))
    encoded_len = manifest_len(header, count)
    if encoded_len > MAX_MANIFEST_LEN:
        raise TooLargeData("Container", limit=MAX_MANIFEST_LEN, actual=encoded_len)

    view = memoryview(payload)
    chunks = [Chunk(view[i * chunk_size : (i + 1) * chunk_size]) for i in range(count)]
    container = Container(
        **dict(header),
        chunks=ChunkIdList(data=[chunk.chunk_id() for chunk in chunks]),
    )
    return container, chunks


def reassemble(container: Container, lookup: ChunkSource | Mapping[ChunkId, Chunk]) -> bytes:
    """
    Concatenate the chunks of a container in manifest order.

    Args:
        container: The manifest.
        lookup: A chunk source or a mapping from chunk id to chunk.

    Returns:
        The payload bytes.

    Raises:
        MissingChunk: If a referenced chunk is not available.
    """
    get = lookup.get if isinstance(lookup, Mapping) else lookup.get_chunk

    parts = []
    for chunk_id in container.chunks:
        chunk = get(chunk_id)
        if chunk is None:
            raise MissingChunk(chunk_id)
        parts.append(chunk)

    payload = b"".join(parts)
    if len(payload) != int(container.size):
        logger.warning(
            "Container %s declares %d bytes but its chunks hold %d",
            container.container_id(),
            int(container.size),
            len(payload),
        )
    return payload
