"""
Chunks: bounded-size opaque binary units identified by their content.

A chunk carries at most `MAX_CHUNK_LEN` bytes, the capacity of a 3-byte
length prefix, so that one chunk always fits into a single transport packet.
Its identifier is the tagged hash of its bytes.

Application values are packed into chunks through a `ChunkCodec`. The codec
interface is polymorphic over the serialization strategy used; the built-in
`StrictChunkCodec` applies strict binary serialization.
"""

from __future__ import annotations

from typing import Any, ClassVar, Final, Generic, Protocol, TypeVar

from typing_extensions import Self

from storm.ids import ChunkId
from storm.types import MAX_MEDIUM_LEN, MediumByteList, StrictLengthError, StrictType

MAX_CHUNK_LEN: Final = MAX_MEDIUM_LEN
"""Maximum number of bytes in one chunk (2**24 - 1)."""


class TooLargeData(StrictLengthError):
    """Raised when data does not fit into a single chunk or container."""


class Chunk(MediumByteList):
    """
    An immutable byte string of at most `MAX_CHUNK_LEN` bytes.

    On the wire a chunk is a 3-byte little-endian length followed by the bytes.
    """

    LIMIT: ClassVar[int] = MAX_CHUNK_LEN

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create a chunk.

        Raises:
            TooLargeData: If the data is longer than `MAX_CHUNK_LEN`.
                Data is never truncated.
        """
        try:
            return super().__new__(cls, value)
        except StrictLengthError as e:
            raise TooLargeData(cls.__name__, limit=e.limit, actual=e.actual) from e

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Construct a chunk from raw bytes."""
        return cls(data)

    def chunk_id(self) -> ChunkId:
        """Content-derived identifier of this chunk."""
        return ChunkId.commit(bytes(self))

    def __repr__(self) -> str:
        return f"Chunk(<{len(self)} bytes>)"


T = TypeVar("T")
S = TypeVar("S", bound=StrictType)


class ChunkCodec(Protocol[T]):
    """Strategy for packing an application value into exactly one chunk."""

    def encode(self, value: T) -> Chunk:
        """
        Serialize `value` into a chunk.

        Raises:
            TooLargeData: If the serialized form does not fit into one chunk.
        """
        ...

    def decode(self, chunk: Chunk) -> T:
        """
        Recover a value from a chunk.

        Raises:
            StrictEncodingError: If the chunk does not hold a valid value.
        """
        ...


class StrictChunkCodec(Generic[S]):
    """Packs values using their strict binary serialization."""

    def __init__(self, value_type: type[S]) -> None:
        self.value_type = value_type

    def encode(self, value: S) -> Chunk:
        """Serialize `value` with strict encoding."""
        return Chunk(value.encode_bytes())

    def decode(self, chunk: Chunk) -> S:
        """Deserialize the whole chunk as one value of `value_type`."""
        return self.value_type.decode_bytes(bytes(chunk))

    def __repr__(self) -> str:
        return f"StrictChunkCodec({self.value_type.__name__})"


def encode_into_chunk(value: Any, codec: ChunkCodec[Any] | None = None) -> Chunk:
    """
    Pack an application value into a chunk.

    Without an explicit codec, a `Chunk` is returned as is and other
    strict-encodable values use `StrictChunkCodec`.

    Raises:
        TooLargeData: If the serialized value does not fit into one chunk.
        TypeError: If no codec is given and the value is not strict-encodable.
    """
    if codec is None:
        if isinstance(value, Chunk):
            return value
        if not isinstance(value, StrictType):
            raise TypeError(f"No chunk codec for {type(value).__name__}")
        codec = StrictChunkCodec(type(value))
    return codec.encode(value)


def decode_from_chunk(chunk: Chunk, codec: ChunkCodec[T]) -> T:
    """Recover an application value from a chunk using `codec`."""
    return codec.decode(chunk)
