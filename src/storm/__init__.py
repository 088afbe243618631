"""
Storm core: content-addressed chunks, containers and messages, and the
peer-to-peer protocol that moves them between nodes.
"""

from .app import StandardApp, StormApp
from .chunk import (
    MAX_CHUNK_LEN,
    Chunk,
    ChunkCodec,
    StrictChunkCodec,
    TooLargeData,
    decode_from_chunk,
    encode_into_chunk,
)
from .container import (
    MAX_CONTAINER_CHUNKS,
    MAX_MANIFEST_LEN,
    ChunkFullId,
    ChunkSource,
    Container,
    ContainerFullId,
    ContainerHeader,
    ContainerInfo,
    MissingChunk,
    manifest_len,
    reassemble,
    split,
)
from .ids import ChunkId, ContainerId, MesgId
from .mesg import Mesg, Topic, new_topic, reply

__all__ = [
    "StandardApp",
    "StormApp",
    "ChunkId",
    "ContainerId",
    "MesgId",
    "MAX_CHUNK_LEN",
    "Chunk",
    "ChunkCodec",
    "StrictChunkCodec",
    "TooLargeData",
    "encode_into_chunk",
    "decode_from_chunk",
    "MAX_CONTAINER_CHUNKS",
    "MAX_MANIFEST_LEN",
    "Container",
    "ContainerHeader",
    "ContainerInfo",
    "ContainerFullId",
    "ChunkFullId",
    "ChunkSource",
    "MissingChunk",
    "manifest_len",
    "split",
    "reassemble",
    "Topic",
    "Mesg",
    "new_topic",
    "reply",
]
