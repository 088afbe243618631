"""Storm peer-to-peer protocol: wire messages, codec and exchanges."""

from .codec import (
    MESSAGE_TYPES,
    WIRE_VERSION,
    UnknownMessageType,
    Unmarshaller,
    decode_message,
    encode_message,
    get_unmarshaller,
)
from .exchange import (
    RESPONSE_TYPES,
    ExchangeHandler,
    is_legal_response,
    is_refusal,
    is_request,
)
from .messages import (
    Accept,
    ActiveApps,
    AnnounceContainer,
    AppMessage,
    AppTopics,
    ChunkIdSet,
    Decline,
    ListApps,
    ListTopics,
    MesgIdSet,
    Post,
    ProposeTopic,
    PullChunk,
    PullContainer,
    PushChunk,
    PushContainer,
    Read,
    Reject,
    StormAppSet,
    StormMessage,
)
from .session import Session

__all__ = [
    # Messages
    "StormMessage",
    "AppMessage",
    "ListApps",
    "ActiveApps",
    "ListTopics",
    "AppTopics",
    "ProposeTopic",
    "Post",
    "Read",
    "Decline",
    "Accept",
    "PullContainer",
    "AnnounceContainer",
    "Reject",
    "PushContainer",
    "PullChunk",
    "PushChunk",
    "StormAppSet",
    "MesgIdSet",
    "ChunkIdSet",
    # Codec
    "WIRE_VERSION",
    "MESSAGE_TYPES",
    "Unmarshaller",
    "UnknownMessageType",
    "get_unmarshaller",
    "encode_message",
    "decode_message",
    # Exchanges
    "RESPONSE_TYPES",
    "ExchangeHandler",
    "is_request",
    "is_refusal",
    "is_legal_response",
    "Session",
]
