"""
Wire codec for storm protocol messages.

FRAME FORMAT
------------
Every message travels as one frame::

    [type_code: u16 LE][message fields, strict encoding]

The frame boundary is provided by the transport; the codec rejects frames
with bytes left over after the message.


MESSAGE TABLE
-------------
`MESSAGE_TYPES` is the single, closed table of wire message variants. The
unmarshaller is built from it once, lazily, and is read-only afterwards, so
it can be shared freely between sessions and threads.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from storm.types import StrictDecodeError, Uint16

from .messages import (
    Accept,
    ActiveApps,
    AnnounceContainer,
    AppTopics,
    Decline,
    ListApps,
    ListTopics,
    Post,
    ProposeTopic,
    PullChunk,
    PullContainer,
    PushChunk,
    PushContainer,
    Read,
    Reject,
    StormMessage,
)

logger = logging.getLogger(__name__)

WIRE_VERSION: Final = 1
"""Version of the message table below."""

MESSAGE_TYPES: Final[tuple[type[StormMessage], ...]] = (
    ListApps,
    ActiveApps,
    ListTopics,
    AppTopics,
    ProposeTopic,
    Post,
    Read,
    Decline,
    Accept,
    PullContainer,
    AnnounceContainer,
    Reject,
    PushContainer,
    PullChunk,
    PushChunk,
)
"""Every wire message variant, in type code order."""


class UnknownMessageType(StrictDecodeError):
    """
    Raised when a frame carries a type code outside the message table.

    Attributes:
        type_code: The unrecognized code.
    """

    def __init__(self, type_code: int) -> None:
        self.type_code = type_code
        super().__init__("StormMessage", f"unknown message type {type_code:#06x}")


class Unmarshaller:
    """
    Decodes frames into message objects.

    Built from a sequence of message classes; rejects duplicate codes at
    construction. The code table is exposed read-only.
    """

    def __init__(self, message_types: tuple[type[StormMessage], ...] = MESSAGE_TYPES) -> None:
        table: dict[int, type[StormMessage]] = {}
        for message_type in message_types:
            code = message_type.TYPE_CODE
            if code in table:
                raise ValueError(
                    f"Type code {code:#06x} used by both "
                    f"{table[code].__name__} and {message_type.__name__}"
                )
            table[code] = message_type
        self._table = MappingProxyType(table)

    @property
    def table(self) -> Mapping[int, type[StormMessage]]:
        """Message class by type code."""
        return self._table

    def unmarshal(self, frame: bytes) -> StormMessage:
        """
        Decode one frame.

        Raises:
            UnknownMessageType: If the type code is not in the table.
            StrictEncodingError: If the message body is malformed, truncated,
                or followed by trailing bytes.
        """
        with io.BytesIO(frame) as stream:
            type_code = int(Uint16.deserialize(stream))
            message_type = self._table.get(type_code)
            if message_type is None:
                raise UnknownMessageType(type_code)
            message = message_type.deserialize(stream)
            remaining = len(frame) - stream.tell()
        if remaining:
            raise StrictDecodeError(message_type.__name__, f"{remaining} trailing bytes")
        return message


_unmarshaller: Unmarshaller | None = None
_unmarshaller_lock = threading.Lock()


def get_unmarshaller() -> Unmarshaller:
    """Return the process-wide unmarshaller, building it on first use."""
    global _unmarshaller
    if _unmarshaller is None:
        with _unmarshaller_lock:
            if _unmarshaller is None:
                _unmarshaller = Unmarshaller()
                logger.debug("Built unmarshaller for %d message types", len(MESSAGE_TYPES))
    return _unmarshaller


def encode_message(message: StormMessage) -> bytes:
    """Encode a message into a frame: type code, then the message fields."""
    frame = Uint16(message.TYPE_CODE).encode_bytes() + message.encode_bytes()
    logger.debug("Encoded %s into %d bytes", message, len(frame))
    return frame


def decode_message(frame: bytes) -> StormMessage:
    """
    Decode a frame with the shared unmarshaller.

    Raises:
        UnknownMessageType: If the type code is not in the table.
        StrictEncodingError: If the frame is malformed.
    """
    return get_unmarshaller().unmarshal(frame)
