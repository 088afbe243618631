"""Strict binary encoding types shared by every storm data structure."""

from .base import StrictBaseModel
from .byte_arrays import ZERO_HASH, BaseByteList, BaseBytes, ByteList, Bytes32, MediumByteList
from .collections import MediumList, StrictList, StrictSet
from .constants import MAX_MEDIUM_LEN, MAX_SMALL_LEN
from .exceptions import (
    StrictDecodeError,
    StrictEncodingError,
    StrictLengthError,
    StrictOverflowError,
    StrictSerializationError,
    StrictStreamError,
    StrictTypeDefinitionError,
    StrictTypeError,
    StrictValueError,
)
from .record import Record
from .strict_base import StrictModel, StrictType
from .strings import AsciiString, Utf8String
from .uint import Uint8, Uint16, Uint24, Uint64

__all__ = [
    # Core types
    "Uint8",
    "Uint16",
    "Uint24",
    "Uint64",
    "BaseBytes",
    "Bytes32",
    "ZERO_HASH",
    "BaseByteList",
    "ByteList",
    "MediumByteList",
    "AsciiString",
    "Utf8String",
    "StrictList",
    "MediumList",
    "StrictSet",
    "Record",
    "StrictBaseModel",
    "StrictModel",
    "StrictType",
    # Limits
    "MAX_SMALL_LEN",
    "MAX_MEDIUM_LEN",
    # Exceptions
    "StrictEncodingError",
    "StrictTypeError",
    "StrictTypeDefinitionError",
    "StrictValueError",
    "StrictOverflowError",
    "StrictLengthError",
    "StrictSerializationError",
    "StrictDecodeError",
    "StrictStreamError",
]
