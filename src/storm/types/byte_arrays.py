"""
Byte array strict types.

This module provides two families of byte types:

- Fixed-length byte vectors (`Bytes32`): exactly LENGTH bytes, no prefix.
- Variable-length byte lists (`ByteList`, `MediumByteList`): a little-endian
  length prefix followed by the raw bytes, bounded by the prefix capacity.
"""

from __future__ import annotations

from typing import IO, Any, ClassVar, Iterable, SupportsIndex

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .constants import MAX_MEDIUM_LEN, MAX_SMALL_LEN
from .exceptions import StrictLengthError, StrictTypeDefinitionError
from .strict_base import StrictType, read_exact
from .uint import BaseUint, Uint16, Uint24


def _coerce_to_bytes(value: Any) -> bytes:
    """
    Coerce a variety of inputs to raw bytes.

    Accepts:
      - `bytes` / `bytearray` / `memoryview` (returned as immutable `bytes`)
      - Iterables of integers in [0, 255]
      - Hex strings, with or without a '0x' prefix (e.g. "0xdeadbeef" or "deadbeef")

    Raises:
      ValueError / TypeError if conversion is not possible or out-of-range.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value.removeprefix("0x"))
    if isinstance(value, Iterable):
        return bytes(bytearray(value))
    return bytes(value)


def _bytes_core_schema(cls: type, max_length: int | None = None) -> core_schema.CoreSchema:
    """
    Pydantic schema shared by all byte types.

    1. If the input is already an instance of the class, accept it.
    2. Otherwise, validate raw bytes (or a hex string in JSON mode) and
       instantiate the class.
    3. For serialization (e.g., to JSON), convert to a hex string.
    """
    from_bytes_validator = core_schema.no_info_plain_validator_function(cls)

    python_schema = core_schema.chain_schema(
        [core_schema.bytes_schema(max_length=max_length), from_bytes_validator]
    )
    json_schema = core_schema.chain_schema([core_schema.str_schema(), from_bytes_validator])

    return core_schema.json_or_python_schema(
        json_schema=json_schema,
        python_schema=core_schema.union_schema(
            [core_schema.is_instance_schema(cls), python_schema]
        ),
        serialization=core_schema.plain_serializer_function_ser_schema(lambda x: x.hex()),
    )


class BaseBytes(bytes, StrictType):
    """
    A base class for fixed-length byte types that inherits from `bytes`.

    Subclasses set:
      - `LENGTH`: exact number of bytes the instance must contain.

    Instances are immutable byte objects with strict length checking.
    """

    LENGTH: ClassVar[int]
    """The exact number of bytes (overridden by subclasses)."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new Bytes instance.

        Args:
            value: Any value coercible to bytes (see `_coerce_to_bytes`).

        Raises:
            ValueError: If the resulting byte length differs from `LENGTH`.
        """
        if not hasattr(cls, "LENGTH"):
            raise StrictTypeDefinitionError(cls.__name__, missing_attr="LENGTH")

        b = _coerce_to_bytes(value)
        if len(b) != cls.LENGTH:
            raise ValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(b)}")
        return super().__new__(cls, b)

    @classmethod
    def zero(cls) -> Self:
        """Create a new instance filled with zero bytes."""
        return cls(b"\x00" * cls.LENGTH)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the raw bytes to `stream`; fixed-length values carry no prefix."""
        return stream.write(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read exactly `LENGTH` bytes from `stream` and build an instance."""
        return cls(read_exact(stream, cls.LENGTH, cls.__name__))

    def encode_bytes(self) -> bytes:
        """Return the value's canonical byte representation."""
        return bytes(self)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""
        return _bytes_core_schema(cls, cls.LENGTH)

    def __repr__(self) -> str:
        """Return a string representation of the bytes."""
        return f"{type(self).__name__}({self.hex()})"

    def __hash__(self) -> int:
        """Return the hash of the bytes."""
        return hash((type(self), bytes(self)))

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return bytes(self).hex() if sep is None else bytes(self).hex(sep, bytes_per_sep)


class Bytes32(BaseBytes):
    """Fixed-size byte array of exactly 32 bytes."""

    LENGTH = 32


ZERO_HASH: Bytes32 = Bytes32.zero()
"""A 32-byte value of all zeros."""


class BaseByteList(bytes, StrictType):
    """
    A base class for length-prefixed variable byte strings.

    Subclasses set:
      - `PREFIX`: the unsigned integer type of the length prefix.
      - `LIMIT`: maximum number of bytes, bounded by the prefix capacity.
    """

    PREFIX: ClassVar[type[BaseUint]]
    """Integer type of the length prefix."""

    LIMIT: ClassVar[int]
    """Maximum number of bytes the instance may contain."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new byte list.

        Raises:
            StrictLengthError: If the value is longer than `LIMIT`.
        """
        if not hasattr(cls, "LIMIT") or not hasattr(cls, "PREFIX"):
            raise StrictTypeDefinitionError(cls.__name__, missing_attr="LIMIT and PREFIX")

        b = _coerce_to_bytes(value)
        if len(b) > cls.LIMIT:
            raise StrictLengthError(cls.__name__, limit=cls.LIMIT, actual=len(b))
        return super().__new__(cls, b)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the length prefix followed by the raw bytes."""
        written = self.PREFIX(len(self)).serialize(stream)
        return written + stream.write(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read the length prefix, then exactly that many bytes."""
        length = int(cls.PREFIX.deserialize(stream))
        return cls(read_exact(stream, length, cls.__name__))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""
        return _bytes_core_schema(cls)

    def __repr__(self) -> str:
        """Return a string representation of the byte list."""
        return f"{type(self).__name__}({self.hex()})"

    def __hash__(self) -> int:
        """Return the hash of the byte list."""
        return hash((type(self), bytes(self)))

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return bytes(self).hex() if sep is None else bytes(self).hex(sep, bytes_per_sep)


class ByteList(BaseByteList):
    """Byte string with a 2-byte length prefix (up to 65535 bytes)."""

    PREFIX = Uint16
    LIMIT = MAX_SMALL_LEN


class MediumByteList(BaseByteList):
    """Byte string with a 3-byte length prefix (up to 2**24 - 1 bytes)."""

    PREFIX = Uint24
    LIMIT = MAX_MEDIUM_LEN
