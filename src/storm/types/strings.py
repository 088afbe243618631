"""
Text strict types.

Strings are encoded as a 2-byte little-endian byte length followed by the
encoded text. `AsciiString` only admits 7-bit ASCII, `Utf8String` any
Unicode text whose UTF-8 form fits the prefix.
"""

from __future__ import annotations

from typing import IO, Any, ClassVar

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .constants import MAX_SMALL_LEN
from .exceptions import StrictDecodeError, StrictLengthError
from .strict_base import StrictType, read_exact
from .uint import Uint16


class BaseString(str, StrictType):
    """
    A base class for length-prefixed text that inherits from `str`.

    Subclasses set `ENCODING`, the codec used on the wire.
    """

    ENCODING: ClassVar[str]
    """Python codec name of the wire encoding."""

    LIMIT: ClassVar[int] = MAX_SMALL_LEN
    """Maximum encoded length in bytes."""

    def __new__(cls, value: str = "") -> Self:
        """
        Create and validate a new string.

        Raises:
            ValueError: If the text cannot be represented in `ENCODING`.
            StrictLengthError: If the encoded text is longer than `LIMIT`.
        """
        if not isinstance(value, str):
            raise TypeError(f"{cls.__name__} expects str, got {type(value).__name__}")
        try:
            encoded = value.encode(cls.ENCODING)
        except UnicodeEncodeError as e:
            raise ValueError(f"{cls.__name__} only admits {cls.ENCODING} text") from e
        if len(encoded) > cls.LIMIT:
            raise StrictLengthError(cls.__name__, limit=cls.LIMIT, actual=len(encoded))
        return super().__new__(cls, value)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the byte length prefix followed by the encoded text."""
        encoded = self.encode(self.ENCODING)
        return Uint16(len(encoded)).serialize(stream) + stream.write(encoded)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read the byte length prefix, then decode that many bytes."""
        length = int(Uint16.deserialize(stream))
        data = read_exact(stream, length, cls.__name__)
        try:
            return cls(data.decode(cls.ENCODING))
        except UnicodeDecodeError as e:
            raise StrictDecodeError(cls.__name__, f"invalid {cls.ENCODING} text") from e

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Accept instances as-is; validate plain strings through the constructor."""
        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                core_schema.chain_schema(
                    [core_schema.str_schema(), core_schema.no_info_plain_validator_function(cls)]
                ),
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class AsciiString(BaseString):
    """Length-prefixed 7-bit ASCII text, e.g. a MIME type."""

    ENCODING = "ascii"


class Utf8String(BaseString):
    """Length-prefixed UTF-8 text."""

    ENCODING = "utf-8"
