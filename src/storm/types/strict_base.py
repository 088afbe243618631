"""Base classes and interfaces for all strictly encoded types."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import IO, Any

from typing_extensions import Iterator, Self

from .base import StrictBaseModel
from .exceptions import StrictDecodeError, StrictStreamError


def read_exact(stream: IO[bytes], size: int, type_name: str) -> bytes:
    """
    Read exactly `size` bytes from `stream`.

    Raises:
        StrictStreamError: If the stream ends first.
    """
    data = stream.read(size)
    if len(data) != size:
        raise StrictStreamError(type_name, expected_bytes=size, actual_bytes=len(data))
    return data


class StrictType(ABC):
    """
    Abstract base class for all strictly encoded types.

    Strict encoding is self-delimiting: every value knows how many bytes it
    occupies, either because its width is fixed or because it carries a
    length prefix. Decoding therefore needs no external scope.
    """

    @abstractmethod
    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serializes the object and writes it to a binary stream.

        Args:
            stream (IO[bytes]): The stream to write the serialized data to.

        Returns:
            int: The number of bytes written.
        """
        ...

    @classmethod
    @abstractmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Deserializes one value from a binary stream.

        Args:
            stream (IO[bytes]): The stream to read from.

        Returns:
            Self: An instance of the class.
        """
        ...

    def encode_bytes(self) -> bytes:
        """Serializes the object to a byte string."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """
        Deserializes a byte string into an object.

        Raises:
            StrictDecodeError: If bytes remain after the value was read.
        """
        with io.BytesIO(data) as stream:
            value = cls.deserialize(stream)
            remaining = len(data) - stream.tell()
        if remaining:
            raise StrictDecodeError(cls.__name__, f"{remaining} trailing bytes")
        return value


class StrictModel(StrictBaseModel, StrictType):
    """
    Base class for strict types that use Pydantic validation.

    Collections with a `data` field get natural iteration and indexing:
    - `for item in collection` instead of `for item in collection.data`
    - `collection[i]` instead of `collection.data[i]`
    - `len(collection)` instead of `len(collection.data)`
    """

    def __len__(self) -> int:
        """Return the length of the collection's data or number of container fields."""
        if hasattr(self, "data"):
            return len(self.data)
        return len(type(self).model_fields)

    def __iter__(self) -> Iterator[Any]:  # type: ignore[override]
        """Iterate over collection contents, or container (name, value) pairs."""
        if hasattr(self, "data"):
            return iter(self.data)
        return iter((name, getattr(self, name)) for name in type(self).model_fields)

    def __getitem__(self, key: Any) -> Any:
        """Get an item from the collection's data or container field by name."""
        if hasattr(self, "data"):
            return self.data[key]
        if isinstance(key, str) and key in type(self).model_fields:
            return getattr(self, key)
        raise KeyError(f"Invalid key '{key}' for {self.__class__.__name__}")
