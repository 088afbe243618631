"""
Strict Record Type: ordered heterogeneous structures with named fields.

Records are the primary way to define structured data on the wire. A
record encodes as the plain concatenation of its field encodings, in
definition order. There is no header and no offset table: every field is
self-delimiting.

Example:
    >>> class ChunkFullId(Record):
    ...     container_id: ContainerId
    ...     chunk_id: ChunkId

Serialization format:
    [field_1][field_2]...[field_n]
"""

from __future__ import annotations

from typing import IO, Type, cast

from pydantic import ValidationError
from typing_extensions import Self

from .exceptions import StrictDecodeError, StrictTypeDefinitionError
from .strict_base import StrictModel, StrictType


class Record(StrictModel):
    """
    A strict, ordered collection of heterogeneous named fields.

    Every field annotation must be a `StrictType` subclass.
    """

    @classmethod
    def _field_types(cls) -> list[tuple[str, Type[StrictType]]]:
        """Return `(name, type)` for every field in definition order."""
        fields = []
        for name, info in cls.model_fields.items():
            annotation = info.annotation
            if not (isinstance(annotation, type) and issubclass(annotation, StrictType)):
                raise StrictTypeDefinitionError(
                    cls.__name__, detail=f"field '{name}' is not a strict type"
                )
            fields.append((name, cast(Type[StrictType], annotation)))
        return fields

    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serialize every field in definition order.

        Args:
            stream: Binary stream to write serialized bytes to.

        Returns:
            Number of bytes written to the stream.
        """
        return sum(getattr(self, name).serialize(stream) for name, _ in self._field_types())

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Deserialize every field in definition order.

        Raises:
            StrictDecodeError: If the decoded fields do not form a valid record.
            StrictStreamError: If the stream ends unexpectedly.
        """
        fields = {name: field_type.deserialize(stream) for name, field_type in cls._field_types()}
        try:
            return cls(**fields)
        except ValidationError as e:
            raise StrictDecodeError(cls.__name__, str(e)) from e

    def __repr__(self) -> str:
        field_strs = [f"{name}={getattr(self, name)!r}" for name in type(self).model_fields]
        return f"{type(self).__name__}({' '.join(field_strs)})"
