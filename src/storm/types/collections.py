"""Count-prefixed list and set strict types."""

from __future__ import annotations

from typing import (
    IO,
    Any,
    ClassVar,
    Generic,
    Iterator,
    Sequence,
    Type,
    TypeVar,
    cast,
    overload,
)

from pydantic import Field, field_validator
from typing_extensions import Self

from .constants import MAX_MEDIUM_LEN, MAX_SMALL_LEN
from .exceptions import (
    StrictDecodeError,
    StrictLengthError,
    StrictTypeCoercionError,
    StrictTypeDefinitionError,
)
from .strict_base import StrictModel, StrictType
from .uint import BaseUint, Uint16, Uint24

T = TypeVar("T", bound=StrictType)
"""
Generic type parameter for collection elements.

Bound to `StrictType` so that elements know how to encode themselves, and
used with `Generic[T]` so type checkers infer element types on access.
"""


class StrictList(StrictModel, Generic[T]):
    """
    Variable-length sequence with a count prefix.

    Subclasses must define:
        ELEMENT_TYPE: The strict type of each element
        LIMIT: The maximum number of elements allowed

    and may override PREFIX (default `Uint16`) for medium lists.

    Example:
        class ContainerIdList(StrictList[ContainerId]):
            ELEMENT_TYPE = ContainerId
            LIMIT = MAX_SMALL_LEN

    Encoding:
        [count: PREFIX][element 0][element 1]...
    """

    ELEMENT_TYPE: ClassVar[Type[StrictType]]
    """The strict type of elements in this list."""

    LIMIT: ClassVar[int]
    """The maximum number of elements allowed."""

    PREFIX: ClassVar[type[BaseUint]] = Uint16
    """Integer type of the element count prefix."""

    data: Sequence[T] = Field(default_factory=tuple)
    """
    The immutable sequence of elements.

    Accepts any iterable on input; stored as a tuple after validation.
    """

    @classmethod
    def _coerce_elements(cls, v: Any) -> tuple[StrictType, ...]:
        """Check the class definition, the limit, and convert each element."""
        if not hasattr(cls, "ELEMENT_TYPE") or not hasattr(cls, "LIMIT"):
            raise StrictTypeDefinitionError(cls.__name__, missing_attr="ELEMENT_TYPE and LIMIT")

        if isinstance(v, (str, bytes)) or not hasattr(v, "__iter__"):
            raise StrictTypeCoercionError("iterable", type(v).__name__, v)
        elements = tuple(v)

        if len(elements) > cls.LIMIT:
            raise StrictLengthError(cls.__name__, limit=cls.LIMIT, actual=len(elements))

        typed_values = []
        for element in elements:
            if isinstance(element, cls.ELEMENT_TYPE):
                typed_values.append(element)
            else:
                try:
                    typed_values.append(cast(Any, cls.ELEMENT_TYPE)(element))
                except (TypeError, ValueError) as e:
                    raise StrictTypeCoercionError(
                        cls.ELEMENT_TYPE.__name__, type(element).__name__, element
                    ) from e

        return tuple(typed_values)

    @field_validator("data", mode="before")
    @classmethod
    def _validate_list_data(cls, v: Any) -> tuple[StrictType, ...]:
        """Validate and convert input to a tuple of typed elements."""
        return cls._coerce_elements(v)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the element count followed by every element in order."""
        written = self.PREFIX(len(self.data)).serialize(stream)
        return written + sum(element.serialize(stream) for element in self.data)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read the element count, then that many elements."""
        count = int(cls.PREFIX.deserialize(stream))
        if count > cls.LIMIT:
            raise StrictDecodeError(cls.__name__, f"{count} elements exceed limit {cls.LIMIT}")
        return cls(data=[cls.ELEMENT_TYPE.deserialize(stream) for _ in range(count)])

    def __len__(self) -> int:
        """Return the number of elements in the list."""
        return len(self.data)

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        """Iterate over list elements."""
        return iter(self.data)

    @overload
    def __getitem__(self, index: int) -> T: ...
    @overload
    def __getitem__(self, index: slice) -> Sequence[T]: ...

    def __getitem__(self, index: int | slice) -> T | Sequence[T]:
        """Access element(s) by index or slice."""
        return self.data[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(data={list(self.data)!r})"

    @property
    def elements(self) -> list[T]:
        """Return the elements as a typed list."""
        return list(self.data)


class MediumList(StrictList[T]):
    """A list with a 3-byte count prefix (up to 2**24 - 1 elements)."""

    PREFIX = Uint24
    LIMIT = MAX_MEDIUM_LEN


class StrictSet(StrictList[T]):
    """
    Ordered set of unique elements.

    Elements are kept in ascending order, which is also their wire order, so
    two equal sets always encode to the same bytes. Input may be any
    iterable: duplicates are merged and order is normalized. Decoding is
    strict and rejects unsorted or repeated elements.
    """

    LIMIT = MAX_SMALL_LEN

    @field_validator("data", mode="before")
    @classmethod
    def _validate_list_data(cls, v: Any) -> tuple[StrictType, ...]:
        """Deduplicate and sort the typed elements."""
        return tuple(sorted(set(cls._coerce_elements(v))))  # type: ignore[type-var]

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read the set, rejecting non-canonical element order."""
        count = int(cls.PREFIX.deserialize(stream))
        if count > cls.LIMIT:
            raise StrictDecodeError(cls.__name__, f"{count} elements exceed limit {cls.LIMIT}")
        elements: list[Any] = [cls.ELEMENT_TYPE.deserialize(stream) for _ in range(count)]
        for previous, current in zip(elements, elements[1:]):
            if not previous < current:
                raise StrictDecodeError(cls.__name__, "elements are not strictly ascending")
        return cls(data=elements)

    def __contains__(self, item: object) -> bool:
        return item in self.data
