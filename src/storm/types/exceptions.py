"""Exception hierarchy for the strict encoding type system."""

from __future__ import annotations

from typing import Any


class StrictEncodingError(Exception):
    """
    Base exception for all strict encoding errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class StrictTypeError(StrictEncodingError):
    """Base class for type-related errors."""


class StrictTypeDefinitionError(StrictTypeError):
    """
    Raised when a strict type class is incorrectly defined.

    Attributes:
        type_name: The name of the type with the definition error.
        missing_attr: The missing or invalid attribute name.
        detail: Additional context about the error.
    """

    def __init__(
        self,
        type_name: str,
        *,
        missing_attr: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.type_name = type_name
        self.missing_attr = missing_attr
        self.detail = detail

        if missing_attr:
            msg = f"{type_name} must define {missing_attr}"
        elif detail:
            msg = f"{type_name}: {detail}"
        else:
            msg = f"{type_name} has an invalid type definition"

        super().__init__(msg)


class StrictTypeCoercionError(StrictTypeError):
    """
    Raised when a value cannot be coerced to the expected strict type.

    Attributes:
        expected_type: The type that was expected.
        actual_type: The actual type of the value.
        value: The value that couldn't be coerced (truncated for display).
    """

    def __init__(
        self,
        expected_type: str,
        actual_type: str,
        value: Any = None,
    ) -> None:
        self.expected_type = expected_type
        self.actual_type = actual_type
        self.value = value

        msg = f"Expected {expected_type}, got {actual_type}"
        if value is not None:
            value_repr = repr(value)
            if len(value_repr) > 50:
                value_repr = value_repr[:47] + "..."
            msg = f"{msg}: {value_repr}"

        super().__init__(msg)


class StrictValueError(StrictEncodingError):
    """
    Base class for value-related errors.

    Raised when a value is invalid for an encoding, even if the type is correct.
    """


class StrictOverflowError(StrictValueError):
    """
    Raised when a numeric value is outside the valid range.

    Attributes:
        value: The value that caused the overflow.
        type_name: The strict type that couldn't hold the value.
        max_value: The maximum allowed value (inclusive).
    """

    def __init__(self, value: int, type_name: str, *, max_value: int) -> None:
        self.value = value
        self.type_name = type_name
        self.max_value = max_value

        super().__init__(f"{value} is out of range for {type_name} (valid range: [0, {max_value}])")


class StrictLengthError(StrictValueError):
    """
    Raised when a sequence exceeds the capacity of its length prefix.

    Attributes:
        type_name: The strict type with the length constraint.
        limit: The maximum number of elements or bytes.
        actual: The actual length received.
    """

    def __init__(self, type_name: str, *, limit: int, actual: int) -> None:
        self.type_name = type_name
        self.limit = limit
        self.actual = actual

        super().__init__(f"{type_name} length {actual} exceeds limit {limit}")


class StrictSerializationError(StrictEncodingError):
    """Base class for serialization-related errors."""


class StrictDecodeError(StrictSerializationError):
    """
    Raised when decoding bytes to a value fails.

    Attributes:
        type_name: The type being decoded.
        detail: Description of what went wrong.
    """

    def __init__(self, type_name: str, detail: str) -> None:
        self.type_name = type_name
        self.detail = detail

        super().__init__(f"Failed to decode {type_name}: {detail}")


class StrictStreamError(StrictSerializationError):
    """
    Raised when the stream ends before a value is fully read.

    Attributes:
        type_name: The type being processed when the error occurred.
        expected_bytes: Number of bytes expected.
        actual_bytes: Number of bytes received.
    """

    def __init__(self, type_name: str, *, expected_bytes: int, actual_bytes: int) -> None:
        self.type_name = type_name
        self.expected_bytes = expected_bytes
        self.actual_bytes = actual_bytes

        super().__init__(
            f"Stream ended prematurely while reading {type_name}: "
            f"expected {expected_bytes} bytes, got {actual_bytes}"
        )
