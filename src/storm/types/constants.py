"""Constants used throughout the strict encoding layer."""

from __future__ import annotations

from typing import Final

MAX_SMALL_LEN: Final = 2**16 - 1
"""Capacity of a field with a 2-byte length prefix."""

MAX_MEDIUM_LEN: Final = 2**24 - 1
"""Capacity of a "medium" field with a 3-byte length prefix."""

BYTE_ORDER: Final = "little"
"""Byte order of every fixed-width integer on the wire."""
