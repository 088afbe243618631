"""
Storm application namespace.

Every protocol message (except application discovery) is tagged with the
16-bit code of the application it belongs to, so that a node can route it to
the right handler.

Code ranges:

- `0x0000..0x7FFF`: reserved for applications registered as standards. A few
  codes are assigned (`StandardApp`); the rest are "future" codes.
- `0x8000..0xFFFF`: vendor range, free for unregistered use.

Vendors are advised to pick a random code in their range, for instance the
first two bytes of the SHA-256 of the application or domain name, OR-ed with
`0x8000`.
"""

from __future__ import annotations

from enum import IntEnum
from typing import ClassVar, Final

from storm.types import Uint16

VENDOR_MASK: Final = 0x8000
"""Bit set on every vendor-specific application code."""


class StandardApp(IntEnum):
    """Application codes assigned by the standards registry."""

    SYSTEM = 0x0000
    CHAT = 0x0001
    FILE_TRANSFER = 0x0002
    STORAGE = 0x0003
    SEARCH = 0x0004
    RGB_CONTRACTS = 0x0010
    RGB_TRANSFERS = 0x0011

    @property
    def label(self) -> str:
        """Display name, e.g. `file-transfer`."""
        return self.name.lower().replace("_", "-")


class StormApp(Uint16):
    """
    Storm application identifier.

    Conversion to and from the raw 16-bit code is total and lossless: every
    `u16` is exactly one of a standard app, a future app, or a vendor app.
    """

    SYSTEM: ClassVar[StormApp]
    CHAT: ClassVar[StormApp]
    FILE_TRANSFER: ClassVar[StormApp]
    STORAGE: ClassVar[StormApp]
    SEARCH: ClassVar[StormApp]
    RGB_CONTRACTS: ClassVar[StormApp]
    RGB_TRANSFERS: ClassVar[StormApp]

    @classmethod
    def from_code(cls, code: int) -> StormApp:
        """Return the application for a raw 16-bit code."""
        return cls(code)

    @property
    def app_code(self) -> int:
        """The raw 16-bit code."""
        return int(self)

    def to_code(self) -> int:
        """Return the raw 16-bit code."""
        return int(self)

    @property
    def standard(self) -> StandardApp | None:
        """The registered application, or None for future and vendor codes."""
        try:
            return StandardApp(int(self))
        except ValueError:
            return None

    @property
    def is_vendor(self) -> bool:
        """Whether the code lies in the vendor range."""
        return bool(int(self) & VENDOR_MASK)

    @property
    def is_future(self) -> bool:
        """Whether the code is reserved for a not-yet-assigned standard."""
        return not self.is_vendor and self.standard is None

    def __str__(self) -> str:
        if (standard := self.standard) is not None:
            return standard.label
        if self.is_vendor:
            return f"vendor({int(self):#06x})"
        return f"future({int(self):#06x})"


StormApp.SYSTEM = StormApp(StandardApp.SYSTEM)
StormApp.CHAT = StormApp(StandardApp.CHAT)
StormApp.FILE_TRANSFER = StormApp(StandardApp.FILE_TRANSFER)
StormApp.STORAGE = StormApp(StandardApp.STORAGE)
StormApp.SEARCH = StormApp(StandardApp.SEARCH)
StormApp.RGB_CONTRACTS = StormApp(StandardApp.RGB_CONTRACTS)
StormApp.RGB_TRANSFERS = StormApp(StandardApp.RGB_TRANSFERS)
