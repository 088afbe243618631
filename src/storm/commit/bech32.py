"""
Bech32m text encoding for identifiers shared out of band.

Implements the checksummed base-32 format of BIP-173 with the BIP-350
(bech32m) checksum constant:

    <hrp> "1" <data characters> <6 checksum characters>

The human-readable part (HRP) names the kind of data, e.g. `storm` for
container ids. Decoding validates the HRP, the character set, case
consistency, and the checksum, and rejects anything else.

References:
    https://github.com/bitcoin/bips/blob/master/bip-0173.mediawiki
    https://github.com/bitcoin/bips/blob/master/bip-0350.mediawiki
"""

from __future__ import annotations

from typing import Final, Iterable

CHARSET: Final = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
"""The 32 data characters, indexed by 5-bit value."""

BECH32M_CONST: Final = 0x2BC830A3
"""Checksum constant distinguishing bech32m from BIP-173 bech32."""

MAX_LENGTH: Final = 90
"""Maximum total string length."""

_GENERATOR: Final = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)


class Bech32Error(ValueError):
    """Raised when a string is not a valid bech32m encoding."""


def _polymod(values: Iterable[int]) -> int:
    """BCH checksum over GF(32)."""
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i, gen in enumerate(_GENERATOR):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    """Split each HRP character into its high and low bits for the checksum."""
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(hrp: str, data: list[int]) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ BECH32M_CONST
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def convert_bits(data: Iterable[int], from_bits: int, to_bits: int, *, pad: bool) -> list[int]:
    """
    Regroup a sequence of `from_bits`-wide values into `to_bits`-wide values.

    Raises:
        Bech32Error: If a value is out of range, or if `pad` is false and
            the leftover bits are not zero padding.
    """
    acc = 0
    bits = 0
    result = []
    max_value = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise Bech32Error(f"value {value} does not fit in {from_bits} bits")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((acc >> bits) & max_value)
    if pad:
        if bits:
            result.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        raise Bech32Error("invalid padding")
    return result


def encode(hrp: str, payload: bytes) -> str:
    """
    Encode `payload` under the human-readable part `hrp`.

    Raises:
        Bech32Error: If the HRP is invalid or the result is too long.
    """
    if not hrp or any(ord(c) < 33 or ord(c) > 126 for c in hrp) or hrp.lower() != hrp:
        raise Bech32Error(f"invalid human-readable part {hrp!r}")
    data = convert_bits(payload, 8, 5, pad=True)
    combined = data + _create_checksum(hrp, data)
    text = hrp + "1" + "".join(CHARSET[d] for d in combined)
    if len(text) > MAX_LENGTH:
        raise Bech32Error(f"encoding is {len(text)} characters, limit is {MAX_LENGTH}")
    return text


def decode(expected_hrp: str, text: str) -> bytes:
    """
    Decode a bech32m string and return its payload.

    Raises:
        Bech32Error: On a wrong HRP, mixed case, invalid characters, bad
            length, or checksum mismatch.
    """
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise Bech32Error("invalid character")
    if text.lower() != text and text.upper() != text:
        raise Bech32Error("mixed case")
    if len(text) > MAX_LENGTH:
        raise Bech32Error(f"string is {len(text)} characters, limit is {MAX_LENGTH}")

    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise Bech32Error("missing separator or checksum")

    hrp, data_part = text[:separator], text[separator + 1 :]
    if hrp != expected_hrp:
        raise Bech32Error(f"expected human-readable part {expected_hrp!r}, got {hrp!r}")

    if any(c not in CHARSET for c in data_part):
        raise Bech32Error("invalid data character")
    data = [CHARSET.index(c) for c in data_part]
    if _polymod(_hrp_expand(hrp) + data) != BECH32M_CONST:
        raise Bech32Error("checksum mismatch")

    return bytes(convert_bits(data[:-6], 5, 8, pad=False))
