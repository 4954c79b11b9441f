"""Bech32 text encoding for binary identifiers.

Thin wrapper over the BIP-173 reference implementation (``bech32``
distribution) with the regroup-then-encode helpers that address codecs
need. The character set and checksum are the standard ones, so strings
produced here decode in any bech32 implementation.
"""

from __future__ import annotations

from typing import Tuple

import bech32

from metaddr.errors import DecodeError, InvalidInputError


def convert_and_encode(hrp: str, data: bytes) -> str:
    """Regroup 8-bit data into 5-bit words and bech32 encode it under ``hrp``."""
    if not hrp:
        raise InvalidInputError("bech32 human readable prefix is required")
    words = bech32.convertbits(list(bytes(data)), 8, 5, True)
    if words is None:
        raise InvalidInputError("unable to convert data bytes to 5-bit words")
    return bech32.bech32_encode(hrp, words)


def decode_and_convert(text: str) -> Tuple[str, bytes]:
    """Decode a bech32 string into its HRP and 8-bit data.

    Raises:
        DecodeError: on invalid characters, mixed case, a bad checksum or
            non-zero padding bits.
    """
    hrp, words = bech32.bech32_decode(text)
    if hrp is None or words is None:
        raise DecodeError(f"decoding bech32 failed: invalid string {text!r}")
    data = bech32.convertbits(words, 5, 8, False)
    if data is None:
        raise DecodeError(f"decoding bech32 failed: invalid padding in {text!r}")
    return hrp, bytes(data)
