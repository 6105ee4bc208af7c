"""
libotp.base32 -- base32 codec for OTP secret keys

Encodes raw secret bytes into the ``A-Z2-7`` alphabet with ``=`` padding,
and decodes them back. Decoding is lenient: any character which isn't part
of the alphabet is skipped instead of rejected, so user-typed secrets
containing spaces, hyphens or stray padding still decode.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from libotp._utils.bytes import BYTES_TYPES
from libotp.exc import ExpectedTypeError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Callable

__all__ = [
    "ALPHABET",
    "PADDING_CHAR",
    "PaddingPolicy",
    "padding_length",
    "encode",
    "decode",
]

#: base32 charmap; a character's position is its 5-bit value
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

#: character used to pad encoded output to a multiple of 8
PADDING_CHAR = "="

PaddingPolicy = Literal["rfc4648", "legacy"]

#: number of padding chars, indexed by ``len(source) % 5``.
#: "legacy" pads a 2-byte tail with 3 chars instead of 4, which is what
#: previously deployed secrets were issued with.
_PADDING_TABLES: dict[str, tuple[int, ...]] = {
    "rfc4648": (0, 6, 4, 3, 1),
    "legacy": (0, 6, 3, 3, 1),
}

_ENCODE_MAP = ALPHABET.encode("ascii")
_DECODE_MAP = {value: idx for idx, value in enumerate(_ENCODE_MAP)}
_PADDING_BYTE = PADDING_CHAR.encode("ascii")


def padding_length(remainder: int, policy: PaddingPolicy = "rfc4648") -> int:
    """
    return number of padding characters appended to the encoding of a
    source whose length modulo 5 is **remainder**.
    """
    try:
        table = _PADDING_TABLES[policy]
    except KeyError:
        raise ValueError(f"unknown padding policy: {policy!r}") from None
    return table[remainder]


def _encode_blocks(next_value: Callable[[], int], chunks: int) -> Iterator[int]:
    """helper used by encode() to split 5-byte blocks into 5-bit groups"""
    #
    # output bit layout:
    #
    # 1st char:  v1 76543
    # 2nd char:  v1 .....210  +v2 76
    # 3rd char:  v2 54321
    # 4th char:  v2 0         +v3 7654
    # 5th char:  v3 3210      +v4 7
    # 6th char:  v4 65432
    # 7th char:  v4 10        +v5 765
    # 8th char:  v5 43210
    #
    idx = 0
    while idx < chunks:
        v1 = next_value()
        v2 = next_value()
        v3 = next_value()
        v4 = next_value()
        v5 = next_value()
        yield v1 >> 3
        yield ((v1 & 0x07) << 2) | (v2 >> 6)
        yield (v2 & 0x3F) >> 1
        yield ((v2 & 0x01) << 4) | (v3 >> 4)
        yield ((v3 & 0x0F) << 1) | (v4 >> 7)
        yield (v4 & 0x7F) >> 2
        yield ((v4 & 0x03) << 3) | (v5 >> 5)
        yield v5 & 0x1F
        idx += 1


def encode(
    source: bytes,
    length: int | None = None,
    padding: PaddingPolicy = "rfc4648",
) -> str:
    """encode bytes to a padded base32 string.

    :arg source:
        raw bytes to encode.

    :param length:
        number of bytes from **source** to encode, for callers holding
        a buffer larger than the secret itself. Defaults to ``len(source)``.
        If larger than the buffer, the missing bytes are encoded as zeros.

    :param padding:
        ``"rfc4648"`` (the default), or ``"legacy"`` to reproduce
        the padding of secrets issued by older deployments.

    :returns:
        native string whose length is always a multiple of 8.
    """
    if not isinstance(source, BYTES_TYPES):
        raise ExpectedTypeError(source, "bytes", "source")
    if length is None:
        length = len(source)
    elif length < 0:
        raise ValueError("length must be >= 0")
    chunks, tail = divmod(length, 5)
    pad = padding_length(tail, padding)

    data = bytes(source[:length]).ljust(length, b"\x00")
    if tail:
        # zero-fill final partial block
        data += bytes(5 - tail)
        chunks += 1

    gen = _encode_blocks(iter(data).__next__, chunks)
    result = bytes(map(_ENCODE_MAP.__getitem__, gen))
    if pad:
        result = result[:-pad] + _PADDING_BYTE * pad
    return result.decode("ascii")


def decode(source: str | bytes) -> bytes:
    """decode base32 string to bytes.

    Characters outside :data:`ALPHABET` (including padding, whitespace
    and lower-case letters) are skipped, so this never fails on malformed
    input; garbage in simply yields fewer bytes out.

    :arg source:
        base32 text, as native string or ascii bytes.

    :returns:
        decoded bytes.
    """
    if isinstance(source, str):
        # non-ascii chars can't be part of the alphabet anyway
        source = source.encode("ascii", "ignore")
    elif isinstance(source, BYTES_TYPES):
        source = bytes(source)
    else:
        raise ExpectedTypeError(source, "str or bytes", "source")

    lookup = _DECODE_MAP.get
    result = bytearray()
    buffer = 0
    left = 0
    for char in source:
        value = lookup(char)
        if value is None:
            continue
        # never more than 7 + 5 bits in use
        buffer = ((buffer << 5) | value) & 0xFFF
        left += 5
        if left >= 8:
            left -= 8
            result.append((buffer >> left) & 0xFF)

    # fewer than 5 bits left over is encoder padding; 5+ means a trailing
    # character was never consumed, so flush it into the high bits.
    if left >= 5:
        result.append((buffer << (8 - left)) & 0xFF)
    return bytes(result)
