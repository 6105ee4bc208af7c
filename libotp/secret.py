"""libotp.secret -- helpers for issuing new shared secrets"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING
from warnings import warn

from libotp import base32
from libotp._utils.bytes import BYTES_TYPES
from libotp._utils.str import group_string
from libotp.exc import ExpectedTypeError, OTPSecurityWarning

if TYPE_CHECKING:
    from typing import Callable

__all__ = [
    "DEFAULT_SECRET_SIZE",
    "MIN_SECRET_SIZE",
    "new_secret",
    "generate_secret",
    "pretty_secret",
]

#: number of random bytes in generated secrets (80 bits)
DEFAULT_SECRET_SIZE = 10

#: minimum number of bytes recommended for a secret
MIN_SECRET_SIZE = 10


def new_secret(raw: bytes) -> str:
    """
    Encode caller-supplied random bytes as a text secret, ready
    for display and storage.

    :arg raw:
        random bytes from a cryptographically secure source.

    :returns:
        base32 text secret.
    """
    if not isinstance(raw, BYTES_TYPES):
        raise ExpectedTypeError(raw, "bytes", "raw")
    if len(raw) < MIN_SECRET_SIZE:
        # only a warning, so callers can still re-encode existing short keys
        warn(
            f"for security purposes, secret key should be >= {MIN_SECRET_SIZE} bytes",
            OTPSecurityWarning,
            stacklevel=2,
        )
    return base32.encode(raw)


def generate_secret(
    size: int = DEFAULT_SECRET_SIZE,
    randbytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """
    Generate a new random text secret.

    :param size:
        number of random bytes. Defaults to 10 (80 bits).

    :param randbytes:
        random source, called as ``randbytes(size)``.
        Defaults to :func:`secrets.token_bytes`.

    :raises ValueError:
        if **size** is below the 10 byte minimum,
        or **randbytes** returned the wrong number of bytes.
    """
    if size < MIN_SECRET_SIZE:
        raise ValueError(
            f"for security purposes, secret key must be >= {MIN_SECRET_SIZE} bytes"
        )
    raw = randbytes(size)
    if len(raw) != size:
        raise ValueError(f"random source returned {len(raw)} bytes, expected {size}")
    return base32.encode(raw)


def pretty_secret(secret: str, sep: str = "-") -> str:
    """
    pretty-print a text secret.

    This is mainly useful for situations where the user cannot get the qrcode to work,
    and must enter the key manually into their OTP client.
    Padding is removed, and the key is broken into groups.

    Usage example::

        >>> pretty_secret("S3JDVB7QD2R7JPXX")
        'S3JD-VB7Q-D2R7-JPXX'

    Since :func:`~libotp.base32.decode` skips separators,
    the pretty-printed form decodes to the same bytes.
    """
    secret = secret.rstrip(base32.PADDING_CHAR)
    if sep:
        secret = group_string(secret, sep)
    return secret
