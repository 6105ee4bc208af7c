"""libotp.providers.names -- digest name normalization"""

from __future__ import annotations

import re

from libotp._logging import logger
from libotp.exc import ExpectedTypeError

__all__ = [
    "norm_hash_name",
]

#: list of known hash names, used by norm_hash_name()
_known_hash_names = [
    # format: (hashlib/ssl name, iana name or standin, other known aliases ...)
    ("md5", "md5"),
    ("sha1", "sha-1"),
    ("sha224", "sha-224", "sha2-224"),
    ("sha256", "sha-256", "sha2-256"),
    ("sha384", "sha-384", "sha2-384"),
    ("sha512", "sha-512", "sha2-512"),
    ("sha3_224", "sha3-224"),
    ("sha3_256", "sha3-256"),
    ("sha3_384", "sha3-384"),
    ("sha3_512", "sha3-512"),
    ("blake2b", "blake-2b"),
    ("blake2s", "blake-2s"),
]

#: prefix used by service-style names, e.g. ``"hash/sha256"``
_SERVICE_PREFIX = "hash-"


def _get_hash_aliases(name: str) -> tuple[str, ...]:
    """
    internal helper used by :func:`norm_hash_name` --
    normalize arbitrary hash name to hashlib format.

    :returns:
        tuple with 2+ elements: ``(hashlib_name, iana_name, ... 0+ aliases)``.
    """
    orig = name
    name = re.sub("[_ /]", "-", name.strip().lower())
    name = name.removeprefix(_SERVICE_PREFIX)

    def check_table(name):
        for row in _known_hash_names:
            if name in row:
                return row
        return None

    result = check_table(name)
    if result:
        return result

    # try to clean name up some more
    m = re.match(r"(?i)^(?P<name>[a-z]+)-?(?P<rev>\d)?-?(?P<size>\d{3,4})?$", name)
    if m:
        # roughly follows "SHA2-256" style format, normalize representation,
        # and checked table.
        iana_name, rev, size = m.group("name", "rev", "size")
        if rev:
            iana_name += rev
        hashlib_name = iana_name
        if size:
            iana_name += "-" + size
            if rev:
                hashlib_name += "_"
            hashlib_name += size
        result = check_table(iana_name)
        if result:
            return result

        logger.info(
            "normalizing unrecognized hash name %r => %r / %r",
            orig,
            hashlib_name,
            iana_name,
        )
    else:
        iana_name = name
        hashlib_name = name.replace("-", "_")
        logger.warning(
            "normalizing unrecognized hash name and format %r => %r / %r",
            orig,
            hashlib_name,
            iana_name,
        )

    return hashlib_name, iana_name


def norm_hash_name(name: str, format: str = "hashlib") -> str:
    """Normalize hash function name.

    :arg name:
        Original hash function name, e.g. ``"SHA-256"``, ``"sha2_256"``,
        or a service-style name such as ``"hash/sha256"``.
        Case is ignored, and underscores are converted to hyphens.

    :param format:
        ``"hashlib"`` (the default) for names compatible with :mod:`!hashlib`,
        or ``"iana"`` for the IANA-assigned name.

    :returns:
        Hash name as native :class:`!str`.
    """
    if isinstance(name, bytes):
        name = name.decode("utf-8")
    elif not isinstance(name, str):
        raise ExpectedTypeError(name, "str", "hash name")
    aliases = _get_hash_aliases(name)
    if format == "hashlib":
        return aliases[0]
    if format == "iana":
        return aliases[1]
    raise ValueError(f"unknown format: {format!r}")
