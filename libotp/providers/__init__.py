"""
libotp.providers -- keyed-hash (HMAC) capabilities for the OTP engine

The engine never resolves digests itself; it is handed an object
implementing :class:`HashProvider`. :func:`lookup_provider` is the
name-based way to get one, returning ``None`` when the requested
digest isn't available instead of failing.
"""

from __future__ import annotations

from libotp._logging import logger
from libotp.exc import UnknownHashError
from libotp.providers.abc import HashProvider
from libotp.providers.cryptography_ import CRYPTOGRAPHY_SUPPORT, CryptographyProvider
from libotp.providers.hashlib_ import HashlibProvider
from libotp.providers.names import norm_hash_name

__all__ = [
    "BACKENDS",
    "CRYPTOGRAPHY_SUPPORT",
    "CryptographyProvider",
    "HashProvider",
    "HashlibProvider",
    "clear_provider_cache",
    "lookup_provider",
    "norm_hash_name",
]

#: names accepted by lookup_provider()'s **backend** parameter
BACKENDS = ("hashlib", "cryptography")

#: cache of providers returned by lookup_provider()
_provider_cache: dict[tuple[str, str], HashProvider] = {}


def lookup_provider(name: str, backend: str = "hashlib") -> HashProvider | None:
    """
    Return a :class:`HashProvider` for the specified digest.

    :arg name:
        digest name, e.g. ``"sha1"``, ``"SHA-256"`` or ``"hash/sha256"``.

    :param backend:
        ``"hashlib"`` (the default) or ``"cryptography"``.

    :raises ValueError:
        if **backend** isn't one of :data:`BACKENDS`.

    :returns:
        provider instance, or ``None`` if the digest (or backend)
        isn't available on this system.  Multiple calls resolving to the
        same digest return the same instance.
    """
    if backend not in BACKENDS:
        raise ValueError(f"unknown hash backend: {backend!r}")
    key = (backend, norm_hash_name(name))
    try:
        return _provider_cache[key]
    except KeyError:
        pass

    if backend == "cryptography":
        if not CRYPTOGRAPHY_SUPPORT:
            logger.warning(
                "hash provider %r unavailable: 'cryptography' package not installed",
                name,
            )
            return None
        factory = CryptographyProvider
    else:
        factory = HashlibProvider

    try:
        provider = factory(name)
    except UnknownHashError as err:
        logger.warning("hash provider %r unavailable: %s", name, err)
        return None
    _provider_cache[key] = provider
    return provider


def clear_provider_cache() -> None:
    _provider_cache.clear()
