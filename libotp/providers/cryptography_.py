"""libotp.providers.cryptography_ -- HMAC provider backed by the `cryptography` package"""

from __future__ import annotations

from libotp._logging import logger
from libotp._utils.bytes import BYTES_TYPES
from libotp.exc import ExpectedTypeError, UnknownHashError
from libotp.providers.names import norm_hash_name

try:
    # only available if cryptography (https://cryptography.io) is installed
    from cryptography.hazmat.primitives import hashes as _cg_hashes
    from cryptography.hazmat.primitives import hmac as _cg_hmac
except ImportError:
    logger.debug("can't import 'cryptography' package, cryptography provider disabled")
    _cg_hashes = _cg_hmac = None

__all__ = [
    "CRYPTOGRAPHY_SUPPORT",
    "CryptographyProvider",
]

#: flag for detecting if the cryptography backend is present
CRYPTOGRAPHY_SUPPORT = _cg_hmac is not None

#: hashlib name -> attribute of :mod:`cryptography.hazmat.primitives.hashes`
_ALGORITHMS = {
    "sha1": "SHA1",
    "sha224": "SHA224",
    "sha256": "SHA256",
    "sha384": "SHA384",
    "sha512": "SHA512",
}


class CryptographyProvider:
    """
    :class:`~libotp.providers.abc.HashProvider` which computes HMAC
    using `cryptography <https://cryptography.io>`_ (OpenSSL bindings).

    :arg name:
        digest name; one of sha1, sha224, sha256, sha384, sha512
        (in any format accepted by :func:`~libotp.providers.names.norm_hash_name`).

    :raises RuntimeError:
        if the ``cryptography`` package isn't installed.

    :raises ~libotp.exc.UnknownHashError:
        if the digest isn't supported by this backend.
    """

    name: str
    digest_size: int

    def __init__(self, name: str = "sha1") -> None:
        if not CRYPTOGRAPHY_SUPPORT:
            raise RuntimeError("CryptographyProvider requires the 'cryptography' package")
        name = norm_hash_name(name)
        try:
            attr = _ALGORITHMS[name]
        except KeyError:
            raise UnknownHashError(
                f"hash not supported by cryptography backend: {name!r}", name
            ) from None
        self._algorithm = getattr(_cg_hashes, attr)()
        self.name = name
        self.digest_size = self._algorithm.digest_size

    def __repr__(self):
        return f"<CryptographyProvider({self.name!r}): digest_size={self.digest_size!r}>"

    def hmac(self, key: bytes, msg: bytes) -> bytes:
        """return HMAC of **msg** keyed with **key**"""
        if not isinstance(key, BYTES_TYPES):
            raise ExpectedTypeError(key, "bytes", "key")
        ctx = _cg_hmac.HMAC(bytes(key), self._algorithm)
        ctx.update(msg)
        return ctx.finalize()
