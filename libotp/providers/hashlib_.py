"""libotp.providers.hashlib_ -- HMAC provider backed by the stdlib :mod:`hashlib`"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from libotp._utils.bytes import BYTES_TYPES
from libotp.exc import ExpectedTypeError, UnknownHashError
from libotp.providers.names import norm_hash_name

if TYPE_CHECKING:
    from typing import Callable

    from libotp._utils.protocols import HashConstructor

__all__ = [
    "HashlibProvider",
    "compile_hmac",
]

#: translation tables used by compile_hmac()
_TRANS_5C = bytes((x ^ 0x5C) for x in range(256))
_TRANS_36 = bytes((x ^ 0x36) for x in range(256))


def _get_hash_const(name: str) -> HashConstructor | None:
    """
    lookup hash constructor by name

    :arg name:
        name (normalized to hashlib format, e.g. ``"sha256"``)

    :returns:
        hash constructor, e.g. ``hashlib.sha256()``;
        or None if hash can't be located.
    """
    # check hashlib.<attr> for an efficient constructor
    if not name.startswith("_") and name not in ("new", "algorithms"):
        try:
            return getattr(hashlib, name)
        except AttributeError:
            pass

    # check hashlib.new() in case SSL supports the digest
    new_ssl_hash = hashlib.new
    try:
        # new() should throw ValueError if alg is unknown
        new_ssl_hash(name, b"")
    except ValueError:
        return None

    def const(msg=b""):
        return new_ssl_hash(name, msg)

    const.__name__ = name
    return const


def compile_hmac(
    const: HashConstructor, block_size: int, key: bytes
) -> Callable[[bytes], bytes]:
    """
    This function returns an HMAC function hardcoded with a specific digest & key,
    with signature ``hmac(msg) -> digest output``.

    It omits much of the setup cost and features of the stdlib :mod:`hmac`
    module, since the OTP engine calls it once per counter in the window.
    """
    # all the following was adapted from stdlib's hmac module

    # prepare key
    klen = len(key)
    if klen > block_size:
        key = const(key).digest()
        klen = len(key)
    if klen < block_size:
        key += b"\x00" * (block_size - klen)

    # create pre-initialized hash constructors
    _inner_copy = const(key.translate(_TRANS_36)).copy
    _outer_copy = const(key.translate(_TRANS_5C)).copy

    def hmac(msg: bytes) -> bytes:
        """generated by compile_hmac()"""
        inner = _inner_copy()
        inner.update(msg)
        outer = _outer_copy()
        outer.update(inner.digest())
        return outer.digest()

    return hmac


class HashlibProvider:
    """
    :class:`~libotp.providers.abc.HashProvider` which computes HMAC
    using a :mod:`hashlib` digest.

    :arg name:
        digest name, in any format accepted by
        :func:`~libotp.providers.names.norm_hash_name`.
        Defaults to ``"sha1"``.

    :raises ~libotp.exc.UnknownHashError:
        if the digest is unknown, disabled (e.g. by FIPS mode),
        or unusable for HMAC.
    """

    #: hashlib-compatible name (e.g. ``"sha256"``)
    name: str

    #: size of hmac output, in bytes
    digest_size: int

    #: internal block size of the digest, in bytes
    block_size: int

    def __init__(self, name: str = "sha1") -> None:
        name = norm_hash_name(name)
        const = _get_hash_const(name)
        if const is None:
            raise UnknownHashError(f"unsupported hash: {name!r}", name)

        # create hash instance to inspect
        try:
            hash = const()
        except (ValueError, TypeError) as err:
            # FIPS compliant systems will have a constructor,
            # which throws a ValueError when invoked.
            if "disabled for fips" in str(err).lower():
                msg = f"{name!r} hash disabled for fips"
            else:
                msg = f"internal error in {name!r} constructor\n({type(err).__name__}: {err})"
            raise UnknownHashError(msg, name) from err

        # variable-length digests (shake) can't be used for hmac
        if not hash.digest_size or hash.block_size < 16:
            raise UnknownHashError(f"{name!r} can't be used for hmac", name)

        self.name = name
        self.digest_size = hash.digest_size
        self.block_size = hash.block_size
        self._const = const

        #: (key, compiled hmac) for the most recently used key
        self._keyed_hmac: tuple[bytes, Callable[[bytes], bytes]] | None = None

    def __repr__(self):
        return f"<HashlibProvider({self.name!r}): digest_size={self.digest_size!r}>"

    def hmac(self, key: bytes, msg: bytes) -> bytes:
        """return HMAC of **msg** keyed with **key**"""
        if not isinstance(key, BYTES_TYPES):
            raise ExpectedTypeError(key, "bytes", "key")
        key = bytes(key)
        # reuse precomputed pads for repeat calls with the same key object
        cached = self._keyed_hmac
        if cached is None or cached[0] is not key:
            cached = self._keyed_hmac = (
                key,
                compile_hmac(self._const, self.block_size, key),
            )
        return cached[1](msg)
