from typing import Protocol

__all__ = ["HashProvider"]


class HashProvider(Protocol):
    """Keyed-hash capability consumed by the OTP engine."""

    @property
    def name(self) -> str:
        """hashlib-style digest name, e.g. ``"sha256"``"""
        ...

    @property
    def digest_size(self) -> int:
        """size of :meth:`hmac` output, in bytes"""
        ...

    def hmac(self, key: bytes, msg: bytes) -> bytes: ...
