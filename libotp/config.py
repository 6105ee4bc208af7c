"""libotp.config -- configuration for building OTP engines"""

from __future__ import annotations

import dataclasses
import json
import os
from typing import TYPE_CHECKING, Any
from warnings import warn

from libotp._logging import logger
from libotp.engine import DEFAULT_DIGITS, DEFAULT_WINDOW, TOTPEngine
from libotp.exc import ExpectedTypeError, OTPConfigWarning
from libotp.providers import BACKENDS, lookup_provider, norm_hash_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Callable

__all__ = [
    "BACKEND_ENV_VAR",
    "DEFAULT_HASH",
    "TOTPConfig",
]

#: digest used when configuration doesn't name one
DEFAULT_HASH = "sha256"

#: environment variable naming the default provider backend
BACKEND_ENV_VAR = "LIBOTP_DEFAULT_BACKEND"


def _norm_backend(value: Any) -> str:
    if not isinstance(value, str):
        raise ExpectedTypeError(value, "str", "backend")
    return value.strip().lower()


def _default_backend() -> str:
    return _norm_backend(os.environ.get(BACKEND_ENV_VAR, "")) or "hashlib"


def _coerce_int(value: Any, param: str) -> int:
    """
    config helper -- accept ints, and strings containing ints
    (as read from config files).
    """
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"{param} must be an integer: {value!r}") from None
    raise ExpectedTypeError(value, "int", param)


@dataclasses.dataclass(frozen=True)
class TOTPConfig:
    """
    Settings used to build a :class:`~libotp.engine.TOTPEngine`.

    Instances are immutable; to reload configuration, parse a new
    config, call :meth:`build_engine`, and replace the application's
    reference to the old engine.

    :param hash:
        digest name. Defaults to ``"sha256"``.

    :param window:
        time steps accepted each side of "now". Defaults to ``5``.

    :param digits:
        number of digits in codes. Defaults to ``6``.

    :param backend:
        provider backend, ``"hashlib"`` or ``"cryptography"``.
        Defaults to ``$LIBOTP_DEFAULT_BACKEND``, or ``"hashlib"`` if unset.
    """

    hash: str = DEFAULT_HASH
    window: int = DEFAULT_WINDOW
    digits: int = DEFAULT_DIGITS
    backend: str = dataclasses.field(default_factory=_default_backend)

    def __post_init__(self) -> None:
        # normalize fields; frozen, so go through object.__setattr__
        object.__setattr__(self, "hash", norm_hash_name(self.hash))
        object.__setattr__(self, "backend", _norm_backend(self.backend))
        object.__setattr__(self, "window", _coerce_int(self.window, "window"))
        object.__setattr__(self, "digits", _coerce_int(self.digits, "digits"))
        if self.window < 0:
            raise ValueError("window must be >= 0")
        if self.digits < 6 or self.digits > 10:
            raise ValueError("digits must in range(6,11)")
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown hash backend: {self.backend!r}")

    # =========================================================================
    # parsing
    # =========================================================================
    @classmethod
    def from_mapping(cls, source: Mapping[str, Any]) -> TOTPConfig:
        """
        Create config from a mapping, such as a parsed config file section.
        Values may be strings; unknown keys are ignored with a warning.
        """
        names = {field.name for field in dataclasses.fields(cls)}
        kwds = {}
        unknown = []
        for key, value in source.items():
            if key in names:
                kwds[key] = value
            else:
                unknown.append(key)
        if unknown:
            warn(
                f"ignoring unknown otp config keys: {sorted(unknown)!r}",
                OTPConfigWarning,
                stacklevel=2,
            )
        return cls(**kwds)

    @classmethod
    def from_string(cls, source: str) -> TOTPConfig:
        """
        Create config from a string, either a json object,
        or a series of ``key: value`` lines (empty and ``#`` lines are ignored).
        """
        if not isinstance(source, str):
            raise ExpectedTypeError(source, "str", "source")
        if source.lstrip().startswith(("{", "[")):
            data = json.loads(source)
            if not isinstance(data, dict):
                raise TypeError("json config must be an object")
            return cls.from_mapping(data)

        def iter_pairs(source: str) -> Iterable[tuple[str, str]]:
            for line in source.splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    if ":" not in line:
                        raise ValueError(f"malformed config line: {line!r}")
                    key, value = line.split(":", 1)
                    yield key.strip(), value.strip()

        return cls.from_mapping(dict(iter_pairs(source)))

    # =========================================================================
    # engine
    # =========================================================================
    def build_engine(self, now: Callable[[], float] | None = None) -> TOTPEngine:
        """
        Build an engine for these settings.

        If the configured digest isn't available, the engine is returned
        without a provider, so it rejects every code instead of failing.
        """
        provider = lookup_provider(self.hash, backend=self.backend)
        if provider is None:
            logger.warning(
                "otp hash provider %r (%s) not loaded, otp validation disabled",
                self.hash,
                self.backend,
            )
        return TOTPEngine(provider, window=self.window, digits=self.digits, now=now)
