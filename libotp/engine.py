"""libotp.engine -- TOTP / RFC 6238 token generation & verification"""

from __future__ import annotations

import calendar
import dataclasses
import hmac
import struct
import time as _time
from typing import TYPE_CHECKING

from libotp import base32
from libotp._logging import logger
from libotp.exc import ExpectedTypeError

if TYPE_CHECKING:
    from typing import Callable

    from libotp.providers.abc import HashProvider

__all__ = [
    # constants
    "DEFAULT_WINDOW",
    "DEFAULT_DIGITS",
    "DEFAULT_PERIOD",
    # frontend
    "TOTPEngine",
    "TotpMatch",
    "time_to_counter",
    # functional interface
    "encode_secret",
    "decode_secret",
    "generate_code",
    "validate_code",
]

#: number of time steps searched on each side of "now" (+/-150 seconds)
DEFAULT_WINDOW = 5

#: number of digits in generated codes
DEFAULT_DIGITS = 6

#: seconds per time step
DEFAULT_PERIOD = 30

#: dynamic truncation reads 4 bytes at offset <= 15, so sha1 is the smallest usable digest
MIN_DIGEST_SIZE = 20

#: max value which fits the 8-byte counter block
MAX_COUNTER = (1 << 64) - 1

_pack_counter = struct.Struct(">Q").pack


def _check_serial(value, param: str, minval: int = 0) -> None:
    """
    check that serial value (e.g. 'window') is non-negative integer
    """
    if not isinstance(value, int):
        raise ExpectedTypeError(value, "int", param)
    if value < minval:
        raise ValueError(f"{param} must be >= {minval}")


def time_to_counter(time: int | float, period: int = DEFAULT_PERIOD) -> int:
    """
    convert unix timestamp to HOTP counter, i.e. ``floor(time / period)``.
    """
    return int(time // period)


@dataclasses.dataclass(frozen=True)
class TotpMatch:
    """
    Record returned by :meth:`TOTPEngine.match` on a successful match.

    .. attribute:: counter

        counter value which matched the code.

    .. attribute:: time

        timestamp the match was performed against.
    """

    counter: int
    time: int
    period: int = DEFAULT_PERIOD

    @property
    def expected_counter(self) -> int:
        """counter value expected for :attr:`time`"""
        return time_to_counter(self.time, self.period)

    @property
    def skipped(self) -> int:
        """
        How many steps were skipped between expected and actual matched counter
        value (may be positive, zero, or negative).
        """
        return self.counter - self.expected_counter

    def __repr__(self):
        return f"<TotpMatch counter={self.counter} time={self.time}>"


class TOTPEngine:
    """Generates and verifies time-based one-time passwords.

    The engine is immutable once created; to change settings
    (e.g. after reloading configuration), build a new one with :meth:`replace`
    and swap it in place of the old reference.

    :arg provider:
        :class:`~libotp.providers.abc.HashProvider` used to compute HMACs,
        or ``None``.  An engine without a provider is *unavailable*:
        :meth:`generate` returns ``None`` and :meth:`validate` returns ``False``.

    :param int window:
        how many time steps before and after "now" :meth:`validate` accepts.
        Defaults to ``5``.

    :param int digits:
        number of digits in generated codes, in range [6 .. 10]. Defaults to ``6``.

    :param int period:
        seconds per time step. Defaults to ``30``.

    :param now:
        Optional callable returning current unix time, used when
        :meth:`validate` isn't passed a timestamp.  Defaults to :func:`time.time`.

    Usage example::

        >>> from libotp.engine import TOTPEngine
        >>> from libotp.providers import lookup_provider
        >>> engine = TOTPEngine(lookup_provider("sha1"))
        >>> engine.generate("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", 1)
        '287082'
        >>> engine.validate("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", "287082", now=59)
        True
    """

    #: number of time steps searched each side of "now"
    window = DEFAULT_WINDOW

    #: number of digits in generated codes
    digits = DEFAULT_DIGITS

    #: number of seconds per counter step
    period = DEFAULT_PERIOD

    #: function to get system time in seconds, as needed by :meth:`validate`.
    now = _time.time

    def __init__(
        self,
        provider: HashProvider | None,
        *,
        window: int | None = None,
        digits: int | None = None,
        period: int | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        if provider is not None and provider.digest_size < MIN_DIGEST_SIZE:
            raise ValueError(
                f"{provider.name!r} digest too small for otp "
                f"(needs >= {MIN_DIGEST_SIZE} bytes)"
            )
        self.provider = provider

        if window is not None:
            _check_serial(window, "window")
            self.window = window

        if digits is not None:
            if not isinstance(digits, int):
                raise ExpectedTypeError(digits, "int", "digits")
            if digits < 6 or digits > 10:
                raise ValueError("digits must in range(6,11)")
            self.digits = digits

        if period is not None:
            _check_serial(period, "period", minval=1)
            self.period = period

        if now is not None:
            self.now = now

    def __repr__(self):
        name = self.provider.name if self.provider else None
        return (
            f"<TOTPEngine hash={name!r} window={self.window} "
            f"digits={self.digits} period={self.period}>"
        )

    @property
    def available(self) -> bool:
        """whether a hash provider is bound"""
        return self.provider is not None

    def replace(self, **kwds) -> TOTPEngine:
        """
        return a new engine with the specified settings changed.
        accepts the same keywords as the constructor (including ``provider``).
        """
        settings = dict(
            provider=self.provider,
            window=self.window,
            digits=self.digits,
            period=self.period,
            now=self.now,
        )
        settings.update(kwds)
        provider = settings.pop("provider")
        return type(self)(provider, **settings)

    # =========================================================================
    # time helpers
    # =========================================================================
    def normalize_time(self, time) -> int:
        """
        Normalize time value to unix epoch seconds.

        :arg time:
            Can be ``None``, :class:`!datetime`,
            or unix epoch timestamp as :class:`!float` or :class:`!int`.
            If ``None``, uses :attr:`now`.
            Naive datetimes are treated as UTC.

        :returns:
            unix epoch timestamp as :class:`int`.
        """
        if isinstance(time, int):
            return time
        if isinstance(time, float):
            return int(time)
        if time is None:
            return int(self.now())
        if hasattr(time, "utctimetuple"):
            # NOTE: utctimetuple() assumes naive datetimes are in UTC
            return calendar.timegm(time.utctimetuple())
        raise ExpectedTypeError(time, "int, float, or datetime", "time")

    # =========================================================================
    # token generation
    # =========================================================================
    def _generate(self, provider: HashProvider, key: bytes, counter: int) -> str:
        """
        implementation of lowlevel HOTP generation algorithm.

        :arg key: decoded secret key
        :arg counter: HOTP counter, as non-negative integer
        :returns: token as native string
        """
        digest = provider.hmac(key, _pack_counter(counter))
        assert len(digest) == provider.digest_size, "digest_size: sanity check failed"

        # derive 31-bit token value
        offset = digest[-1] & 0xF
        value = int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF

        digits = self.digits
        return "%0*d" % (digits, value % (10**digits))

    def generate(self, secret: str, counter: int) -> str | None:
        """
        Generate the code for a specified counter value.

        :arg secret:
            base32-encoded secret key.

        :arg counter:
            HOTP counter; for TOTP this is :func:`time_to_counter` of the current time.

        :raises ValueError:
            if **counter** doesn't fit in 8 unsigned bytes.

        :returns:
            zero-padded decimal code, or ``None`` if no hash provider is bound.
        """
        provider = self.provider
        if provider is None:
            return None
        if not isinstance(counter, int):
            raise ExpectedTypeError(counter, "int", "counter")
        if counter < 0 or counter > MAX_COUNTER:
            raise ValueError("counter must be in range(0, 2**64)")
        return self._generate(provider, base32.decode(secret), counter)

    # =========================================================================
    # token verification
    # =========================================================================
    def match(
        self,
        secret: str,
        code: str,
        now=None,
        window: int | None = None,
    ) -> TotpMatch | None:
        """
        Search the window around **now** for a counter whose code equals **code**.

        :arg secret:
            base32-encoded secret key.

        :arg code:
            code supplied by the client.

        :param now:
            time the code was received; int, float or datetime.
            Defaults to :attr:`now`.

        :param window:
            number of time steps to search before and after **now**.
            Defaults to :attr:`window`.

        :returns:
            :class:`TotpMatch` for the first (lowest) matching counter,
            or ``None`` if nothing matched or no hash provider is bound.
        """
        provider = self.provider
        if provider is None:
            logger.debug("no hash provider bound, rejecting code")
            return None
        if window is None:
            window = self.window
        elif not isinstance(window, int):
            raise ExpectedTypeError(window, "int", "window")
        if window < 0:
            return None

        if isinstance(code, str):
            code = code.encode("utf-8")
        elif not isinstance(code, bytes):
            return None
        if len(code) != self.digits:
            return None

        time = self.normalize_time(now)
        period = self.period
        start = max(0, time_to_counter(time - period * window, period))
        # end is inclusive, so window=0 still checks the current counter
        end = min(MAX_COUNTER, time_to_counter(time + period * window, period)) + 1

        key = base32.decode(secret)
        generate = self._generate
        counter = start
        while counter < end:
            if hmac.compare_digest(code, generate(provider, key, counter).encode("ascii")):
                result = TotpMatch(counter, time, period)
                logger.debug(
                    "code matched counter %d (skipped=%d)", counter, result.skipped
                )
                return result
            counter += 1
        return None

    def validate(
        self,
        secret: str,
        code: str,
        now=None,
        window: int | None = None,
    ) -> bool:
        """
        Check **code** against the window of counters around **now**.

        Takes the same arguments as :meth:`match`.
        Never raises for a wrong or malformed code, or a missing hash provider;
        all of those return ``False``.
        """
        return self.match(secret, code, now, window) is not None


# =============================================================================
# functional interface
# =============================================================================


def encode_secret(raw: bytes, length: int | None = None) -> str:
    """encode raw secret bytes for display & storage"""
    return base32.encode(raw, length)


def decode_secret(secret: str) -> bytes:
    """decode text secret back to raw bytes (lenient, never raises)"""
    return base32.decode(secret)


def generate_code(
    secret: str, counter: int, *, provider: HashProvider | None
) -> str | None:
    """generate code for **counter**; ``None`` if **provider** is ``None``"""
    return TOTPEngine(provider).generate(secret, counter)


def validate_code(
    secret: str,
    code: str,
    now: int,
    window: int = DEFAULT_WINDOW,
    *,
    provider: HashProvider | None,
) -> bool:
    """validate **code** within **window** steps of **now**"""
    return TOTPEngine(provider).validate(secret, code, now, window)
