"""libotp.exc -- exceptions & warnings raised by libotp"""

from __future__ import annotations

__all__ = [
    # errors
    "UnknownHashError",
    "ExpectedTypeError",
    # warnings
    "OTPWarning",
    "OTPSecurityWarning",
    "OTPConfigWarning",
]


class UnknownHashError(ValueError):
    """
    Error raised when a digest name can't be resolved to a usable
    HMAC provider, either because the name is unknown,
    or because the backend doesn't support it on this system.

    .. attribute:: value

        the hash name which was requested.
    """

    def __init__(self, message: str | None = None, value: str | None = None) -> None:
        self.value = value
        if message is None:
            message = f"unknown hash algorithm: {value!r}"
        self.message = message
        ValueError.__init__(self, value, message)

    def __str__(self) -> str:
        return self.message


def ExpectedTypeError(value: object, expected: str, param: str) -> TypeError:  # noqa: N802
    """error message when param was supplied with the wrong type"""
    name = type(value).__name__ if value is not None else "None"
    return TypeError(f"{param} must be {expected}, not {name}")


class OTPWarning(UserWarning):
    """
    base class for libotp's user warnings.
    """


class OTPSecurityWarning(OTPWarning):
    """
    Special warning issued when libotp encounters
    something that might affect security,
    such as a secret key shorter than the recommended 80 bits.
    """


class OTPConfigWarning(OTPWarning):
    """
    Warning issued when a configuration source contains
    entries that libotp doesn't recognize; those entries are ignored.
    """
