"""libotp.uri -- otpauth:// provisioning uris & qrcode links"""

from __future__ import annotations

import dataclasses
from urllib.parse import parse_qsl, quote, unquote, urlparse
from warnings import warn

from libotp.base32 import PADDING_CHAR
from libotp.engine import DEFAULT_DIGITS, DEFAULT_PERIOD
from libotp.exc import OTPWarning
from libotp.providers.names import norm_hash_name

__all__ = [
    "QR_CHART_URL",
    "ProvisioningInfo",
    "to_uri",
    "from_uri",
    "qr_chart_url",
]

#: chart service used by :func:`qr_chart_url`
QR_CHART_URL = "https://www.google.com/chart"

#: otpauth type rendered & accepted by this module
OTP_TYPE = "totp"


def _check_label(label: str | None) -> None:
    """
    check that label doesn't contain chars forbidden by KeyUriFormat
    """
    if label and ":" in label:
        raise ValueError("label may not contain ':'")


def _check_issuer(issuer: str | None) -> None:
    """
    check that issuer doesn't contain chars forbidden by KeyUriFormat
    """
    if issuer and ":" in issuer:
        raise ValueError("issuer may not contain ':'")


def _uri_error(reason: str) -> ValueError:
    """uri parsing helper -- creates preformatted error message"""
    return ValueError(f"Invalid otpauth uri: {reason}")


def _uri_parse_int(source: str, param: str) -> int:
    """uri parsing helper -- int() wrapper"""
    try:
        return int(source)
    except ValueError:
        raise _uri_error(f"Malformed {param!r} parameter") from None


def to_uri(
    secret: str,
    label: str,
    issuer: str | None = None,
    algorithm: str = "sha1",
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
) -> str:
    """
    serialize secret and configuration into a URI, per
    Google Auth's `KeyUriFormat <https://github.com/google/google-authenticator/wiki/Key-Uri-Format>`_.

    :arg secret:
        base32 text secret (padding is stripped).

    :arg label:
        Label displayed by the OTP client, e.g. ``"jsmith@example.org"``.
        May not contain ``:``.

    :param issuer:
        String identifying the token issuer (e.g. the network or service name).
        May not contain ``:``.

    :param algorithm:
        digest name the server validates with. Omitted from the URI when ``sha1``,
        since that's what clients assume.

    :raises ValueError:
        if the label is missing, or label / issuer contain invalid characters.

    Usage example::

        >>> to_uri("S3JDVB7QD2R7JPXX", "user@example.org", "example.org")
        'otpauth://totp/user@example.org?secret=S3JDVB7QD2R7JPXX&issuer=example.org'
    """
    if not label:
        raise ValueError("a label must be specified")
    _check_label(label)
    # NOTE: KeyUriFormat examples leave '@' in labels unescaped.
    label = quote(label, "@")

    args = [("secret", secret.rstrip(PADDING_CHAR))]
    algorithm = norm_hash_name(algorithm)
    if algorithm != "sha1":
        args.append(("algorithm", algorithm.upper()))
    if digits != DEFAULT_DIGITS:
        args.append(("digits", str(digits)))
    if period != DEFAULT_PERIOD:
        args.append(("period", str(period)))
    if issuer:
        _check_issuer(issuer)
        args.append(("issuer", issuer))

    # NOTE: not using urlencode(), it encodes ' ' as '+' instead of '%20'.
    argstr = "&".join(f"{key}={quote(value, '')}" for key, value in args)
    return f"otpauth://{OTP_TYPE}/{label}?{argstr}"


@dataclasses.dataclass(frozen=True)
class ProvisioningInfo:
    """Settings carried by an otpauth uri, as returned by :func:`from_uri`."""

    secret: str
    label: str
    issuer: str | None = None
    algorithm: str = "sha1"
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD

    def to_uri(self) -> str:
        return to_uri(
            self.secret,
            self.label,
            issuer=self.issuer,
            algorithm=self.algorithm,
            digits=self.digits,
            period=self.period,
        )


def from_uri(uri: str) -> ProvisioningInfo:
    """
    parse a URI as generated by :func:`to_uri` (or scanned from a qrcode).

    :raises ValueError:
        if the uri cannot be parsed or contains errors.
    """
    result = urlparse(uri.strip())
    if result.scheme != "otpauth":
        raise _uri_error("wrong uri scheme")
    if result.netloc != OTP_TYPE:
        raise _uri_error("unknown OTP type")

    # decode label from uri path
    label = result.path
    if label.startswith("/") and len(label) > 1:
        label = unquote(label[1:])
    else:
        raise _uri_error("missing label")

    # extract old-style issuer prefix
    if ":" in label:
        try:
            issuer, label = label.split(":")
        except ValueError:  # too many ":"
            raise _uri_error("malformed label") from None
    else:
        issuer = None
    label = label.strip()
    if not label:
        raise _uri_error("missing label")

    # parse query params
    params: dict[str, str] = {}
    for k, v in parse_qsl(result.query):
        if k in params:
            raise _uri_error(f"duplicate parameter ({k!r})")
        params[k] = v

    # synchronize issuer prefix w/ issuer param
    if issuer:
        if "issuer" not in params:
            params["issuer"] = issuer
        elif params["issuer"] != issuer:
            raise _uri_error("conflicting issuer identifiers")

    secret = params.pop("secret", None)
    if not secret:
        raise _uri_error("missing 'secret' parameter")
    kwds: dict = dict(secret=secret, label=label, issuer=params.pop("issuer", None))
    algorithm = params.pop("algorithm", None)
    if algorithm:
        kwds["algorithm"] = norm_hash_name(algorithm)
    digits = params.pop("digits", None)
    if digits:
        kwds["digits"] = digits = _uri_parse_int(digits, "digits")
        if digits < 6 or digits > 10:
            raise _uri_error("Malformed 'digits' parameter")
    period = params.pop("period", None)
    if period:
        kwds["period"] = period = _uri_parse_int(period, "period")
        if period < 1:
            raise _uri_error("Malformed 'period' parameter")
    if params:
        # malicious uri, or newer revision of KeyUriFormat?
        # either way, warn and ignore extra params.
        warn(f"unexpected parameters encountered in otp uri: {params!r}", OTPWarning)
    return ProvisioningInfo(**kwds)


def qr_chart_url(uri: str, size: int = 200) -> str:
    """
    return link to a qrcode image encoding **uri**, for operators
    who want to scan the secret into their phone instead of typing it.
    """
    return f"{QR_CHART_URL}?chs={size}x{size}&chld=M|0&cht=qr&chl={quote(uri, '')}"
