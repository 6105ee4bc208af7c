import datetime

import pytest

from libotp import base32
from libotp.engine import (
    DEFAULT_DIGITS,
    DEFAULT_WINDOW,
    TOTPEngine,
    TotpMatch,
    decode_secret,
    encode_secret,
    generate_code,
    time_to_counter,
    validate_code,
)
from libotp.providers import HashlibProvider, lookup_provider

RFC_SECRET = base32.encode(b"12345678901234567890")

#: RFC 4226 appendix D, counters 0..9
HOTP_VECTORS = [
    "755224",
    "287082",
    "359152",
    "969429",
    "338314",
    "254676",
    "287922",
    "162583",
    "399871",
    "520489",
]

#: RFC 6238 appendix B, keyed per digest
TOTP_KEYS = {
    "sha1": b"12345678901234567890",
    "sha256": b"12345678901234567890123456789012",
    "sha512": b"1234567890" * 6 + b"1234",
}

TOTP_VECTORS = [
    (59, "sha1", "94287082"),
    (59, "sha256", "46119246"),
    (59, "sha512", "90693936"),
    (1111111109, "sha1", "07081804"),
    (1111111109, "sha256", "68084774"),
    (1111111109, "sha512", "25091201"),
    (1111111111, "sha1", "14050471"),
    (1111111111, "sha256", "67062674"),
    (1111111111, "sha512", "99943326"),
    (1234567890, "sha1", "89005924"),
    (1234567890, "sha256", "91819424"),
    (1234567890, "sha512", "93441116"),
    (2000000000, "sha1", "69279037"),
    (2000000000, "sha256", "90698825"),
    (2000000000, "sha512", "38618901"),
    (20000000000, "sha1", "65353130"),
    (20000000000, "sha256", "77737706"),
    (20000000000, "sha512", "47863826"),
]

#: arbitrary timestamp in the middle of a time step
NOW = 1_000_000 * 30 + 7


@pytest.fixture
def engine() -> TOTPEngine:
    return TOTPEngine(HashlibProvider("sha1"))


@pytest.fixture
def engine8() -> TOTPEngine:
    # 8 digits makes accidental matches across the window negligible
    return TOTPEngine(HashlibProvider("sha256"), digits=8)


def test_defaults(engine: TOTPEngine) -> None:
    assert engine.window == DEFAULT_WINDOW == 5
    assert engine.digits == DEFAULT_DIGITS == 6
    assert engine.period == 30
    assert engine.available


@pytest.mark.parametrize(("counter", "code"), enumerate(HOTP_VECTORS))
def test_hotp_vectors(engine: TOTPEngine, counter: int, code: str) -> None:
    assert engine.generate(RFC_SECRET, counter) == code


@pytest.mark.parametrize(("time", "name", "code"), TOTP_VECTORS)
def test_totp_vectors(time: int, name: str, code: str) -> None:
    secret = base32.encode(TOTP_KEYS[name])
    counter = time_to_counter(time)

    engine = TOTPEngine(HashlibProvider(name), digits=8)
    assert engine.generate(secret, counter) == code
    assert engine.validate(secret, code, now=time)

    engine = TOTPEngine(HashlibProvider(name))
    assert engine.generate(secret, counter) == code[-6:]
    assert engine.validate(secret, code[-6:], now=time)


def test_generate_is_deterministic(engine: TOTPEngine) -> None:
    secret = base32.encode(bytes(range(1, 11)))
    assert engine.generate(secret, 12345) == engine.generate(secret, 12345)
    other = TOTPEngine(HashlibProvider("sha1"))
    assert other.generate(secret, 12345) == engine.generate(secret, 12345)


def test_generate_zero_pads(engine: TOTPEngine) -> None:
    secret = base32.encode(bytes(range(1, 11)))
    for counter in range(200):
        code = engine.generate(secret, counter)
        assert code is not None
        assert len(code) == 6
        assert code.isdigit()


def test_generate_accepts_grouped_secret(engine: TOTPEngine) -> None:
    grouped = "GEZD GNBV-GY3T QOJQ GEZD GNBV GY3T QOJQ"
    assert engine.generate(grouped, 1) == HOTP_VECTORS[1]


@pytest.mark.parametrize("counter", [-1, 1 << 64])
def test_generate_counter_range(engine: TOTPEngine, counter: int) -> None:
    with pytest.raises(ValueError):
        engine.generate(RFC_SECRET, counter)


def test_generate_counter_limits(engine: TOTPEngine) -> None:
    assert engine.generate(RFC_SECRET, 0) == HOTP_VECTORS[0]
    assert engine.generate(RFC_SECRET, (1 << 64) - 1) is not None


def test_generate_counter_type(engine: TOTPEngine) -> None:
    with pytest.raises(TypeError):
        engine.generate(RFC_SECRET, "1")  # type: ignore[arg-type]


@pytest.mark.parametrize("offset", range(-DEFAULT_WINDOW, DEFAULT_WINDOW + 1))
def test_validate_inside_window(engine8: TOTPEngine, offset: int) -> None:
    code = engine8.generate(RFC_SECRET, time_to_counter(NOW) + offset)
    assert engine8.validate(RFC_SECRET, code, now=NOW)


@pytest.mark.parametrize("offset", [-DEFAULT_WINDOW - 1, DEFAULT_WINDOW + 1, 50])
def test_validate_outside_window(engine8: TOTPEngine, offset: int) -> None:
    code = engine8.generate(RFC_SECRET, time_to_counter(NOW) + offset)
    assert not engine8.validate(RFC_SECRET, code, now=NOW)


def test_validate_window_zero(engine8: TOTPEngine) -> None:
    counter = time_to_counter(NOW)
    code = engine8.generate(RFC_SECRET, counter)
    assert engine8.validate(RFC_SECRET, code, now=NOW, window=0)
    for offset in (-1, 1):
        code = engine8.generate(RFC_SECRET, counter + offset)
        assert not engine8.validate(RFC_SECRET, code, now=NOW, window=0)


def test_validate_window_setting(engine8: TOTPEngine) -> None:
    code = engine8.generate(RFC_SECRET, time_to_counter(NOW) + 2)
    assert not engine8.replace(window=1).validate(RFC_SECRET, code, now=NOW)
    assert engine8.replace(window=2).validate(RFC_SECRET, code, now=NOW)


def test_validate_negative_window(engine: TOTPEngine) -> None:
    code = engine.generate(RFC_SECRET, time_to_counter(NOW))
    assert not engine.validate(RFC_SECRET, code, now=NOW, window=-1)


def test_validate_window_type(engine: TOTPEngine) -> None:
    with pytest.raises(TypeError):
        engine.validate(RFC_SECRET, "287082", now=59, window="1")  # type: ignore[arg-type]


def test_validate_near_epoch(engine: TOTPEngine) -> None:
    # window extends before counter 0, which is clamped rather than failing
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[0], now=0)
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[5], now=0)
    assert not engine.validate(RFC_SECRET, HOTP_VECTORS[6], now=0)


@pytest.mark.parametrize(
    "code",
    [
        "",
        "28708",
        "2870820",
        "abcdef",
        " 287082",
        None,
        287082,
    ],
)
def test_validate_malformed_code(engine: TOTPEngine, code) -> None:
    assert not engine.validate(RFC_SECRET, code, now=59)


def test_validate_bytes_code(engine: TOTPEngine) -> None:
    assert engine.validate(RFC_SECRET, b"287082", now=59)


def test_validate_wrong_secret(engine: TOTPEngine) -> None:
    other = base32.encode(bytes(range(1, 21)))
    code = engine.generate(other, 1)
    assert engine.validate(other, code, now=59)
    assert code != HOTP_VECTORS[1]
    assert not engine.validate(RFC_SECRET, code, now=59, window=0)


def test_validate_datetime(engine: TOTPEngine) -> None:
    now = datetime.datetime(1970, 1, 1, 0, 0, 59, tzinfo=datetime.timezone.utc)
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=now, window=0)
    # naive datetimes are treated as utc
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=now.replace(tzinfo=None), window=0)


def test_validate_float_time(engine: TOTPEngine) -> None:
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=59.9, window=0)


def test_validate_time_type(engine: TOTPEngine) -> None:
    with pytest.raises(TypeError):
        engine.validate(RFC_SECRET, HOTP_VECTORS[1], now="59")


def test_validate_uses_clock() -> None:
    engine = TOTPEngine(HashlibProvider("sha1"), now=lambda: 59)
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], window=0)
    assert not engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=NOW, window=0)


def test_match(engine8: TOTPEngine) -> None:
    counter = time_to_counter(NOW)
    code = engine8.generate(RFC_SECRET, counter + 2)
    match = engine8.match(RFC_SECRET, code, now=NOW)
    assert isinstance(match, TotpMatch)
    assert match.counter == counter + 2
    assert match.time == NOW
    assert match.expected_counter == counter
    assert match.skipped == 2

    code = engine8.generate(RFC_SECRET, counter - 3)
    assert engine8.match(RFC_SECRET, code, now=NOW).skipped == -3


def test_unavailable_engine() -> None:
    engine = TOTPEngine(None)
    assert not engine.available
    assert engine.generate(RFC_SECRET, 1) is None
    assert not engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=59)
    assert engine.match(RFC_SECRET, HOTP_VECTORS[1], now=59) is None
    assert "hash=None" in repr(engine)


def test_unavailable_digest_engine() -> None:
    engine = TOTPEngine(lookup_provider("nosuchhash"))
    assert not engine.available
    assert engine.generate(RFC_SECRET, 1) is None


@pytest.mark.parametrize(
    "kwds",
    [
        dict(digits=5),
        dict(digits=11),
        dict(window=-1),
        dict(period=0),
    ],
)
def test_invalid_settings(kwds: dict) -> None:
    with pytest.raises(ValueError):
        TOTPEngine(HashlibProvider("sha1"), **kwds)


@pytest.mark.parametrize("kwds", [dict(digits="6"), dict(window=1.5), dict(period="30")])
def test_invalid_setting_types(kwds: dict) -> None:
    with pytest.raises(TypeError):
        TOTPEngine(HashlibProvider("sha1"), **kwds)


def test_digest_too_small() -> None:
    with pytest.raises(ValueError):
        TOTPEngine(HashlibProvider("md5"))


def test_replace(engine: TOTPEngine) -> None:
    other = engine.replace(digits=8, window=2)
    assert other is not engine
    assert other.provider is engine.provider
    assert (other.digits, other.window) == (8, 2)
    assert (engine.digits, engine.window) == (6, 5)

    unavailable = engine.replace(provider=None)
    assert not unavailable.available
    assert unavailable.digits == engine.digits


def test_period() -> None:
    engine = TOTPEngine(HashlibProvider("sha1"), period=60)
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=60, window=0)
    assert engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=119, window=0)
    assert not engine.validate(RFC_SECRET, HOTP_VECTORS[1], now=59, window=0)


@pytest.mark.parametrize(
    ("time", "counter"),
    [(0, 0), (29, 0), (30, 1), (59, 1), (59.9, 1), (1111111109, 37037036)],
)
def test_time_to_counter(time, counter: int) -> None:
    assert time_to_counter(time) == counter


def test_functional_interface() -> None:
    provider = HashlibProvider("sha1")
    secret = encode_secret(b"12345678901234567890")
    assert secret == RFC_SECRET
    assert decode_secret(secret) == b"12345678901234567890"
    assert encode_secret(b"12345678901234567890", 10) == base32.encode(b"1234567890")

    assert generate_code(secret, 1, provider=provider) == HOTP_VECTORS[1]
    assert validate_code(secret, HOTP_VECTORS[1], 59, provider=provider)
    assert validate_code(secret, HOTP_VECTORS[3], 59, 2, provider=provider)
    assert not validate_code(secret, HOTP_VECTORS[3], 59, 1, provider=provider)

    assert generate_code(secret, 1, provider=None) is None
    assert not validate_code(secret, HOTP_VECTORS[1], 59, provider=None)
