"""Tests for core.config and core.utils."""

import logging

import pytest

from core.config import OTPConfig
from core.errors import InvalidDigitCount, InvalidSecret, InvalidThreshold, RandomSourceError
from core.utils import (
    decode_secret,
    encode_secret,
    format_otp,
    generate_secret,
    normalize_secret,
    sanitise_label,
)


# ── OTPConfig ─────────────────────────────────────────────────────────────────

def test_config_defaults() -> None:
    config = OTPConfig()
    assert config.period == 30
    assert config.t0 == 0
    assert config.drift == 2
    assert config.threshold == 15
    assert config.digits == 6
    assert config.secret_bits == 160
    assert config.algorithm == "SHA1"


def test_config_is_frozen() -> None:
    with pytest.raises(AttributeError):
        OTPConfig().period = 60  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs,exc",
    [
        ({"digits": 5}, InvalidDigitCount),
        ({"digits": 9}, InvalidDigitCount),
        ({"threshold": 0}, InvalidThreshold),
        ({"period": 0}, ValueError),
        ({"period": 301}, ValueError),
        ({"drift": -1}, ValueError),
        ({"t0": -5}, ValueError),
        ({"secret_bits": 100}, ValueError),
    ],
)
def test_config_validation(kwargs: dict, exc: type) -> None:
    with pytest.raises(exc):
        OTPConfig(**kwargs)


def test_config_coerces_algorithm(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="core.config"):
        config = OTPConfig(algorithm="SHA256")
    assert config.algorithm == "SHA1"
    assert "SHA256" in caplog.text


def test_config_from_env() -> None:
    env = {"OTP_PERIOD": "60", "OTP_DRIFT": "1", "OTP_THRESHOLD": "5", "OTP_DIGITS": "8", "OTHER": "x"}
    config = OTPConfig.from_env(environ=env)
    assert config == OTPConfig(period=60, drift=1, threshold=5, digits=8)
    assert config.max_skew_seconds == 119


def test_config_from_env_custom_prefix() -> None:
    assert OTPConfig.from_env(prefix="APP_", environ={"APP_T0": "100"}).t0 == 100


def test_config_from_env_reads_os_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OTP_DIGITS", "7")
    assert OTPConfig.from_env().digits == 7


def test_config_from_env_rejects_non_integer() -> None:
    with pytest.raises(ValueError, match="OTP_PERIOD"):
        OTPConfig.from_env(environ={"OTP_PERIOD": "thirty"})


# ── Secret generation ─────────────────────────────────────────────────────────

def test_generate_secret_default_length() -> None:
    assert len(generate_secret()) == 20


def test_generate_secret_custom_length() -> None:
    assert len(generate_secret(nb_bits=256)) == 32


def test_generate_secret_is_random() -> None:
    assert generate_secret() != generate_secret()


def test_generate_secret_uses_injected_rng() -> None:
    assert generate_secret(64, rng=lambda n: b"\x01" * n) == b"\x01" * 8


@pytest.mark.parametrize("nb_bits", [0, -8, 100, 161])
def test_generate_secret_rejects_bad_size(nb_bits: int) -> None:
    with pytest.raises(InvalidSecret):
        generate_secret(nb_bits)


def test_generate_secret_wraps_rng_failure() -> None:
    def broken(n: int) -> bytes:
        raise OSError("no entropy")

    with pytest.raises(RandomSourceError, match="no entropy") as info:
        generate_secret(rng=broken)
    assert isinstance(info.value.__cause__, OSError)


def test_generate_secret_rejects_short_rng_output() -> None:
    with pytest.raises(RandomSourceError):
        generate_secret(rng=lambda n: b"\x00" * (n - 1))


# ── Base32 ────────────────────────────────────────────────────────────────────

def test_normalize_secret_strips_spaces() -> None:
    assert normalize_secret("JBSW Y3DP") == "JBSWY3DP"


def test_normalize_secret_adds_padding() -> None:
    assert normalize_secret("jbswy3dpeb") == "JBSWY3DPEB======"


def test_encode_secret_rfc_secret() -> None:
    assert encode_secret(b"12345678901234567890") == "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


def test_decode_secret_roundtrip() -> None:
    raw = b"\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09"
    assert decode_secret(encode_secret(raw)) == raw


def test_decode_secret_invalid_raises() -> None:
    with pytest.raises(InvalidSecret):
        decode_secret("!!!NOTBASE32!!!")


# ── Display helpers ───────────────────────────────────────────────────────────

def test_sanitise_label_strips_control_characters() -> None:
    assert sanitise_label(" alice\x00\n ") == "alice"


def test_format_otp_6_digits() -> None:
    assert format_otp("123456") == "123 456"


def test_format_otp_8_digits() -> None:
    assert format_otp("12345678") == "123 456 78"
