"""
Utility helpers: secrets, labels and parameter validation.
"""

import base64
import binascii
import logging
import re
import secrets
import unicodedata
from typing import Callable

from core.errors import InvalidDigitCount, InvalidSecret, InvalidThreshold, RandomSourceError

logger = logging.getLogger(__name__)

SUPPORTED_DIGITS = (6, 7, 8)
DEFAULT_SECRET_BITS = 160


# ── Secrets ───────────────────────────────────────────────────────────────────

def generate_secret(
    nb_bits: int = DEFAULT_SECRET_BITS,
    rng: Callable[[int], bytes] = secrets.token_bytes,
) -> bytes:
    """
    Generate a random shared secret.

    Args:
        nb_bits: Secret size in bits; must be a positive multiple of 8.
        rng:     Callable returning ``n`` random bytes. Defaults to the OS CSPRNG.

    Returns:
        ``nb_bits // 8`` random bytes.

    Raises:
        InvalidSecret:     If ``nb_bits`` is not a positive multiple of 8.
        RandomSourceError: If ``rng`` fails or returns the wrong length.
    """
    if nb_bits <= 0 or nb_bits % 8:
        raise InvalidSecret(f"Secret size must be a positive multiple of 8 bits, got {nb_bits}.")
    length = nb_bits // 8
    try:
        raw = rng(length)
    except (OSError, RuntimeError, NotImplementedError) as exc:
        raise RandomSourceError(f"Random source failed: {exc}") from exc
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != length:
        raise RandomSourceError(f"Random source returned unusable data for {length} bytes.")
    logger.debug("Generated a %d-bit secret", nb_bits)
    return bytes(raw)


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip spaces, uppercase, add padding.

    Raises:
        InvalidSecret: If the string contains invalid base32 characters.
    """
    secret = secret.strip().upper().replace(" ", "").replace("-", "")
    if not re.fullmatch(r"[A-Z2-7]+=*", secret):
        raise InvalidSecret("Secret contains invalid base32 characters.")
    secret = secret.rstrip("=")
    pad = (8 - len(secret) % 8) % 8
    return secret + "=" * pad


def decode_secret(secret: str) -> bytes:
    """Decode a base32-encoded secret string to raw bytes."""
    try:
        return base64.b32decode(normalize_secret(secret), casefold=True)
    except binascii.Error as exc:
        raise InvalidSecret(f"Invalid base32 secret: {exc}") from exc


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as a base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


# ── Labels / display ──────────────────────────────────────────────────────────

def sanitise_label(text: str) -> str:
    """Remove control characters and limit label length."""
    text = unicodedata.normalize("NFC", text)
    text = "".join(ch for ch in text if unicodedata.category(ch)[0] != "C")
    return text[:128].strip()


def format_otp(code: str, group: int = 3) -> str:
    """
    Format an OTP code with spaces for readability.

    Example::

        >>> format_otp("123456")
        "123 456"
    """
    return " ".join(code[i : i + group] for i in range(0, len(code), group))


# ── Validation ────────────────────────────────────────────────────────────────

def validate_digits(digits: int) -> None:
    if digits not in SUPPORTED_DIGITS:
        raise InvalidDigitCount(f"Digits must be 6, 7 or 8, got {digits}.")


def validate_period(period: int) -> None:
    if period < 1 or period > 300:
        raise ValueError("Period must be between 1 and 300 seconds.")


def validate_threshold(threshold: int) -> None:
    if threshold < 1:
        raise InvalidThreshold("Threshold must be at least 1.")


def validate_drift(drift: int) -> None:
    if drift < 0:
        raise ValueError("Drift must be a non-negative number of steps.")
