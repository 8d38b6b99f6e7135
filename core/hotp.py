"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.

Only HMAC-SHA1 is supported.
"""

import hashlib
import hmac
import struct

from core.counter import Counter
from core.utils import validate_digits

DIGEST_SIZE = 20


def hmac_sha1(key: bytes, message: bytes) -> bytes:
    """Return the 20-byte HMAC-SHA1 of ``message`` under ``key`` (RFC 2104)."""
    return hmac.new(key, message, hashlib.sha1).digest()


def dynamic_truncation(digest: bytes, digits: int) -> int:
    """
    Reduce an HMAC-SHA1 digest to a ``digits``-long code (RFC 4226 §5.3).

    Args:
        digest: 20-byte HMAC-SHA1 output.
        digits: Number of OTP digits (6, 7 or 8).

    Returns:
        The code as an integer in ``[0, 10**digits)``.
    """
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
    offset = digest[-1] & 0x0F
    (p,) = struct.unpack(">I", digest[offset : offset + 4])
    snum = p & 0x7FFFFFFF
    return snum % (10**digits)


def hotp(secret: bytes, counter: Counter, digits: int = 6) -> int:
    """
    Compute the HOTP value for ``counter``.

    Args:
        secret:  Raw (already base32-decoded) secret bytes.
        counter: Moving factor.
        digits:  Number of OTP digits (6, 7 or 8).

    Returns:
        The code as an integer; use :func:`format_code` for display.

    Raises:
        InvalidDigitCount: If ``digits`` is not 6, 7 or 8.
    """
    validate_digits(digits)
    return dynamic_truncation(hmac_sha1(secret, bytes(counter)), digits)


def format_code(code: int, digits: int) -> str:
    """Zero-pad ``code`` to ``digits`` characters."""
    return str(code).zfill(digits)


def hotp_code(secret: bytes, counter: Counter, digits: int = 6) -> str:
    """Zero-padded HOTP string, as shown by authenticator apps."""
    return format_code(hotp(secret, counter, digits), digits)
