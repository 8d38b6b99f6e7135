"""
Error types shared across the OTP core.

Everything derives from :class:`ValueError` so callers that already guard
user input with ``except ValueError`` keep working.
"""

from enum import Enum


class OTPError(ValueError):
    """Base class for all OTP errors."""


class InvalidDigitCount(OTPError):
    """Digit count is not one of 6, 7 or 8."""


class InvalidThreshold(OTPError):
    """Resynchronisation threshold is not a positive integer."""


class InvalidTimestamp(OTPError):
    """Timestamp lies before the configured ``t0``."""


class InvalidSecret(OTPError):
    """Secret length or encoding is unusable."""


class RandomSourceError(OTPError):
    """The entropy source failed while generating a secret."""


class QrEncodingCapacityExceeded(OTPError):
    """Payload does not fit in the largest QR symbol."""


class VerifyError(str, Enum):
    """Reasons a submitted code can be rejected."""

    INVALID_DIGIT_COUNT = "Invalid number of digits in the code. Must be 6, 7 or 8 digits"
    INVALID_THRESHOLD = "Invalid threshold"
