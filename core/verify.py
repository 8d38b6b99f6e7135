"""
Code verification with counter resynchronisation.

Starting from a caller-supplied counter, the verifier tries at most
``threshold`` consecutive counters and reports how many forward steps were
needed to find the submitted code. Expected failures come back as a
:class:`Rejected` value rather than an exception.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Union

from core.config import DEFAULT_THRESHOLD, OTPConfig
from core.counter import Counter
from core.errors import VerifyError
from core.hotp import format_code, hotp
from core.totp import totp_counter_for
from core.utils import validate_digits

logger = logging.getLogger(__name__)

# Smallest 6-digit and largest 8-digit code accepted when the digit count is
# inferred from the submission itself.
MIN_CODE = 100000
MAX_CODE = 99999999


@dataclass(frozen=True)
class Synchronized:
    """The code matched ``steps`` counters after the starting one."""

    steps: int

    ok = True

    def advance(self, counter: Counter) -> Counter:
        """Return the counter the code actually matched."""
        return Counter(int(counter) + self.steps)


@dataclass(frozen=True)
class Rejected:
    """The code was refused for ``reason``."""

    reason: VerifyError

    ok = False


VerificationResult = Union[Synchronized, Rejected]


def _matches(candidate: int, submitted: int, digits: int) -> bool:
    return hmac.compare_digest(format_code(candidate, digits), format_code(submitted, digits))


def verify(
    secret: bytes,
    counter: Counter,
    submitted: int,
    threshold: int = DEFAULT_THRESHOLD,
    digits: Optional[int] = None,
) -> VerificationResult:
    """
    Check ``submitted`` against ``threshold`` counters starting at ``counter``.

    Args:
        secret:    Raw secret bytes.
        counter:   First counter to try (usually from :func:`totp_counter`).
        submitted: Code entered by the user, as an integer.
        threshold: Number of counters to try before giving up.
        digits:    Expected code length. When None the length is inferred
                   from the decimal representation of ``submitted``, so a
                   code with leading zeros is checked as a shorter code.

    Returns:
        :class:`Synchronized` with the number of increments needed, or
        :class:`Rejected` with the reason.

    Raises:
        InvalidDigitCount: If an explicit ``digits`` is not 6, 7 or 8.
    """
    if threshold <= 0:
        return Rejected(VerifyError.INVALID_THRESHOLD)

    if digits is None:
        if submitted < MIN_CODE or submitted > MAX_CODE:
            logger.info("Rejected code outside the 6 to 8 digit range")
            return Rejected(VerifyError.INVALID_DIGIT_COUNT)
        digits = len(str(submitted))
    else:
        validate_digits(digits)
        if submitted < 0 or submitted >= 10**digits:
            logger.info("Rejected code longer than %d digits", digits)
            return Rejected(VerifyError.INVALID_DIGIT_COUNT)

    current = counter
    for steps in range(threshold):
        if _matches(hotp(secret, current, digits), submitted, digits):
            if steps:
                logger.debug("Code matched after resynchronising %d steps", steps)
            return Synchronized(steps)
        current = current.increment()

    logger.info("Rejected code after %d counters", threshold)
    return Rejected(VerifyError.INVALID_THRESHOLD)


def verify_totp(
    secret: bytes,
    submitted: int,
    config: Optional[OTPConfig] = None,
    now: Optional[float] = None,
    digits: Optional[int] = None,
) -> VerificationResult:
    """
    Verify a TOTP code against the current time.

    The counter window spans ``config.drift`` steps behind ``now`` up to
    ``config.threshold - config.drift - 1`` steps ahead. Codes are checked at
    ``digits`` or, when None, at ``config.digits``; a shorter code is never
    accepted as a suffix of the configured one.
    """
    config = config or OTPConfig()
    counter = totp_counter_for(config, now)
    if digits is None:
        digits = config.digits
    return verify(secret, counter, submitted, threshold=config.threshold, digits=digits)
