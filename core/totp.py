"""
TOTP (Time-based One-Time Password) implementation following RFC 6238.

The server-side counter is biased ``drift`` steps into the past so that the
forward-only verifier covers client clocks that run ahead as well as behind.
"""

import logging
import time
from typing import Optional

from core.config import DEFAULT_DRIFT, DEFAULT_PERIOD, DEFAULT_T0, OTPConfig
from core.counter import Counter
from core.errors import InvalidTimestamp
from core.hotp import hotp_code
from core.utils import validate_drift, validate_period

logger = logging.getLogger(__name__)


def _now(now: Optional[float]) -> int:
    t = now if now is not None else time.time()
    return int(t)


def time_step(now: Optional[float] = None, period: int = DEFAULT_PERIOD, t0: int = DEFAULT_T0) -> int:
    """
    Return ``floor((now - t0) / period)``.

    Raises:
        InvalidTimestamp: If ``now`` is earlier than ``t0``.
    """
    validate_period(period)
    t = _now(now)
    if t < t0:
        raise InvalidTimestamp(f"Timestamp {t} is earlier than t0={t0}.")
    return (t - t0) // period


def totp_counter(
    now: Optional[float] = None,
    period: int = DEFAULT_PERIOD,
    t0: int = DEFAULT_T0,
    drift: int = DEFAULT_DRIFT,
) -> Counter:
    """
    Derive the server-side starting counter for verification.

    Args:
        now:    Unix timestamp in seconds (uses time.time() if None).
        period: Time step in seconds.
        t0:     Unix time the step count starts from.
        drift:  Number of steps to start in the past.

    Returns:
        ``Counter(floor((now - t0) / period) - drift)``, clamped at zero.

    Raises:
        InvalidTimestamp: If ``now`` is earlier than ``t0``.
    """
    validate_drift(drift)
    step = time_step(now, period, t0)
    if step < drift:
        logger.debug("Step %d is below drift %d, clamping counter to 0", step, drift)
        return Counter(0)
    return Counter(step - drift)


def totp_counter_for(config: OTPConfig, now: Optional[float] = None) -> Counter:
    return totp_counter(now, period=config.period, t0=config.t0, drift=config.drift)


def generate_totp(
    secret_bytes: bytes,
    now: Optional[float] = None,
    digits: int = 6,
    period: int = DEFAULT_PERIOD,
    t0: int = DEFAULT_T0,
) -> str:
    """
    Generate the TOTP code a client displays at ``now``.

    Args:
        secret_bytes: Raw (already base32-decoded) secret bytes.
        now:          Override Unix timestamp (uses time.time() if None).
        digits:       Number of digits in the OTP (default 6).
        period:       Time step in seconds (default 30).
        t0:           Unix time the step count starts from.

    Returns:
        OTP string, zero-padded to ``digits`` characters.
    """
    return hotp_code(secret_bytes, Counter(time_step(now, period, t0)), digits)


def remaining_seconds(period: int = DEFAULT_PERIOD, now: Optional[float] = None, t0: int = DEFAULT_T0) -> int:
    """Return seconds until the current TOTP window expires."""
    validate_period(period)
    t = _now(now)
    return period - ((t - t0) % period)
