"""
Explicit OTP configuration.

Replaces the module-level constants of a single-tenant setup with one value
that is passed to every derivation and verification call.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from core.utils import (
    DEFAULT_SECRET_BITS,
    validate_digits,
    validate_drift,
    validate_period,
    validate_threshold,
)

logger = logging.getLogger(__name__)

# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_PERIOD = 30     # seconds per time step
DEFAULT_T0 = 0          # Unix time the step count starts from
DEFAULT_DRIFT = 2       # backward steps tolerated (2*30+29 = 89s)
DEFAULT_THRESHOLD = 15  # forward counters tried by the verifier
DEFAULT_DIGITS = 6

# Only HMAC-SHA1 is implemented; anything else is coerced.
SUPPORTED_ALGORITHM = "SHA1"


def coerce_algorithm(algorithm: Optional[str]) -> str:
    """Return ``"SHA1"`` whatever was requested, warning on anything else."""
    if algorithm is not None and algorithm.upper() != SUPPORTED_ALGORITHM:
        logger.warning("Algorithm %r is not supported, using SHA1", algorithm)
    return SUPPORTED_ALGORITHM


@dataclass(frozen=True)
class OTPConfig:
    """TOTP parameters shared by the client-facing URI and the verifier."""

    period: int = DEFAULT_PERIOD
    t0: int = DEFAULT_T0
    drift: int = DEFAULT_DRIFT
    threshold: int = DEFAULT_THRESHOLD
    digits: int = DEFAULT_DIGITS
    secret_bits: int = DEFAULT_SECRET_BITS
    algorithm: str = SUPPORTED_ALGORITHM

    def __post_init__(self) -> None:
        validate_period(self.period)
        validate_drift(self.drift)
        validate_threshold(self.threshold)
        validate_digits(self.digits)
        if self.t0 < 0:
            raise ValueError("t0 must be a non-negative Unix time.")
        if self.secret_bits <= 0 or self.secret_bits % 8:
            raise ValueError("secret_bits must be a positive multiple of 8.")
        object.__setattr__(self, "algorithm", coerce_algorithm(self.algorithm))

    @property
    def max_skew_seconds(self) -> int:
        """Largest client-ahead skew still accepted, in seconds."""
        return self.drift * self.period + self.period - 1

    @classmethod
    def from_env(
        cls, prefix: str = "OTP_", environ: Optional[Mapping[str, str]] = None
    ) -> "OTPConfig":
        """
        Build a config from ``{prefix}PERIOD``, ``{prefix}DRIFT`` etc.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable is not an integer or fails validation.
        """
        env = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = env.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            if f.name == "algorithm":
                values[f.name] = raw
                continue
            try:
                values[f.name] = int(raw)
            except ValueError:
                raise ValueError(f"{prefix}{f.name.upper()} must be an integer, got {raw!r}.")
        return cls(**values)
