"""
Moving factor shared by HOTP and TOTP: an unsigned 64-bit counter that is
fed to the HMAC as 8 big-endian bytes.
"""

import struct
from datetime import datetime, timezone
from functools import total_ordering

from core.errors import InvalidTimestamp

COUNTER_SIZE = 8
_MODULUS = 1 << 64


@total_ordering
class Counter:
    """Immutable unsigned 64-bit counter value."""

    __slots__ = ("_value",)

    def __init__(self, value: int = 0) -> None:
        object.__setattr__(self, "_value", int(value) % _MODULUS)

    def __setattr__(self, name, value):
        raise AttributeError("Counter is immutable")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Counter":
        """
        Build a counter from its 8-byte big-endian encoding.

        Raises:
            ValueError: If ``raw`` is not exactly 8 bytes long.
        """
        if len(raw) != COUNTER_SIZE:
            raise ValueError(f"Counter must be {COUNTER_SIZE} bytes, got {len(raw)}")
        return cls(struct.unpack(">Q", raw)[0])

    def to_bytes(self) -> bytes:
        return struct.pack(">Q", self._value)

    def increment(self) -> "Counter":
        """Return the successor, wrapping at 2**64."""
        return Counter(self._value + 1)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Counter):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other: "Counter") -> bool:
        if not isinstance(other, Counter):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Counter({self._value})"

    def __str__(self) -> str:
        return str(self._value)


def increment(counter: Counter) -> Counter:
    """Return ``counter + 1`` modulo 2**64."""
    return counter.increment()


def counter_time(counter: Counter, period: int = 30, t0: int = 0) -> datetime:
    """
    Return the UTC start of the time step ``counter`` stands for.

    Raises:
        InvalidTimestamp: If that instant is outside the range ``datetime`` supports.
    """
    ts = t0 + int(counter) * period
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestamp(f"Counter {counter} maps to unrepresentable time {ts}.") from exc
