"""
signals.py — Tagged provider results.

Providers never hand back a bare number: they report whether the value is
usable (OK), present but implausible (LOW_CONFIDENCE) or missing altogether
(UNAVAILABLE), so the trust resolver can tell "API down" from "API fine but
data too noisy".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SignalStatus(str, Enum):
    OK = "ok"
    LOW_CONFIDENCE = "low_confidence"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SignalResult(Generic[T]):
    status: SignalStatus
    value: Optional[T] = None
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "SignalResult[T]":
        return cls(SignalStatus.OK, value)

    @classmethod
    def low_confidence(cls, value: T, reason: str) -> "SignalResult[T]":
        return cls(SignalStatus.LOW_CONFIDENCE, value, reason)

    @classmethod
    def unavailable(cls, reason: str) -> "SignalResult[T]":
        return cls(SignalStatus.UNAVAILABLE, None, reason)

    @property
    def is_ok(self) -> bool:
        return self.status is SignalStatus.OK


@dataclass(frozen=True)
class TemperatureReading:
    """Reduced NASA POWER time series for one region (°C)."""
    current: float
    anomaly: float
    max: float
    min: float
    samples: int
    period_start: str
    period_end: str
