"""
Sync Data Models

These dataclasses define the values that flow through one sync cycle:
the parsed AuthoritativeInstant, the configured SyncInterval and the
SyncResult recorded after the clock has been written.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional
import json

from ..errors import ConfigError


class LifecycleSignal(str, Enum):
    """External event observed by the scheduler while it sleeps."""
    NONE = "NONE"                      # Keep running
    STOP_REQUESTED = "STOP_REQUESTED"  # Host asked the service to stop
    CHANNEL_CLOSED = "CHANNEL_CLOSED"  # Controller went away


class ServiceState(str, Enum):
    """Service state reported to the host (managed-service mode only)."""
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOP_PENDING = "STOP_PENDING"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class AuthoritativeInstant:
    """
    Absolute UTC timestamp from the trusted time source.

    Precision is whole milliseconds: the wrapped datetime must be
    timezone-aware UTC and its microsecond field a multiple of 1000.
    """
    utc: datetime

    def __post_init__(self):
        if self.utc.tzinfo is None or self.utc.utcoffset() != timedelta(0):
            raise ValueError(f"AuthoritativeInstant must be UTC, got {self.utc!r}")
        if self.utc.microsecond % 1000:
            raise ValueError(
                f"AuthoritativeInstant has sub-millisecond precision: {self.utc!r}"
            )

    @classmethod
    def from_components(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int,
        minute: int,
        second: int,
        millisecond: int = 0,
    ) -> "AuthoritativeInstant":
        """Build an instant from calendar fields (raises ValueError if invalid)."""
        whole = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
        return cls(whole + timedelta(milliseconds=millisecond))

    @classmethod
    def from_timestamp_ms(cls, timestamp_ms: int) -> "AuthoritativeInstant":
        epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
        return cls(epoch + timedelta(milliseconds=timestamp_ms))

    @property
    def year(self) -> int:
        return self.utc.year

    @property
    def month(self) -> int:
        return self.utc.month

    @property
    def day(self) -> int:
        return self.utc.day

    @property
    def hour(self) -> int:
        return self.utc.hour

    @property
    def minute(self) -> int:
        return self.utc.minute

    @property
    def second(self) -> int:
        return self.utc.second

    @property
    def millisecond(self) -> int:
        return self.utc.microsecond // 1000

    @property
    def timestamp_ms(self) -> int:
        """Milliseconds since the Unix epoch (exact integer arithmetic)."""
        delta = self.utc - datetime(1970, 1, 1, tzinfo=timezone.utc)
        return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000

    @property
    def timestamp(self) -> float:
        return self.timestamp_ms / 1000.0

    def __add__(self, other: timedelta) -> datetime:
        # The result is a plain datetime: adding an interval yields a wake
        # time, not another authoritative reading.
        if not isinstance(other, timedelta):
            return NotImplemented
        return self.utc + other

    def isoformat(self) -> str:
        """ISO 8601 with millisecond precision and a Z suffix."""
        return self.utc.strftime('%Y-%m-%dT%H:%M:%S') + f".{self.millisecond:03d}Z"

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True)
class SyncInterval:
    """Re-sync cadence in whole minutes, constant for the process lifetime."""
    minutes: int

    def __post_init__(self):
        if isinstance(self.minutes, bool) or not isinstance(self.minutes, int):
            raise ConfigError(f"Interval must be a whole number of minutes, got {self.minutes!r}")
        if self.minutes < 1:
            raise ConfigError("Interval must be higher than 0")

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.minutes)

    @property
    def seconds(self) -> int:
        return self.minutes * 60

    def describe(self) -> str:
        unit = "minute" if self.minutes == 1 else "minutes"
        return f"{self.minutes} {unit}"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one successful Sync phase."""
    instant: AuthoritativeInstant
    next_wake: datetime
    reply: Optional[str] = None
    sync_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instant": self.instant.isoformat(),
            "next_wake": self.next_wake.isoformat(),
            "reply": self.reply,
            "sync_number": self.sync_number,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
