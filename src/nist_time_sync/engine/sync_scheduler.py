"""
Sync Scheduler

Drives fetch -> parse -> apply on a fixed cadence.

State machine (one state per iteration):

    ┌──────┐  ok   ┌───────┐  now() >= T + I   ┌──────┐
    │ SYNC │──────▶│ SLEEP │──────────────────▶│ SYNC │ ...
    └──────┘       └───────┘                   └──────┘
       │ error         │ stop signal
       ▼               ▼
     raise           return

The next wake is anchored on the authoritative instant T that was just
written to the clock, not on local elapsed time, so skew that existed
before the sync does not accumulate into the schedule. When the clock
setter leaves the local clock alone (dry run), the remaining skew is
measured right after the sync and applied to now() while sleeping.

Any failure in SYNC is fatal for the loop. A persistent problem (no
network, no privilege, corrupt upstream) is surfaced once instead of
being retried silently every interval.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..errors import SyncError
from ..interfaces.sync_result import (
    AuthoritativeInstant,
    LifecycleSignal,
    SyncInterval,
    SyncResult,
)
from ..output.clock_setter import ClockSetter
from ..timing.daytime_client import DaytimeClient
from ..timing.nist_parser import parse_nist_response
from .stop_channel import StopChannel

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncScheduler:
    """
    Periodic re-sync loop.

    Usage:
        scheduler = SyncScheduler(DaytimeClient(), get_clock_setter())
        scheduler.run(SyncInterval(60), StopChannel())
    """

    def __init__(
        self,
        client: DaytimeClient,
        clock_setter: ClockSetter,
        parser: Callable[[str], AuthoritativeInstant] = parse_nist_response,
        now: Callable[[], datetime] = utc_now,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_sync: Optional[Callable[[SyncResult], None]] = None,
    ):
        """
        Args:
            client: Source of raw reply lines (anything with fetch())
            clock_setter: Writes the parsed instant to the system clock
            parser: Reply -> AuthoritativeInstant
            now: Current UTC time, read while sleeping
            poll_interval: Longest single wait in seconds; bounds how long a
                           clock step can go unnoticed while sleeping
            on_sync: Called with each SyncResult after a successful sync
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.client = client
        self.clock_setter = clock_setter
        self.parser = parser
        self.now = now
        self.poll_interval = poll_interval
        self.on_sync = on_sync

        self.sync_count = 0
        self.last_result: Optional[SyncResult] = None
        self.last_reply: Optional[str] = None

    def sync_once(self) -> AuthoritativeInstant:
        """
        Run one Sync phase.

        Returns:
            The instant written to the clock

        Raises:
            NetworkError, FormatError, ClockPermissionError, PlatformError
        """
        reply = self.client.fetch()
        instant = self.parser(reply)
        self.clock_setter.apply(instant)
        self.last_reply = reply
        return instant

    def run(self, interval: SyncInterval, stop: StopChannel) -> None:
        """
        Sync immediately, then every `interval`, until stopped.

        Returns normally when a stop signal is observed during SLEEP.

        Raises:
            SyncError: the first failure of any Sync phase
        """
        logger.info(f"Syncing system time with {self._source_name()} every {interval.describe()}")

        while True:
            try:
                instant = self.sync_once()
            except SyncError as e:
                logger.error(f"Error syncing system time: {e}")
                raise

            skew = self._skew(instant)
            self.sync_count += 1
            next_wake = instant + interval.duration
            result = SyncResult(
                instant=instant,
                next_wake=next_wake,
                reply=self.last_reply,
                sync_number=self.sync_count,
            )
            self.last_result = result
            logger.info(f"System time set to {instant}")
            logger.debug(f"Next sync at {next_wake.isoformat()}")

            if self.on_sync:
                self.on_sync(result)

            signal = self.sleep_until(next_wake, stop, skew=skew)
            if signal is not LifecycleSignal.NONE:
                logger.info(f"Sync loop stopping ({signal.value})")
                return

    def _skew(self, instant: AuthoritativeInstant) -> timedelta:
        """Authoritative minus local time, or zero if the clock was just set."""
        if getattr(self.clock_setter, 'writes_clock', True):
            return timedelta(0)
        skew = instant.utc - self.now()
        logger.debug(f"Local clock not set; sleeping with {skew.total_seconds():+.3f}s correction")
        return skew

    def sleep_until(
        self,
        wake: datetime,
        stop: StopChannel,
        skew: timedelta = timedelta(0),
    ) -> LifecycleSignal:
        """
        Wait until now() + skew reaches `wake` or the stop channel fires.

        Waits in slices of at most poll_interval so a stop is seen
        immediately and a clock step is seen within one slice.

        Returns:
            LifecycleSignal.NONE if the wake time was reached, otherwise the
            signal that interrupted the wait
        """
        while True:
            if stop.signal is not LifecycleSignal.NONE:
                return stop.signal
            remaining = (wake - (self.now() + skew)).total_seconds()
            if remaining <= 0:
                return LifecycleSignal.NONE
            signal = stop.wait(min(remaining, self.poll_interval))
            if signal is not LifecycleSignal.NONE:
                return signal

    def _source_name(self) -> str:
        return getattr(self.client, 'address', type(self.client).__name__)
