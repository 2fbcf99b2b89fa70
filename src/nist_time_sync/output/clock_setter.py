"""
System Clock Setter

Commits an AuthoritativeInstant as the machine's wall clock in a single
privileged call. Exactly one implementation is selected at startup by
get_clock_setter(); the scheduler only sees the ClockSetter interface.

Platforms:
    POSIX    time.clock_settime_ns(CLOCK_REALTIME) - needs CAP_SYS_TIME / root
    Windows  kernel32.SetSystemTime via ctypes     - needs SeSystemtimePrivilege

Both primitives take millisecond precision from the instant. There is no
retry: the call either fully succeeds or raises.
"""

import ctypes
import errno
import logging
import sys
import time
from typing import List, Optional, Protocol

from ..errors import ClockPermissionError, PlatformError
from ..interfaces.sync_result import AuthoritativeInstant

logger = logging.getLogger(__name__)

# Win32 error codes that mean "not elevated"
ERROR_ACCESS_DENIED = 5
ERROR_PRIVILEGE_NOT_HELD = 1314


class ClockSetter(Protocol):
    """Writes an instant to the system clock."""

    def apply(self, instant: AuthoritativeInstant) -> None:
        ...


class PosixClockSetter:
    """Sets CLOCK_REALTIME on Linux/BSD/macOS."""

    name = "posix"
    writes_clock = True

    def apply(self, instant: AuthoritativeInstant) -> None:
        """
        Set the realtime clock.

        Raises:
            ClockPermissionError: EPERM, process is not privileged
            PlatformError: any other OS failure (message passed through)
        """
        nanoseconds = instant.timestamp_ms * 1_000_000
        try:
            time.clock_settime_ns(time.CLOCK_REALTIME, nanoseconds)
        except PermissionError as e:
            raise ClockPermissionError() from e
        except OSError as e:
            if e.errno == errno.EPERM:
                raise ClockPermissionError() from e
            raise PlatformError(f"Error setting system time: {e}") from e
        logger.debug(f"CLOCK_REALTIME set to {instant}")


class SYSTEMTIME(ctypes.Structure):
    """Win32 SYSTEMTIME, all fields WORD."""
    _fields_ = [
        ("wYear", ctypes.c_ushort),
        ("wMonth", ctypes.c_ushort),
        ("wDayOfWeek", ctypes.c_ushort),   # ignored by SetSystemTime
        ("wDay", ctypes.c_ushort),
        ("wHour", ctypes.c_ushort),
        ("wMinute", ctypes.c_ushort),
        ("wSecond", ctypes.c_ushort),
        ("wMilliseconds", ctypes.c_ushort),
    ]

    @classmethod
    def from_instant(cls, instant: AuthoritativeInstant) -> "SYSTEMTIME":
        return cls(
            wYear=instant.year,
            wMonth=instant.month,
            wDayOfWeek=0,
            wDay=instant.day,
            wHour=instant.hour,
            wMinute=instant.minute,
            wSecond=instant.second,
            wMilliseconds=instant.millisecond,
        )


class WindowsClockSetter:
    """Sets the system time (UTC) through kernel32.SetSystemTime."""

    name = "windows"
    writes_clock = True

    def __init__(self, kernel32=None):
        """
        Args:
            kernel32: Loaded kernel32 library; defaults to
                      ctypes.WinDLL('kernel32', use_last_error=True)
        """
        if kernel32 is None:
            kernel32 = ctypes.WinDLL('kernel32', use_last_error=True)
        self.kernel32 = kernel32

    def _last_error(self) -> int:
        return ctypes.get_last_error()

    def apply(self, instant: AuthoritativeInstant) -> None:
        system_time = SYSTEMTIME.from_instant(instant)
        if self.kernel32.SetSystemTime(ctypes.byref(system_time)):
            logger.debug(f"SetSystemTime({instant}) succeeded")
            return

        code = self._last_error()
        if code in (ERROR_ACCESS_DENIED, ERROR_PRIVILEGE_NOT_HELD):
            raise ClockPermissionError()
        raise PlatformError(f"Error setting system time: SetSystemTime failed, error code {code}")


class DryRunClockSetter:
    """Logs the instant instead of writing the clock."""

    name = "dry-run"
    # Local clock keeps its skew; the scheduler compensates while sleeping
    writes_clock = False

    def __init__(self):
        self.applied: List[AuthoritativeInstant] = []

    def apply(self, instant: AuthoritativeInstant) -> None:
        self.applied.append(instant)
        logger.info(f"[dry-run] would set system time to {instant}")


def get_clock_setter(platform: Optional[str] = None, dry_run: bool = False) -> ClockSetter:
    """
    Select the clock setter for this platform.

    Args:
        platform: sys.platform style name (default: current platform)
        dry_run: Return a DryRunClockSetter regardless of platform

    Returns:
        A ClockSetter implementation
    """
    if dry_run:
        return DryRunClockSetter()

    platform = platform or sys.platform
    if platform.startswith('win'):
        return WindowsClockSetter()
    return PosixClockSetter()
