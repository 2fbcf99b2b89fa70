"""Output adapters - writing the authoritative time to the system clock."""

from .clock_setter import (
    ClockSetter,
    DryRunClockSetter,
    PosixClockSetter,
    WindowsClockSetter,
    get_clock_setter,
)

__all__ = [
    'ClockSetter',
    'DryRunClockSetter',
    'PosixClockSetter',
    'WindowsClockSetter',
    'get_clock_setter',
]
