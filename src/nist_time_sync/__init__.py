"""
nist-time-sync: System clock sync against the NIST Internet Time Service

Periodically reads the NIST daytime reply (TCP port 13), parses it into an
authoritative UTC instant and writes it to the system clock. Can run in
the foreground or as a systemd service.

Architecture:
    time.nist.gov:13 → DaytimeClient → parse_nist_response → ClockSetter
                                  ▲                              │
                                  └──── SyncScheduler (sleep) ◀──┘
                                              ▲
                              ServiceLifecycleController (stop)

Version: 1.0.0
"""

__version__ = "1.0.0"

from .errors import (
    SyncError,
    NetworkError,
    FormatError,
    ClockPermissionError,
    PlatformError,
    ConfigError,
)
from .interfaces.sync_result import (
    AuthoritativeInstant,
    LifecycleSignal,
    ServiceState,
    SyncInterval,
    SyncResult,
)

__all__ = [
    "SyncError",
    "NetworkError",
    "FormatError",
    "ClockPermissionError",
    "PlatformError",
    "ConfigError",
    "AuthoritativeInstant",
    "LifecycleSignal",
    "ServiceState",
    "SyncInterval",
    "SyncResult",
    "__version__",
]
