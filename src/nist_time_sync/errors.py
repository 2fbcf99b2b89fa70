"""
Error taxonomy for nist-time-sync.

Every SyncError is terminal to the sync loop: none of them triggers an
internal retry. ConfigError is raised before the scheduler ever starts.
"""


class SyncError(Exception):
    """Base class for failures that end the sync loop."""


class NetworkError(SyncError):
    """Connecting to or reading from the time source failed."""


class FormatError(SyncError, ValueError):
    """The time source reply could not be parsed into a valid instant."""


class ClockPermissionError(SyncError, PermissionError):
    """The OS refused to set the clock because the process lacks privilege."""

    DEFAULT_MESSAGE = (
        "Error setting system time, check your permissions "
        "(run as root / administrator)."
    )

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message)


class PlatformError(SyncError):
    """Opaque OS failure while setting the clock."""


class ConfigError(ValueError):
    """Invalid configuration (interval, server address, config file)."""


class ServiceInstallError(Exception):
    """Registering or removing the background service failed."""
