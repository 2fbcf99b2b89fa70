"""Background service hosting - lifecycle state machine, systemd host, installer."""

from .lifecycle import (
    ControlResult,
    RunMode,
    ServiceControl,
    ServiceHost,
    ServiceLifecycleController,
    run_foreground,
)
from .systemd_host import SystemdServiceHost
from .installer import ServiceInstaller, render_unit

__all__ = [
    'ControlResult',
    'RunMode',
    'ServiceControl',
    'ServiceHost',
    'ServiceLifecycleController',
    'run_foreground',
    'SystemdServiceHost',
    'ServiceInstaller',
    'render_unit',
]
