"""Data contracts shared by the client, scheduler and service layers."""

from .sync_result import (
    AuthoritativeInstant,
    LifecycleSignal,
    ServiceState,
    SyncInterval,
    SyncResult,
)

__all__ = [
    'AuthoritativeInstant',
    'LifecycleSignal',
    'ServiceState',
    'SyncInterval',
    'SyncResult',
]
