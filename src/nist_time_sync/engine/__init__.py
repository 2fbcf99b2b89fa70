"""Core sync engine - the periodic fetch/parse/apply loop.

Contains:
- SyncScheduler: SYNC/SLEEP loop anchored on the authoritative instant
- StopChannel: interruptible wait shared with the lifecycle owner
"""

from .stop_channel import StopChannel
from .sync_scheduler import SyncScheduler, utc_now

__all__ = ['StopChannel', 'SyncScheduler', 'utc_now']
