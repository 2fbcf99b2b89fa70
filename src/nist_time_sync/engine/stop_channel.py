"""
Stop channel between the lifecycle owner and the scheduler.

The owner (lifecycle controller or foreground runner) raises the signal;
the scheduler only waits on it. Once raised, the signal never returns to
NONE, and the first non-NONE value wins.
"""

import threading
from typing import Optional

from ..interfaces.sync_result import LifecycleSignal


class StopChannel:
    """Interruptible wait with a tri-state LifecycleSignal."""

    def __init__(self):
        self._event = threading.Event()
        # Reentrant: signal handlers can fire while the main thread holds it
        self._lock = threading.RLock()
        self._signal = LifecycleSignal.NONE

    def _raise(self, signal: LifecycleSignal):
        with self._lock:
            if self._signal is LifecycleSignal.NONE:
                self._signal = signal
        self._event.set()

    def request_stop(self):
        """Ask the scheduler to stop at its next sleep check. Thread safe."""
        self._raise(LifecycleSignal.STOP_REQUESTED)

    def close(self):
        """Mark the channel closed; a waiting scheduler treats this as stop."""
        self._raise(LifecycleSignal.CHANNEL_CLOSED)

    @property
    def signal(self) -> LifecycleSignal:
        with self._lock:
            return self._signal

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> LifecycleSignal:
        """
        Block until a signal is raised or the timeout expires.

        Returns:
            The current signal (NONE if the timeout expired first)
        """
        self._event.wait(timeout)
        return self.signal
