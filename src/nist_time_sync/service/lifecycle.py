"""
Service Lifecycle Controller

Wraps the SyncScheduler in a run/stop state machine when hosted as a
managed background service:

    STARTING ──▶ RUNNING ──(stop control)──▶ STOP_PENDING ──▶ STOPPED
                    │                                            ▲
                    └──────────(sync error / stop)───────────────┘

Control events arrive on the host's thread (signal handler, service
manager callback) while the scheduler sleeps on the service thread. A
stop control raises the StopChannel, which wakes the scheduler's wait
immediately. STOPPED is reported exactly once, on every exit path, so the
host never considers the service hung.

In foreground mode there is no host: run_foreground() is a pass-through
that only wires Ctrl+C / SIGTERM to the stop channel.
"""

import logging
import signal
import threading
from enum import Enum
from typing import Optional, Protocol

from ..engine.stop_channel import StopChannel
from ..engine.sync_scheduler import SyncScheduler
from ..errors import SyncError
from ..interfaces.sync_result import LifecycleSignal, ServiceState, SyncInterval

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    """How the process is hosted."""
    FOREGROUND = "FOREGROUND"
    MANAGED_SERVICE = "MANAGED_SERVICE"


class ServiceControl(str, Enum):
    """Control events a service host can deliver."""
    INTERROGATE = "INTERROGATE"
    STOP = "STOP"
    PAUSE = "PAUSE"
    CONTINUE = "CONTINUE"


class ControlResult(str, Enum):
    NO_ERROR = "NO_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


_ORDER = {
    ServiceState.STARTING: 0,
    ServiceState.RUNNING: 1,
    ServiceState.STOP_PENDING: 2,
    ServiceState.STOPPED: 3,
}


class ServiceHost(Protocol):
    """Receives state transitions on behalf of the OS service manager."""

    def report_state(self, state: ServiceState, error: Optional[str] = None) -> None:
        ...


class ServiceLifecycleController:
    """
    Coordinates host control events with the scheduler loop.

    Usage:
        controller = ServiceLifecycleController(scheduler, SyncInterval(60), host)
        host.install_signal_handlers(controller)
        controller.run()
    """

    def __init__(
        self,
        scheduler: SyncScheduler,
        interval: SyncInterval,
        host: ServiceHost,
        stop_channel: Optional[StopChannel] = None,
    ):
        self.scheduler = scheduler
        self.interval = interval
        self.host = host
        self.stop_channel = stop_channel or StopChannel()

        self.state: Optional[ServiceState] = None
        self.error: Optional[str] = None
        # Reentrant: signal handlers can fire while the main thread holds it
        self._lock = threading.RLock()

    def _report(self, state: ServiceState, error: Optional[str] = None) -> bool:
        """Move forward to `state` and tell the host. Never moves backwards."""
        with self._lock:
            if self.state is not None and _ORDER[state] <= _ORDER[self.state]:
                return False
            self.state = state
        logger.debug(f"Service state -> {state.value}")
        self.host.report_state(state, error)
        return True

    def handle_control(self, control: ServiceControl) -> ControlResult:
        """
        Handle a control event from the host. Safe to call from any thread.

        INTERROGATE re-reports the current state; STOP moves to
        STOP_PENDING and wakes the scheduler.
        """
        if control is ServiceControl.INTERROGATE:
            with self._lock:
                current = self.state
            if current is not None:
                self.host.report_state(current, self.error)
            return ControlResult.NO_ERROR

        if control is ServiceControl.STOP:
            logger.info("Stop requested by service host")
            self._report(ServiceState.STOP_PENDING)
            self.stop_channel.request_stop()
            return ControlResult.NO_ERROR

        return ControlResult.NOT_IMPLEMENTED

    def run(self) -> None:
        """
        Run the scheduler until it stops or fails.

        Raises:
            SyncError: re-raised after STOPPED has been reported
        """
        try:
            self._report(ServiceState.STARTING)
            if self.stop_channel.signal is not LifecycleSignal.NONE:
                logger.info("Stop requested before start; skipping sync")
                return
            self._report(ServiceState.RUNNING)
            self.scheduler.run(self.interval, self.stop_channel)
        except SyncError as e:
            self.error = str(e)
            raise
        except Exception as e:
            logger.exception(f"Fatal error in service loop: {e}")
            self.error = str(e)
            raise
        finally:
            self._report(ServiceState.STOPPED, self.error)
            self.stop_channel.close()
            logger.info(f"Service stopped after {self.scheduler.sync_count} syncs")


def run_foreground(scheduler: SyncScheduler, interval: SyncInterval) -> None:
    """
    Run the scheduler as a plain foreground process.

    SIGINT and SIGTERM request a stop; sync errors propagate to the caller.
    """
    stop = StopChannel()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        stop.request_stop()

    previous = {
        signum: signal.signal(signum, handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        scheduler.run(interval, stop)
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
