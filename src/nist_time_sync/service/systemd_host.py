"""
systemd Service Host

Reports lifecycle transitions to systemd through the sd_notify protocol
and turns POSIX signals into service controls.

Unit configuration (see service/installer.py):

    [Service]
    Type=notify
    ExecStart=/usr/bin/python3 -m nist_time_sync --service

Notify protocol:
------------
systemd passes the address of a datagram socket in $NOTIFY_SOCKET. Each
datagram is a newline-separated list of KEY=VALUE assignments:

    STARTING     STATUS=Starting
    RUNNING      READY=1, STATUS=Running
    STOP_PENDING STOPPING=1, STATUS=Stopping
    STOPPED      STOPPING=1, STATUS=Stopped[: <error>]

An address starting with '@' is in the Linux abstract namespace.

Signals:
    SIGTERM, SIGINT  -> ServiceControl.STOP
    SIGUSR1          -> ServiceControl.INTERROGATE

Reference:
- https://www.freedesktop.org/software/systemd/man/sd_notify.html
"""

import logging
import os
import signal
import socket
from typing import Dict, Optional

from ..interfaces.sync_result import ServiceState
from .lifecycle import ServiceControl, ServiceLifecycleController

logger = logging.getLogger(__name__)

NOTIFY_SOCKET_ENV = "NOTIFY_SOCKET"

_STATE_MESSAGES = {
    ServiceState.STARTING: "STATUS=Starting",
    ServiceState.RUNNING: "READY=1\nSTATUS=Running",
    ServiceState.STOP_PENDING: "STOPPING=1\nSTATUS=Stopping",
    ServiceState.STOPPED: "STOPPING=1\nSTATUS=Stopped",
}


def notify_message(state: ServiceState, error: Optional[str] = None) -> str:
    """Build the sd_notify datagram for a state transition."""
    message = _STATE_MESSAGES[state]
    if error:
        # STATUS is a single line
        message += ": " + " ".join(error.splitlines())
    return message


class SystemdServiceHost:
    """
    ServiceHost backed by systemd.

    Without $NOTIFY_SOCKET (started by hand, or Type=simple) transitions
    are only logged.
    """

    def __init__(self, notify_socket: Optional[str] = None, service_name: str = "nist-time-sync"):
        """
        Args:
            notify_socket: Notify socket address (default: $NOTIFY_SOCKET)
            service_name: Name used in log messages
        """
        self.notify_socket = notify_socket if notify_socket is not None else os.environ.get(NOTIFY_SOCKET_ENV)
        self.service_name = service_name
        self.sent = 0

    @property
    def connected(self) -> bool:
        return bool(self.notify_socket)

    def _address(self) -> str:
        if self.notify_socket.startswith('@'):
            return '\0' + self.notify_socket[1:]
        return self.notify_socket

    def notify(self, message: str) -> bool:
        """
        Send one datagram to the notify socket.

        Returns:
            True if sent, False if there is no socket or the send failed
        """
        if not self.connected:
            return False
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
                sock.sendto(message.encode('utf-8'), self._address())
            self.sent += 1
            return True
        except OSError as e:
            logger.warning(f"Failed to notify systemd at {self.notify_socket}: {e}")
            return False

    def report_state(self, state: ServiceState, error: Optional[str] = None) -> None:
        if error:
            logger.error(f"Service {self.service_name}: {state.value} ({error})")
        else:
            logger.info(f"Service {self.service_name}: {state.value}")
        self.notify(notify_message(state, error))

    def install_signal_handlers(self, controller: ServiceLifecycleController) -> Dict[int, object]:
        """
        Route POSIX signals to controller.handle_control().

        Returns:
            The previous handlers, keyed by signal number
        """
        mapping = {
            signal.SIGTERM: ServiceControl.STOP,
            signal.SIGINT: ServiceControl.STOP,
        }
        if hasattr(signal, 'SIGUSR1'):
            mapping[signal.SIGUSR1] = ServiceControl.INTERROGATE

        def handle_signal(signum, frame):
            control = mapping[signum]
            logger.info(f"Received signal {signum} -> {control.value}")
            controller.handle_control(control)

        return {signum: signal.signal(signum, handle_signal) for signum in mapping}
