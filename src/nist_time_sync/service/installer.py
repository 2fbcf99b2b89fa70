"""
systemd unit installation for nist-time-sync.

--install writes /etc/systemd/system/<name>.service and enables it;
--uninstall disables and removes it. Only registration is touched here:
the scheduler never sees any of it.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional

from ..errors import ServiceInstallError

logger = logging.getLogger(__name__)

DEFAULT_UNIT_DIR = "/etc/systemd/system"

MSG_ACCESS_DENIED = "Access denied. Please run this application as root."
MSG_ALREADY_INSTALLED = "Service already installed."
MSG_NOT_INSTALLED = "Service not installed."


def render_unit(
    service_name: str,
    interval_minutes: int,
    python: Optional[str] = None,
    extra_args: Optional[List[str]] = None,
) -> str:
    """
    Generate the systemd unit file.

    Args:
        service_name: Unit name without the .service suffix
        interval_minutes: Value passed to --interval
        python: Interpreter path (default: sys.executable)
        extra_args: Further CLI arguments (e.g. ['--config', path])

    Returns:
        Unit file contents
    """
    python = python or sys.executable
    args = ["-m", "nist_time_sync", "--service", "--interval", str(interval_minutes)]
    args.extend(extra_args or [])
    exec_start = " ".join([python] + args)
    return f"""\
# =============================================================================
# {service_name}: sync the system clock with NIST
# =============================================================================
[Unit]
Description=NIST Time Sync Service
Documentation=https://www.nist.gov/pml/time-and-frequency-division/time-distribution/internet-time-service-its
Wants=network-online.target
After=network-online.target

[Service]
Type=notify
ExecStart={exec_start}
# No supervisory restart: a failed sync stops the service
Restart=no

[Install]
WantedBy=multi-user.target
"""


class ServiceInstaller:
    """
    Registers / removes the systemd unit.

    Usage:
        installer = ServiceInstaller("nist-time-sync")
        installer.install(interval_minutes=60)
    """

    def __init__(
        self,
        service_name: str = "nist-time-sync",
        unit_dir: str = DEFAULT_UNIT_DIR,
        run: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    ):
        """
        Args:
            service_name: Unit name without the .service suffix
            unit_dir: Directory the unit file is written to
            run: subprocess.run replacement (tests)
        """
        self.service_name = service_name
        self.unit_dir = Path(unit_dir)
        self._run = run or subprocess.run

    @property
    def unit_path(self) -> Path:
        return self.unit_dir / f"{self.service_name}.service"

    @property
    def unit_name(self) -> str:
        return f"{self.service_name}.service"

    def _systemctl(self, *args: str):
        cmd = ["systemctl", *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            self._run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except FileNotFoundError as e:
            raise ServiceInstallError("systemctl not found; is this a systemd host?") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise ServiceInstallError(f"Error: {' '.join(cmd)} failed: {stderr or e}") from e

    def install(self, interval_minutes: int, extra_args: Optional[List[str]] = None) -> Path:
        """
        Write the unit, reload systemd and start the service.

        Raises:
            ServiceInstallError: already installed, permission denied or
                systemctl failure
        """
        if self.unit_path.exists():
            raise ServiceInstallError(MSG_ALREADY_INSTALLED)

        unit = render_unit(self.service_name, interval_minutes, extra_args=extra_args)
        try:
            self.unit_path.write_text(unit)
        except PermissionError as e:
            raise ServiceInstallError(MSG_ACCESS_DENIED) from e
        except OSError as e:
            raise ServiceInstallError(f"Error: {e}") from e
        logger.info(f"Wrote {self.unit_path}")

        self._systemctl("daemon-reload")
        self._systemctl("enable", "--now", self.unit_name)
        return self.unit_path

    def uninstall(self) -> Path:
        """
        Stop and disable the service, then remove the unit.

        Raises:
            ServiceInstallError: not installed, permission denied or
                systemctl failure
        """
        if not self.unit_path.exists():
            raise ServiceInstallError(MSG_NOT_INSTALLED)

        self._systemctl("disable", "--now", self.unit_name)
        try:
            self.unit_path.unlink()
        except PermissionError as e:
            raise ServiceInstallError(MSG_ACCESS_DENIED) from e
        except OSError as e:
            raise ServiceInstallError(f"Error: {e}") from e
        logger.info(f"Removed {self.unit_path}")

        self._systemctl("daemon-reload")
        return self.unit_path
