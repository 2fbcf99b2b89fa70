"""
Configuration for nist-time-sync.

Loaded from a TOML file; missing keys fall back to the defaults below.
Command-line options are applied on top by main.py.

Example /etc/nist-time-sync/config.toml:

    [server]
    host = "time.nist.gov"
    port = 13
    timeout = 10.0

    [sync]
    interval_minutes = 60
    poll_interval = 1.0

    [service]
    name = "nist-time-sync"
    unit_dir = "/etc/systemd/system"
"""

import copy
import logging
import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .errors import ConfigError
from .interfaces.sync_result import SyncInterval
from .timing.daytime_client import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'server': {
        'host': DEFAULT_HOST,
        'port': DEFAULT_PORT,
        'timeout': DEFAULT_TIMEOUT,
    },
    'sync': {
        'interval_minutes': 60,
        'poll_interval': 1.0,
    },
    'service': {
        'name': 'nist-time-sync',
        'unit_dir': '/etc/systemd/system',
    },
}


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def _text(section: Dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string, got {value!r}")
    return value


def _positive_float(section: Dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{key} must be a positive number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class SyncConfig:
    """Process-wide settings, fixed at startup."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    interval: SyncInterval = SyncInterval(60)
    poll_interval: float = 1.0
    service_name: str = 'nist-time-sync'
    unit_dir: str = '/etc/systemd/system'

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "SyncConfig":
        """Build from a (possibly partial) config dictionary."""
        server = _section(config, 'server')
        sync = _section(config, 'sync')
        service = _section(config, 'service')

        port = server.get('port', DEFAULT_PORT)
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigError(f"Invalid server port {port!r}")

        return cls(
            host=_text(server, 'host', DEFAULT_HOST),
            port=port,
            timeout=_positive_float(server, 'timeout', DEFAULT_TIMEOUT),
            interval=SyncInterval(sync.get('interval_minutes', 60)),
            poll_interval=_positive_float(sync, 'poll_interval', 1.0),
            service_name=_text(service, 'name', 'nist-time-sync'),
            unit_dir=_text(service, 'unit_dir', '/etc/systemd/system'),
        )

    def with_server(self, address: str) -> "SyncConfig":
        """Override the time source from a HOST[:PORT] string."""
        host, port = parse_server_address(address, default_port=self.port)
        return replace(self, host=host, port=port)

    def with_interval(self, minutes: int) -> "SyncConfig":
        return replace(self, interval=SyncInterval(minutes))

    @property
    def server_address(self) -> str:
        return f"{self.host}:{self.port}"


def parse_server_address(address: str, default_port: int = DEFAULT_PORT):
    """
    Split HOST[:PORT].

    Examples:
        "time.nist.gov"        -> ("time.nist.gov", 13)
        "time-a-g.nist.gov:13" -> ("time-a-g.nist.gov", 13)
        "[::1]:1313"           -> ("::1", 1313)
    """
    address = address.strip()
    if not address:
        raise ConfigError("Server address is empty")

    if address.startswith('['):
        host, sep, rest = address[1:].partition(']')
        if not sep:
            raise ConfigError(f"Invalid server address {address!r}")
        port_text = rest[1:] if rest.startswith(':') else None
        if rest and port_text is None:
            raise ConfigError(f"Invalid server address {address!r}")
    elif address.count(':') == 1:
        host, port_text = address.split(':')
    else:
        host, port_text = address, None

    if not host:
        raise ConfigError(f"Invalid server address {address!r}")
    if port_text is None:
        return host, default_port
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise ConfigError(f"Invalid port in server address {address!r}")
    return host, int(port_text)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from TOML file, merged over the defaults."""
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, 'r') as f:
            loaded = toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigError(f"Failed to read config {path}: {e}") from e

    logger.debug(f"Loaded configuration from {path}")
    return _merge(DEFAULT_CONFIG, loaded)
