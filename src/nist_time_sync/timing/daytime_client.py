"""
NIST Daytime Protocol Client

Reads one line from a daytime-style time service (RFC 867, TCP port 13).
NIST servers answer immediately on connect with a fixed-format line:

    JJJJJ YY-MM-DD HH:MM:SS TT L H msADV UTC(NIST) OTM

One connect-read-close cycle per call. No handshake, no retry: the
scheduler decides what a failure means.

Reference:
- https://www.nist.gov/pml/time-and-frequency-division/time-distribution/internet-time-service-its
"""

import logging
import socket
from typing import Optional

from ..errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "time.nist.gov"
DEFAULT_PORT = 13
DEFAULT_TIMEOUT = 10.0

# The NIST reply is ~51 bytes; one read of this size always covers it
READ_SIZE = 256


class DaytimeClient:
    """
    Fetches the raw reply line from a daytime server.

    Usage:
        client = DaytimeClient("time.nist.gov", 13)
        reply = client.fetch()
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def fetch(self) -> str:
        """
        Read one reply from the server.

        Returns:
            The received bytes decoded as text (invalid UTF-8 replaced),
            stripped of surrounding whitespace.

        Raises:
            NetworkError: connection refused, timed out, reset or the
                host could not be resolved (including invalid IDNA names).
        """
        logger.debug(f"Connecting to {self.address}")
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                data = sock.recv(READ_SIZE)
        except (OSError, UnicodeError) as e:
            raise NetworkError(f"Failed to read time from {self.address}: {e}") from e

        reply = data.decode('utf-8', errors='replace').strip()
        logger.debug(f"Received {len(data)} bytes from {self.address}: {reply!r}")
        return reply

    def __repr__(self) -> str:
        return f"DaytimeClient({self.address!r}, timeout={self.timeout})"
