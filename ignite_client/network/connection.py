"""
TCP Connection Module

Blocking socket transport used by the client. Wraps connect, send and
exact-length receive so that every socket failure surfaces as a
TransportError and use after close surfaces as ConnectionClosedError.
"""

import logging
import socket
from typing import Optional

from ..config.settings import settings
from ..errors import ConnectionClosedError, TransportError

logger = logging.getLogger(__name__)


class Connection:
    """
    A single TCP stream to an Ignite node.

    Attributes:
        host: Server host
        port: Server port
        timeout: Socket timeout in seconds (None blocks forever)
    """

    def __init__(self, host: str, port: int, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._closed = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_open(self) -> bool:
        return self._sock is not None and not self._closed

    def open(self) -> None:
        """Connect to the server."""
        if self._closed:
            raise ConnectionClosedError(f"connection to {self.address} is closed")
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as exc:
            raise TransportError(f"cannot connect to {self.address}: {exc}") from exc
        self._sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        logger.debug(f"Connected to {self.address}")

    def send(self, data: bytes) -> None:
        """Write all of data in one call."""
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as exc:
            raise self._failure("send", exc) from exc

    def recv_exactly(self, size: int) -> bytes:
        """
        Read exactly size bytes.

        Raises:
            ConnectionClosedError: the peer closed the stream early, or the
                connection was closed locally while waiting
            TransportError: any other socket failure, including timeouts
        """
        sock = self._require_socket()
        chunks = []
        remaining = size
        while remaining > 0:
            try:
                chunk = sock.recv(min(remaining, settings.READ_BUFFER_SIZE))
            except OSError as exc:
                raise self._failure("receive", exc) from exc
            if not chunk:
                raise ConnectionClosedError(
                    f"connection to {self.address} closed by peer "
                    f"({size - remaining} of {size} bytes read)"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Peer may already be gone
                pass
            self._sock.close()
            logger.debug(f"Closed connection to {self.address}")

    def _require_socket(self) -> socket.socket:
        if self._closed or self._sock is None:
            raise ConnectionClosedError(f"connection to {self.address} is closed")
        return self._sock

    def _failure(self, action: str, exc: OSError) -> TransportError:
        if self._closed:
            return ConnectionClosedError(f"connection to {self.address} is closed")
        if isinstance(exc, socket.timeout):
            return TransportError(f"{action} timed out on {self.address}")
        return TransportError(f"{action} failed on {self.address}: {exc}")
