"""
Ignite Client Module

The public entry point: opens the TCP connection, negotiates the handshake
and runs request/response cycles for the cache management operations.
Key/value operations live on IgniteCache, which uses the same cycle.

Usage:
    with IgniteClient(host="127.0.0.1", port=10800) as client:
        cache = client.get_or_create_cache("people")
        cache.put(1, "alice")
        print(cache.get(1, str))
"""

import logging
import threading
from typing import List, Optional

from .cache.cache import IgniteCache
from .config.settings import settings
from .errors import (
    ConnectionClosedError,
    IgniteError,
    RequestIdMismatchError,
    TransportError,
    UnsupportedTypeError,
)
from .network.connection import Connection
from .network.sequencer import RequestSequencer
from .protocol.codec import BinaryReader, BinaryWriter
from .protocol.frames import RESPONSE_HEADER_SIZE, OpCode, RequestFrame, ResponseFrame
from .protocol.handshake import Handshake, HandshakeNegotiator, HandshakeState
from .protocol.types import java_hash, read_string, write_field

logger = logging.getLogger(__name__)


class IgniteClient:
    """
    Blocking client for one Ignite node over one TCP connection.

    Requests are never pipelined: each call writes its request and reads
    the full response while holding the connection lock, so calls from
    several threads run one after another.

    A client connects once. After close(), a rejected handshake or a
    request id mismatch it cannot be reused; create a new IgniteClient.

    Attributes:
        host: Server host (default from settings)
        port: Server port (default from settings)
        username: Handshake username (default from settings)
        password: Handshake password (default from settings)
        timeout: Socket timeout in seconds, None or 0 to block forever
        state: HandshakeState of the connection
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            username: str = None,
            password: str = None,
            timeout: Optional[float] = None,
    ):
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.username = username if username is not None else settings.USERNAME
        self.password = password if password is not None else settings.PASSWORD
        timeout = timeout if timeout is not None else settings.TIMEOUT
        self.timeout = timeout or None

        self.state = HandshakeState.CONNECTING
        self._connection: Optional[Connection] = None
        self._sequencer = RequestSequencer()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        return self.state is HandshakeState.READY and not self._closed

    def connect(self) -> None:
        """
        Open the connection and run the handshake.

        Raises:
            HandshakeRejectedError: the server refused the protocol version
                or credentials
            TransportError: the server is unreachable
            IgniteError: the client was already connected or closed
        """
        if self._closed or self.state is not HandshakeState.CONNECTING:
            raise IgniteError(f"client for {self.address} cannot be reused, create a new one")

        connection = Connection(self.host, self.port, timeout=self.timeout)
        connection.open()

        handshake = Handshake(username=self.username, password=self.password)
        negotiator = HandshakeNegotiator(connection, handshake, address=self.address)
        try:
            negotiator.negotiate()
        except TransportError:
            connection.close()
            raise
        finally:
            self.state = negotiator.state

        self._connection = connection
        self._sequencer.start()
        logger.info(f"Connected to ignite at {self.address}")

    def close(self) -> None:
        """
        Stop the request sequencer and close the socket.

        A call blocked on the connection fails with ConnectionClosedError.
        """
        if self._closed:
            return
        self._closed = True
        self._sequencer.stop()
        if self._connection is not None:
            self._connection.close()
            logger.info(f"Closed connection to ignite at {self.address}")

    def __enter__(self) -> "IgniteClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def request(self, op_code: int, payload: bytes = b"") -> bytes:
        """
        Run one full request/response cycle.

        Args:
            op_code: Operation code
            payload: Encoded request payload

        Returns:
            The response payload (empty for operations without one)

        Raises:
            StatusError: the server returned a non-zero status
            RequestIdMismatchError: the response answered another request;
                the connection is closed
            ConnectionClosedError: the client is closed
            TransportError: the socket failed; the connection is closed
        """
        if self._closed or self._connection is None:
            raise ConnectionClosedError(f"client for {self.address} is not connected")

        with self._lock:
            request_id = self._sequencer.next_id()
            frame = RequestFrame(op_code=op_code, request_id=request_id, payload=payload)
            logger.debug(f"-> op {op_code} id {request_id} ({len(payload)} bytes)")

            try:
                self._connection.send(frame.encode())
                header = self._connection.recv_exactly(RESPONSE_HEADER_SIZE)
                length, _, _ = ResponseFrame.parse_header(header)
                body = self._connection.recv_exactly(ResponseFrame.body_size(length))
            except TransportError:
                self.close()
                raise

            response = ResponseFrame.decode(header, body)
            logger.debug(
                f"<- id {response.request_id} status {response.status} "
                f"({len(response.payload)} bytes)"
            )

            if response.request_id != request_id:
                logger.warning(
                    f"Response id {response.request_id} does not match request "
                    f"{request_id}, closing connection to {self.address}"
                )
                self.close()
                raise RequestIdMismatchError(request_id, response.request_id, op_code)

        response.raise_for_status(op_code)
        return response.payload

    def get_cache_names(self) -> List[str]:
        """Return the names of all caches on the server, in server order."""
        payload = self.request(OpCode.CACHE_GET_NAMES)
        if not payload:
            return []

        reader = BinaryReader(payload)
        count = reader.read_int()
        names = []
        for _ in range(count):
            reader.read_byte()  # type tag
            names.append(read_string(reader))
        return names

    def create_cache(self, name: str) -> IgniteCache:
        """
        Create a new cache.

        Raises:
            StatusError: a cache with that name already exists
        """
        self.request(OpCode.CACHE_CREATE_WITH_NAME, _name_payload(name))
        return IgniteCache(self, name)

    def get_or_create_cache(self, name: str) -> IgniteCache:
        """Return a handle to the named cache, creating it if needed."""
        self.request(OpCode.CACHE_GET_OR_CREATE_WITH_NAME, _name_payload(name))
        return IgniteCache(self, name)

    def destroy_cache(self, name: str) -> None:
        """
        Destroy the named cache on the server.

        Raises:
            StatusError: the cache does not exist
        """
        writer = BinaryWriter()
        writer.write_int(java_hash(name))
        self.request(OpCode.CACHE_DESTROY, writer.flush())


def _name_payload(name: str) -> bytes:
    if not isinstance(name, str):
        raise UnsupportedTypeError(type(name))
    writer = BinaryWriter()
    write_field(writer, name)
    return writer.flush()
