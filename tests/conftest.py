"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests,
including an in-process asyncio server that speaks enough of the Ignite
thin-client protocol to exercise the client end to end.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Dict, List, Optional, Tuple

from ignite_client import IgniteClient
from ignite_client.errors import ConnectionClosedError
from ignite_client.protocol.codec import BinaryReader, BinaryWriter
from ignite_client.protocol.frames import OpCode, RequestFrame, ResponseFrame
from ignite_client.protocol.types import (
    TypedValue,
    TypeTag,
    java_hash,
    read_field,
    read_typed,
    write_field,
)

# Status codes the fake server answers with
STATUS_FAILED = 1
STATUS_CACHE_DOES_NOT_EXIST = 1000


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Fake Ignite Server
# ============================================================================

class FakeIgniteServer:
    """
    Minimal in-memory Ignite node for tests.

    Supports the handshake and the six cache operations. Tests can script
    a handshake rejection, shift response ids to simulate a desynchronized
    stream, and inspect every handshake and request received.

    Attributes:
        reject: ((major, minor, patch), message) to refuse handshakes with
        request_id_offset: Added to every response id
        silent: Record requests without ever answering them
        caches: cache hash -> cache name, in creation order
        entries: cache hash -> {TypedValue key: TypedValue value}
        handshakes: Raw handshake bodies received
        requests: Request frames received
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reject: Optional[Tuple[Tuple[int, int, int], str]] = None
        self.request_id_offset = 0
        self.silent = False
        self.caches: Dict[int, str] = {}
        self.entries: Dict[int, Dict[TypedValue, TypedValue]] = {}
        self.handshakes: List[bytes] = []
        self.requests: List[RequestFrame] = []
        self._server: Optional[asyncio.Server] = None
        self._writers = set()

    async def start(self) -> None:
        self._server = await asyncio.start_server(self.handle_client, self.host, self.port)

    async def stop(self) -> None:
        for writer in list(self._writers):
            writer.close()
        if self._server is not None:
            self._server.close()
            try:
                await asyncio.wait_for(self._server.wait_closed(), timeout=2)
            except asyncio.TimeoutError:
                pass
            self._server = None

    async def handle_client(self, reader, writer) -> None:
        self._writers.add(writer)
        try:
            if not await self._handshake(reader, writer):
                return
            while True:
                try:
                    head = await reader.readexactly(4)
                except asyncio.IncompleteReadError:
                    break
                length = BinaryReader(head).read_uint()
                request = RequestFrame.decode(head + await reader.readexactly(length))
                self.requests.append(request)
                if self.silent:
                    continue

                writer.write(self.dispatch(request).encode())
                await writer.drain()
        except (ConnectionResetError, BrokenPipeError, asyncio.IncompleteReadError):
            pass
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionResetError, BrokenPipeError):
                pass

    async def _handshake(self, reader, writer) -> bool:
        length = BinaryReader(await reader.readexactly(4)).read_int()
        self.handshakes.append(await reader.readexactly(length))

        response = BinaryWriter()
        if self.reject is None:
            response.write_int(1).write_byte(1)
            accepted = True
        else:
            (major, minor, patch), message = self.reject
            encoded = message.encode("utf-8")
            response.write_int(1 + 6 + len(encoded)).write_byte(0)
            response.write_ushort(major).write_ushort(minor).write_ushort(patch)
            response.write_bytes(encoded)
            accepted = False

        writer.write(response.flush())
        await writer.drain()
        return accepted

    def dispatch(self, request: RequestFrame) -> ResponseFrame:
        """Execute one request against the in-memory caches."""
        reader = BinaryReader(request.payload)
        request_id = request.request_id + self.request_id_offset
        op_code = request.op_code

        if op_code == OpCode.CACHE_GET_NAMES:
            payload = BinaryWriter().write_int(len(self.caches))
            for name in self.caches.values():
                write_field(payload, name)
            return ResponseFrame.success(request_id, payload.flush())

        if op_code in (OpCode.CACHE_CREATE_WITH_NAME, OpCode.CACHE_GET_OR_CREATE_WITH_NAME):
            name = read_typed(reader, TypeTag.STRING)
            cache_id = java_hash(name)
            if cache_id in self.caches:
                if op_code == OpCode.CACHE_CREATE_WITH_NAME:
                    return ResponseFrame.failure(
                        request_id, STATUS_FAILED, f"Cache already exists [name={name}]"
                    )
            else:
                self.caches[cache_id] = name
                self.entries[cache_id] = {}
            return ResponseFrame.success(request_id)

        if op_code == OpCode.CACHE_DESTROY:
            cache_id = reader.read_int()
            if cache_id not in self.caches:
                return self._missing_cache(request_id, cache_id)
            del self.caches[cache_id]
            del self.entries[cache_id]
            return ResponseFrame.success(request_id)

        if op_code in (OpCode.CACHE_GET, OpCode.CACHE_PUT):
            cache_id = reader.read_int()
            reader.read_byte()  # flags
            if cache_id not in self.caches:
                return self._missing_cache(request_id, cache_id)
            key = read_field(reader)
            entries = self.entries[cache_id]

            if op_code == OpCode.CACHE_PUT:
                entries[key] = read_field(reader)
                return ResponseFrame.success(request_id)

            payload = BinaryWriter()
            value = entries.get(key)
            if value is None:
                payload.write_byte(TypeTag.NULL)
            else:
                write_field(payload, value)
            return ResponseFrame.success(request_id, payload.flush())

        return ResponseFrame.failure(request_id, STATUS_FAILED, f"unsupported operation {op_code}")

    @staticmethod
    def _missing_cache(request_id: int, cache_id: int) -> ResponseFrame:
        return ResponseFrame.failure(
            request_id,
            STATUS_CACHE_DOES_NOT_EXIST,
            f"Cache does not exist [cacheId={cache_id}]",
        )


# ============================================================================
# In-memory Transport
# ============================================================================

class FakeTransport:
    """
    Scripted transport for handshake tests.

    Records everything sent and replays the bytes given at construction.
    """

    def __init__(self, incoming: bytes = b""):
        self.incoming = BinaryReader(incoming)
        self.sent = bytearray()
        self.closed = False

    def send(self, data: bytes) -> None:
        self.sent += data

    def recv_exactly(self, size: int) -> bytes:
        if size > self.incoming.remaining():
            raise ConnectionClosedError("scripted stream exhausted")
        return self.incoming.read_bytes(size)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport_factory():
    """
    Factory fixture for scripted transports.

    Usage:
        def test_something(transport_factory):
            transport = transport_factory(b"\\x01\\x00\\x00\\x00\\x01")
    """
    return FakeTransport


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[FakeIgniteServer, None]:
    """
    Create and start a fake Ignite server for testing.

    This fixture:
    1. Creates a FakeIgniteServer on a random free port
    2. Starts accepting connections on the test's event loop
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = FakeIgniteServer('127.0.0.1', server_port)
    await srv.start()

    yield srv

    await srv.stop()


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create unconnected clients for the fake server.

    Usage:
        async def test_something(server, client_factory):
            client = client_factory()
            await asyncio.to_thread(client.connect)
    """
    def factory(**kwargs) -> IgniteClient:
        kwargs.setdefault("timeout", 5)
        return IgniteClient(host='127.0.0.1', port=server_port, **kwargs)
    return factory


@pytest_asyncio.fixture
async def client(
    server: FakeIgniteServer,
    client_factory,
) -> AsyncGenerator[IgniteClient, None]:
    """
    A client connected to the fake server.

    The client blocks, so tests drive it with asyncio.to_thread() while
    the server runs on the event loop.
    """
    c = client_factory()
    await asyncio.to_thread(c.connect)

    yield c

    await asyncio.to_thread(c.close)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
