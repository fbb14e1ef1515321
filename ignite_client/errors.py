"""
Ignite Client Errors

Every error raised by the client derives from IgniteError. The subclasses
separate failures that kill the connection (transport, handshake, id
mismatch) from failures the caller can recover from on the same connection
(server status, validation, type mismatch).
"""

from typing import Optional, Tuple


class IgniteError(Exception):
    """Base class for all client errors."""


class TransportError(IgniteError):
    """Socket connect, read or write failure. The connection is closed."""


class ConnectionClosedError(TransportError):
    """The connection was closed locally or by the peer."""


class HandshakeRejectedError(IgniteError):
    """
    The server refused the protocol handshake.

    Attributes:
        address: host:port the client tried to connect to
        client_version: (major, minor, patch) the client requested
        server_version: (major, minor, patch) the server reported
        server_message: Message sent by the server
    """

    def __init__(
            self,
            address: str,
            client_version: Tuple[int, int, int],
            server_version: Tuple[int, int, int],
            server_message: str,
    ):
        self.address = address
        self.client_version = client_version
        self.server_version = server_version
        self.server_message = server_message
        super().__init__(
            f"error connecting to ignite [{address}]: "
            f"client [{_version(client_version)}], "
            f"server [{_version(server_version)}]: {server_message}"
        )


class StatusError(IgniteError):
    """
    The server answered a request with a non-zero status.

    The connection remains usable.

    Attributes:
        op_code: Operation code of the failed request
        status: Status code returned by the server
        server_message: Error message returned by the server
    """

    def __init__(self, op_code: int, status: int, server_message: str):
        self.op_code = int(op_code)
        self.status = status
        self.server_message = server_message
        super().__init__(
            f"error ignite request {self.op_code}: status {status}: {server_message}"
        )


class RequestIdMismatchError(IgniteError):
    """The response carried a different request id than the request."""

    def __init__(self, expected: int, actual: int, op_code: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        self.op_code = int(op_code) if op_code is not None else None
        super().__init__(f"wrong response id: expected {expected}, was {actual}")


class ValidationError(IgniteError, ValueError):
    """An argument was rejected before any network I/O."""


class UnsupportedTypeError(ValidationError, TypeError):
    """A key or value has a host type with no protocol type tag."""

    def __init__(self, value_type: type):
        self.value_type = value_type
        super().__init__(f"unsupported data type {value_type.__name__}")


class TypeMismatchError(IgniteError):
    """A decoded type tag differs from the one the caller expected."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"incorrect value data type from cache: expected {expected}, actual {actual}"
        )


class BufferUnderflowError(IgniteError):
    """A read needed more bytes than remain in the buffer."""

    def __init__(self, needed: int, remaining: int):
        self.needed = needed
        self.remaining = remaining
        super().__init__(f"buffer underflow: need {needed} bytes, {remaining} remaining")


def _version(version: Tuple[int, int, int]) -> str:
    return ".".join(str(part) for part in version)
