"""
Ignite Client: Apache Ignite Thin-Client Protocol

A small blocking client for the Apache Ignite binary thin-client
protocol, talking to a cache node over a single raw TCP socket.
"""

from .cache.cache import IgniteCache
from .client import IgniteClient
from .errors import (
    BufferUnderflowError,
    ConnectionClosedError,
    HandshakeRejectedError,
    IgniteError,
    RequestIdMismatchError,
    StatusError,
    TransportError,
    TypeMismatchError,
    UnsupportedTypeError,
    ValidationError,
)
from .protocol.types import TypedValue, TypeTag, java_hash

__version__ = "1.0.0"

__all__ = [
    "IgniteClient",
    "IgniteCache",
    "TypedValue",
    "TypeTag",
    "java_hash",
    "IgniteError",
    "TransportError",
    "ConnectionClosedError",
    "HandshakeRejectedError",
    "StatusError",
    "RequestIdMismatchError",
    "ValidationError",
    "UnsupportedTypeError",
    "TypeMismatchError",
    "BufferUnderflowError",
]
