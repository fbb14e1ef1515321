"""Protocol module for the Ignite client."""

from .codec import BinaryReader, BinaryWriter
from .frames import OpCode, RequestFrame, ResponseFrame
from .handshake import Handshake, HandshakeNegotiator, HandshakeState
from .types import TypedValue, TypeTag, java_hash, read_field, read_typed, write_field

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "OpCode",
    "RequestFrame",
    "ResponseFrame",
    "Handshake",
    "HandshakeNegotiator",
    "HandshakeState",
    "TypedValue",
    "TypeTag",
    "java_hash",
    "read_field",
    "read_typed",
    "write_field",
]
