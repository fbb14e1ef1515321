"""
Handshake Negotiator Module

One-shot version and credential exchange performed right after the TCP
connection opens, before any framed request is allowed.

Wire Format:
    Request:  i32 length | u8 code | u16 major | u16 minor | u16 patch |
              u8 client_kind | username bytes | password bytes
    Accepted: i32 length | u8 1
    Rejected: i32 length | u8 0 | u16 major | u16 minor | u16 patch | message

Username and password are raw UTF-8 with no length prefix of their own;
their extent is implied by the overall length. Ignite servers expect
exactly this layout, unlike the length-prefixed strings used in payloads.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple

from ..config.settings import settings
from ..errors import BufferUnderflowError, HandshakeRejectedError
from .codec import BinaryReader, BinaryWriter
from .frames import decode_handshake_message

logger = logging.getLogger(__name__)

HANDSHAKE_CODE = 1
THIN_CLIENT_KIND = 2
# code + major + minor + patch + client_kind
HANDSHAKE_FIXED_SIZE = 8
# i32 length + u8 success
HANDSHAKE_RESPONSE_SIZE = 5


class HandshakeState(Enum):
    """Connection lifecycle as seen by the negotiator."""
    CONNECTING = auto()
    NEGOTIATING = auto()
    READY = auto()
    REJECTED = auto()


@dataclass
class Handshake:
    """Handshake request sent once per connection attempt."""
    major: int = settings.PROTOCOL_MAJOR
    minor: int = settings.PROTOCOL_MINOR
    patch: int = settings.PROTOCOL_PATCH
    username: str = ""
    password: str = ""
    code: int = HANDSHAKE_CODE
    client_kind: int = THIN_CLIENT_KIND

    @property
    def version(self) -> Tuple[int, int, int]:
        return self.major, self.minor, self.patch

    def encode(self) -> bytes:
        username = self.username.encode("utf-8")
        password = self.password.encode("utf-8")

        writer = BinaryWriter()
        writer.write_int(HANDSHAKE_FIXED_SIZE + len(username) + len(password))
        writer.write_byte(self.code)
        writer.write_ushort(self.major)
        writer.write_ushort(self.minor)
        writer.write_ushort(self.patch)
        writer.write_byte(self.client_kind)
        writer.write_bytes(username)
        writer.write_bytes(password)
        return writer.flush()


@dataclass
class HandshakeFailure:
    """Server side of a rejected handshake."""
    major: int
    minor: int
    patch: int
    message: str

    @property
    def version(self) -> Tuple[int, int, int]:
        return self.major, self.minor, self.patch

    @classmethod
    def decode(cls, tail: bytes) -> "HandshakeFailure":
        """Decode the bytes that follow the success flag."""
        reader = BinaryReader(tail)
        major = reader.read_ushort()
        minor = reader.read_ushort()
        patch = reader.read_ushort()
        message = decode_handshake_message(reader.read_rest())
        return cls(major=major, minor=minor, patch=patch, message=message)


class HandshakeNegotiator:
    """
    Runs the handshake over a transport.

    The transport must provide send(data), recv_exactly(size) and close().
    The negotiator is single use: once it reaches READY or REJECTED it
    stays there.
    """

    def __init__(self, transport, handshake: Handshake, address: str = ""):
        self.transport = transport
        self.handshake = handshake
        self.address = address
        self.state = HandshakeState.CONNECTING

    def negotiate(self) -> None:
        """
        Send the handshake and wait for the verdict.

        Raises:
            HandshakeRejectedError: the server refused; the transport is closed
            TransportError: the socket failed during the exchange
        """
        if self.state is not HandshakeState.CONNECTING:
            raise RuntimeError(f"handshake already run (state {self.state.name})")

        self.state = HandshakeState.NEGOTIATING
        logger.debug(f"Handshake with {self.address}: version {self.handshake.version}")
        self.transport.send(self.handshake.encode())

        reader = BinaryReader(self.transport.recv_exactly(HANDSHAKE_RESPONSE_SIZE))
        length = reader.read_int()
        success = reader.read_byte()

        if success == 1:
            self.state = HandshakeState.READY
            logger.debug(f"Handshake with {self.address} accepted")
            return

        try:
            tail = self.transport.recv_exactly(max(length - 1, 0))
            try:
                failure = HandshakeFailure.decode(tail)
            except BufferUnderflowError:
                # Too short for a version triple
                failure = HandshakeFailure(major=0, minor=0, patch=0, message="")
        finally:
            self.transport.close()
            self.state = HandshakeState.REJECTED

        logger.warning(
            f"Handshake with {self.address} rejected: server {failure.version}: {failure.message}"
        )
        raise HandshakeRejectedError(
            self.address, self.handshake.version, failure.version, failure.message
        )
