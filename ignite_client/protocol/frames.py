"""
Frame Layer Module

Builds request frames and parses response frames of the Ignite
thin-client protocol.

Frame Format:
    Request:  u32 length | u16 op_code | u64 request_id | payload
              (length = 10 + len(payload), counted after the length field)
    Response: u32 length | u64 request_id | u32 status | body
              (length = 12 + len(body), counted after the length field)

    status == 0  -> body is the operation's payload (may be empty)
    status != 0  -> body is u32 message length + UTF-8 message
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

from ..errors import StatusError
from .codec import BinaryReader, BinaryWriter
from .types import TypeTag


class OpCode(IntEnum):
    """Operation codes used by this client."""
    CACHE_GET = 1000
    CACHE_PUT = 1001
    CACHE_GET_NAMES = 1050
    CACHE_CREATE_WITH_NAME = 1051
    CACHE_GET_OR_CREATE_WITH_NAME = 1052
    CACHE_DESTROY = 1056


# op_code + request_id, following the length field
REQUEST_FIXED_SIZE = 10
# request_id + status, following the length field
RESPONSE_FIXED_SIZE = 12
# length + request_id + status
RESPONSE_HEADER_SIZE = 16


@dataclass
class RequestFrame:
    """
    One outgoing request.

    Attributes:
        op_code: Operation code (16-bit)
        request_id: Connection-unique request id (64-bit)
        payload: Operation payload, already encoded
    """
    op_code: int
    request_id: int
    payload: bytes = b""

    def encode(self) -> bytes:
        """Encode the frame as it goes on the wire."""
        writer = BinaryWriter()
        writer.write_uint(REQUEST_FIXED_SIZE + len(self.payload))
        writer.write_ushort(self.op_code)
        writer.write_ulong(self.request_id)
        writer.write_bytes(self.payload)
        return writer.flush()

    @classmethod
    def decode(cls, data: bytes) -> "RequestFrame":
        """Parse a complete request frame, length field included."""
        reader = BinaryReader(data)
        length = reader.read_uint()
        op_code = reader.read_ushort()
        request_id = reader.read_ulong()
        payload = reader.read_bytes(length - REQUEST_FIXED_SIZE)
        return cls(op_code=op_code, request_id=request_id, payload=payload)


@dataclass
class ResponseFrame:
    """
    One incoming response.

    Attributes:
        length: Value of the length field
        request_id: Id of the request this answers
        status: 0 on success, server error code otherwise
        error_message: Server message, set iff status != 0
        payload: Response payload, empty on error
    """
    length: int
    request_id: int
    status: int = 0
    error_message: Optional[str] = None
    payload: bytes = b""

    @property
    def ok(self) -> bool:
        return self.status == 0

    @staticmethod
    def parse_header(header: bytes) -> Tuple[int, int, int]:
        """
        Parse the fixed 16-byte response header.

        Returns:
            (length, request_id, status)
        """
        reader = BinaryReader(header)
        return reader.read_uint(), reader.read_ulong(), reader.read_uint()

    @staticmethod
    def body_size(length: int) -> int:
        """Number of bytes that follow the header for a given length field."""
        return max(length - RESPONSE_FIXED_SIZE, 0)

    @classmethod
    def decode(cls, header: bytes, body: bytes = b"") -> "ResponseFrame":
        """Build a frame from its header and the body read after it."""
        length, request_id, status = cls.parse_header(header)
        if status != 0:
            return cls(
                length=length,
                request_id=request_id,
                status=status,
                error_message=decode_error_message(body),
            )
        return cls(length=length, request_id=request_id, payload=bytes(body))

    @classmethod
    def success(cls, request_id: int, payload: bytes = b"") -> "ResponseFrame":
        return cls(
            length=RESPONSE_FIXED_SIZE + len(payload),
            request_id=request_id,
            payload=payload,
        )

    @classmethod
    def failure(cls, request_id: int, status: int, message: str) -> "ResponseFrame":
        # u32 message length + message
        length = RESPONSE_FIXED_SIZE + 4 + len(message.encode("utf-8"))
        return cls(
            length=length,
            request_id=request_id,
            status=status,
            error_message=message,
        )

    def encode(self) -> bytes:
        """Encode the frame as a server would send it."""
        body = BinaryWriter()
        if self.status != 0:
            message = (self.error_message or "").encode("utf-8")
            body.write_uint(len(message)).write_bytes(message)
        else:
            body.write_bytes(self.payload)

        writer = BinaryWriter()
        writer.write_uint(RESPONSE_FIXED_SIZE + len(body))
        writer.write_ulong(self.request_id)
        writer.write_uint(self.status)
        writer.write_bytes(body.flush())
        return writer.flush()

    def raise_for_status(self, op_code: int) -> None:
        """Raise StatusError if the server reported a failure."""
        if self.status != 0:
            raise StatusError(op_code, self.status, self.error_message or "")


def decode_error_message(body: bytes) -> str:
    """
    Decode the error message carried by a failed response.

    The body is normally u32 length + UTF-8 message. Servers that send the
    message as a typed string (tag 9 + int32 length + bytes) are
    recognised by an exactly matching embedded length.
    """
    typed = _typed_string(body)
    if typed is not None:
        return typed
    return bytes(body[4:]).decode("utf-8", errors="replace")


def decode_handshake_message(tail: bytes) -> str:
    """Decode the message that follows the server version on rejection."""
    typed = _typed_string(tail)
    if typed is not None:
        return typed
    return bytes(tail).decode("utf-8", errors="replace")


def _typed_string(data: bytes) -> Optional[str]:
    if len(data) < 5 or data[0] != TypeTag.STRING:
        return None
    length = BinaryReader(data[1:5]).read_int()
    if length != len(data) - 5:
        return None
    return bytes(data[5:]).decode("utf-8", errors="replace")
