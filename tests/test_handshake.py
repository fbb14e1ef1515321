"""
Tests for the Handshake Negotiator

These tests verify:
- Handshake request layout, including unprefixed credentials
- Acceptance and rejection handling over a scripted transport

Run with: python -m pytest tests/test_handshake.py -v
"""

import pytest
from ignite_client.errors import ConnectionClosedError, HandshakeRejectedError
from ignite_client.protocol.codec import BinaryWriter
from ignite_client.protocol.handshake import (
    Handshake,
    HandshakeFailure,
    HandshakeNegotiator,
    HandshakeState,
)


def rejection(version, message: bytes) -> bytes:
    writer = BinaryWriter()
    writer.write_int(1 + 6 + len(message)).write_byte(0)
    for part in version:
        writer.write_ushort(part)
    writer.write_bytes(message)
    return writer.flush()


class TestHandshakeEncoding:
    """Test the handshake request bytes."""

    def test_default_layout(self):
        """Test the default 1.1.0 thin-client handshake."""
        assert Handshake().encode() == (
            b"\x08\x00\x00\x00"   # length
            + b"\x01"             # handshake code
            + b"\x01\x00\x01\x00\x00\x00"  # 1.1.0
            + b"\x02"             # thin client
        )

    def test_credentials_are_not_length_prefixed(self):
        """Test username and password are appended as raw bytes."""
        data = Handshake(username="ab", password="cde").encode()

        assert data[:4] == b"\x0d\x00\x00\x00"  # 8 + 2 + 3
        assert data[12:] == b"abcde"

    def test_utf8_credentials_counted_in_bytes(self):
        """Test the length counts UTF-8 bytes, not characters."""
        data = Handshake(username="é").encode()
        assert data[:4] == b"\x0a\x00\x00\x00"

    def test_version(self):
        """Test the version tuple."""
        assert Handshake(major=1, minor=2, patch=3).version == (1, 2, 3)


class TestHandshakeNegotiator:
    """Test negotiation over a scripted transport."""

    def test_accepted(self, transport_factory):
        """Test success=1 moves the negotiator to READY."""
        transport = transport_factory(b"\x02\x00\x00\x00\x01")
        handshake = Handshake()
        negotiator = HandshakeNegotiator(transport, handshake)

        negotiator.negotiate()

        assert negotiator.state is HandshakeState.READY
        assert bytes(transport.sent) == handshake.encode()
        assert transport.closed is False

    def test_rejected(self, transport_factory):
        """Test rejection reports both versions and the server message."""
        transport = transport_factory(rejection((2, 1, 0), b"incompatible"))
        negotiator = HandshakeNegotiator(transport, Handshake(), address="127.0.0.1:10800")

        with pytest.raises(HandshakeRejectedError) as exc_info:
            negotiator.negotiate()

        error = exc_info.value
        assert error.client_version == (1, 1, 0)
        assert error.server_version == (2, 1, 0)
        assert error.server_message == "incompatible"
        assert "1.1.0" in str(error)
        assert "2.1.0" in str(error)
        assert "incompatible" in str(error)
        assert "127.0.0.1:10800" in str(error)

        assert negotiator.state is HandshakeState.REJECTED
        assert transport.closed is True

    def test_rejected_with_typed_message(self, transport_factory):
        """Test a message sent as a typed string."""
        transport = transport_factory(rejection((1, 0, 0), b"\x09\x03\x00\x00\x00bad"))

        with pytest.raises(HandshakeRejectedError) as exc_info:
            HandshakeNegotiator(transport, Handshake()).negotiate()

        assert exc_info.value.server_message == "bad"

    @pytest.mark.parametrize("incoming", [
        b"\x01\x00\x00\x00\x00",              # flag only
        b"\x04\x00\x00\x00\x00\x02\x00\x01",  # partial version
        b"\x00\x00\x00\x00\x00",              # zero length
    ])
    def test_rejected_short_frame(self, transport_factory, incoming):
        """Test a rejection too short for a version still raises HandshakeRejectedError."""
        transport = transport_factory(incoming)
        negotiator = HandshakeNegotiator(transport, Handshake())

        with pytest.raises(HandshakeRejectedError) as exc_info:
            negotiator.negotiate()

        assert exc_info.value.server_version == (0, 0, 0)
        assert exc_info.value.server_message == ""
        assert negotiator.state is HandshakeState.REJECTED
        assert transport.closed is True

    def test_single_use(self, transport_factory):
        """Test a negotiator cannot run twice."""
        negotiator = HandshakeNegotiator(transport_factory(b"\x01\x00\x00\x00\x01"), Handshake())
        negotiator.negotiate()

        with pytest.raises(RuntimeError):
            negotiator.negotiate()

    def test_truncated_response(self, transport_factory):
        """Test a server that hangs up mid-response."""
        negotiator = HandshakeNegotiator(transport_factory(b"\x01\x00"), Handshake())

        with pytest.raises(ConnectionClosedError):
            negotiator.negotiate()

        assert negotiator.state is HandshakeState.NEGOTIATING


class TestHandshakeFailure:
    """Test HandshakeFailure decoding."""

    def test_decode(self):
        """Test version and message decoding of the rejection tail."""
        failure = HandshakeFailure.decode(b"\x02\x00\x01\x00\x00\x00too new")

        assert failure.version == (2, 1, 0)
        assert failure.message == "too new"

    def test_decode_empty_message(self):
        """Test a rejection with no message."""
        assert HandshakeFailure.decode(b"\x01\x00\x00\x00\x00\x00").message == ""
