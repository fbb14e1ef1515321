"""
Binary Reader/Writer Module

Fixed-width little-endian encoding of scalars over an in-memory buffer.
This is the only place the byte order of the Ignite wire protocol is chosen.

Format codes follow the struct module:
    b/B  8-bit signed/unsigned      h/H  16-bit signed/unsigned
    i/I  32-bit signed/unsigned     q/Q  64-bit signed/unsigned
    f    32-bit float               d    64-bit float
    ?    boolean (one byte)
"""

import struct

from ..errors import BufferUnderflowError

BYTE_ORDER = "<"


class BinaryWriter:
    """
    Append-only little-endian writer over a growable buffer.

    Usage:
        writer = BinaryWriter()
        writer.write_int(-1).write_byte(0)
        data = writer.flush()
    """

    def __init__(self):
        self._buffer = bytearray()

    def write(self, fmt: str, value) -> "BinaryWriter":
        """Append one value encoded with a struct format code."""
        try:
            self._buffer += struct.pack(BYTE_ORDER + fmt, value)
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r} as '{fmt}': {exc}") from exc
        return self

    def write_byte(self, value: int) -> "BinaryWriter":
        return self.write("B", value)

    def write_sbyte(self, value: int) -> "BinaryWriter":
        return self.write("b", value)

    def write_bool(self, value: bool) -> "BinaryWriter":
        return self.write("?", value)

    def write_short(self, value: int) -> "BinaryWriter":
        return self.write("h", value)

    def write_ushort(self, value: int) -> "BinaryWriter":
        return self.write("H", value)

    def write_int(self, value: int) -> "BinaryWriter":
        return self.write("i", value)

    def write_uint(self, value: int) -> "BinaryWriter":
        return self.write("I", value)

    def write_long(self, value: int) -> "BinaryWriter":
        return self.write("q", value)

    def write_ulong(self, value: int) -> "BinaryWriter":
        return self.write("Q", value)

    def write_float(self, value: float) -> "BinaryWriter":
        return self.write("f", value)

    def write_double(self, value: float) -> "BinaryWriter":
        return self.write("d", value)

    def write_bytes(self, data: bytes) -> "BinaryWriter":
        """Append raw bytes with no length prefix."""
        self._buffer += data
        return self

    def flush(self) -> bytes:
        """Return the accumulated bytes."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class BinaryReader:
    """
    Cursor-based little-endian reader over a byte sequence.

    Every read advances the cursor. Reading past the end raises
    BufferUnderflowError and leaves the cursor unchanged.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def read(self, fmt: str):
        """Consume and decode one value with a struct format code."""
        size = struct.calcsize(BYTE_ORDER + fmt)
        raw = self.read_bytes(size)
        return struct.unpack(BYTE_ORDER + fmt, raw)[0]

    def read_byte(self) -> int:
        return self.read("B")

    def read_sbyte(self) -> int:
        return self.read("b")

    def read_bool(self) -> bool:
        return self.read("?")

    def read_short(self) -> int:
        return self.read("h")

    def read_ushort(self) -> int:
        return self.read("H")

    def read_int(self) -> int:
        return self.read("i")

    def read_uint(self) -> int:
        return self.read("I")

    def read_long(self) -> int:
        return self.read("q")

    def read_ulong(self) -> int:
        return self.read("Q")

    def read_float(self) -> float:
        return self.read("f")

    def read_double(self) -> float:
        return self.read("d")

    def read_bytes(self, size: int) -> bytes:
        """Consume exactly size raw bytes."""
        if size < 0:
            raise ValueError(f"negative read size: {size}")
        if size > self.remaining():
            raise BufferUnderflowError(size, self.remaining())
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def read_rest(self) -> bytes:
        """Consume everything left in the buffer."""
        return self.read_bytes(self.remaining())

    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def position(self) -> int:
        return self._pos
