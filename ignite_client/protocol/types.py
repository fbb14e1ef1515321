"""
Typed-Value Codec Module

Encodes and decodes the tagged values that make up Ignite request and
response payloads. Every value on the wire is a one-byte type tag followed
by a type-specific encoding:

    BYTE/SHORT/INT/LONG   tag + 1/2/4/8 byte little-endian integer
    FLOAT/DOUBLE          tag + 4/8 byte IEEE 754
    CHAR                  tag + 2 byte UTF-16 code unit
    BOOL                  tag + 1 byte (0 or 1)
    STRING                tag + int32 length + UTF-8 bytes
    NULL                  tag only

Also home of java_hash(), which must match the server's String.hashCode()
bit for bit since it addresses caches by name.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union

from ..errors import IgniteError, TypeMismatchError, UnsupportedTypeError, ValidationError
from .codec import BinaryReader, BinaryWriter


class TypeTag(IntEnum):
    """Ignite binary type codes used by this client."""
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    CHAR = 7
    BOOL = 8
    STRING = 9
    NULL = 101


# Integer tags -> (signed format, bit width)
_INTEGER_TAGS = {
    TypeTag.BYTE: ("b", 8),
    TypeTag.SHORT: ("h", 16),
    TypeTag.INT: ("i", 32),
    TypeTag.LONG: ("q", 64),
}

_FLOAT_FORMATS = {
    TypeTag.FLOAT: "f",
    TypeTag.DOUBLE: "d",
}

_FLOAT32_MAX = 3.4028234663852886e38

# Native host types and the tag each one is written with
_HOST_TAGS = {
    bool: TypeTag.BOOL,
    int: TypeTag.LONG,
    float: TypeTag.DOUBLE,
    str: TypeTag.STRING,
}


@dataclass(frozen=True)
class TypedValue:
    """
    A value paired with the protocol type it is encoded as.

    Plain Python values map to a default tag (see to_typed()). Build a
    TypedValue directly to pick a narrower width:

        TypedValue(TypeTag.SHORT, 7)
        TypedValue(TypeTag.CHAR, "x")

    Integer tags accept the signed and the unsigned range of their width.
    Unsigned values are sent as the same bit pattern. A value above the
    signed maximum marks itself unsigned; pass unsigned=True to say so
    explicitly. The wire carries no signedness, so readers ask for unsigned
    decoding with read_typed(..., unsigned=True) or IgniteCache.get().

        TypedValue(TypeTag.INT, 0xFFFFFFFF)          # unsigned
        TypedValue(TypeTag.SHORT, 7, unsigned=True)

    Raises:
        UnsupportedTypeError: value has the wrong host type for the tag
        ValidationError: value is out of range for the tag
    """
    tag: TypeTag
    value: Any
    unsigned: bool = field(default=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "tag", TypeTag(self.tag))
        _validate(self.tag, self.value, self.unsigned)
        if self.tag in _INTEGER_TAGS and self.value >= 1 << (_INTEGER_TAGS[self.tag][1] - 1):
            object.__setattr__(self, "unsigned", True)


def _validate(tag: TypeTag, value: Any, unsigned: bool = False) -> None:
    if unsigned and tag not in _INTEGER_TAGS:
        raise ValidationError(f"{tag.name} has no unsigned form")
    if tag in _INTEGER_TAGS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnsupportedTypeError(type(value))
        bits = _INTEGER_TAGS[tag][1]
        lowest = 0 if unsigned else -(1 << (bits - 1))
        if not lowest <= value < (1 << bits):
            raise ValidationError(f"value {value} does not fit {tag.name}")
    elif tag in _FLOAT_FORMATS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise UnsupportedTypeError(type(value))
        try:
            value = float(value)
        except OverflowError:
            raise ValidationError(f"value {value} does not fit {tag.name}") from None
        if tag == TypeTag.FLOAT and math.isfinite(value) and abs(value) > _FLOAT32_MAX:
            raise ValidationError(f"value {value} does not fit FLOAT")
    elif tag == TypeTag.CHAR:
        if not isinstance(value, str):
            raise UnsupportedTypeError(type(value))
        if len(value) != 1 or ord(value) > 0xFFFF:
            raise ValidationError(f"CHAR needs a single UTF-16 code unit, got {value!r}")
    elif tag == TypeTag.BOOL:
        if not isinstance(value, bool):
            raise UnsupportedTypeError(type(value))
    elif tag == TypeTag.STRING:
        if not isinstance(value, str):
            raise UnsupportedTypeError(type(value))
    elif tag == TypeTag.NULL:
        if value is not None:
            raise ValidationError("NULL carries no value")


def to_typed(value: Any) -> TypedValue:
    """
    Resolve a key or value argument to its TypedValue.

    TypedValue instances pass through. bool, int, float and str map to
    BOOL, LONG, DOUBLE and STRING. Anything else is rejected.

    Raises:
        UnsupportedTypeError: no tag exists for the value's type
    """
    if isinstance(value, TypedValue):
        if value.tag == TypeTag.NULL:
            raise UnsupportedTypeError(type(None))
        return value
    tag = _HOST_TAGS.get(type(value))
    if tag is None:
        raise UnsupportedTypeError(type(value))
    return TypedValue(tag, value)


def resolve_tag(expected: Union[TypeTag, type, None]) -> Optional[TypeTag]:
    """
    Map the caller's expected result type to a type tag.

    Accepts a TypeTag, one of bool/int/float/str, or None (any tag).
    """
    if expected is None:
        return None
    if isinstance(expected, TypeTag):
        if expected == TypeTag.NULL:
            raise UnsupportedTypeError(type(None))
        return expected
    if isinstance(expected, type) and expected in _HOST_TAGS:
        return _HOST_TAGS[expected]
    raise UnsupportedTypeError(expected if isinstance(expected, type) else type(expected))


def write_string(writer: BinaryWriter, value: str) -> None:
    """Write an untagged string: int32 length + UTF-8 bytes."""
    data = value.encode("utf-8")
    writer.write_int(len(data))
    writer.write_bytes(data)


def read_string(reader: BinaryReader) -> str:
    """Read an untagged string: int32 length + UTF-8 bytes."""
    length = reader.read_int()
    if length < 0:
        raise IgniteError(f"invalid string length {length} in response")
    return reader.read_bytes(length).decode("utf-8")


def write_field(writer: BinaryWriter, value: Any) -> None:
    """Write one tagged value."""
    typed = to_typed(value)
    tag = typed.tag
    writer.write_byte(tag)

    if tag in _INTEGER_TAGS:
        fmt, bits = _INTEGER_TAGS[tag]
        # Same bit pattern for the unsigned half of the range
        writer.write(fmt.upper(), typed.value & ((1 << bits) - 1))
    elif tag in _FLOAT_FORMATS:
        writer.write(_FLOAT_FORMATS[tag], float(typed.value))
    elif tag == TypeTag.CHAR:
        writer.write_ushort(ord(typed.value))
    elif tag == TypeTag.BOOL:
        writer.write_bool(typed.value)
    elif tag == TypeTag.STRING:
        write_string(writer, typed.value)


def _read_value(reader: BinaryReader, tag: int, unsigned: bool = False) -> Any:
    if tag in _INTEGER_TAGS:
        fmt = _INTEGER_TAGS[tag][0]
        return reader.read(fmt.upper() if unsigned else fmt)
    if tag in _FLOAT_FORMATS:
        return reader.read(_FLOAT_FORMATS[tag])
    if tag == TypeTag.CHAR:
        return chr(reader.read_ushort())
    if tag == TypeTag.BOOL:
        return reader.read_bool()
    if tag == TypeTag.STRING:
        return read_string(reader)
    if tag == TypeTag.NULL:
        return None
    raise IgniteError(f"unsupported type tag {tag} in response")


def read_typed(reader: BinaryReader, expected: TypeTag, unsigned: bool = False) -> Any:
    """
    Read one tagged value whose tag must equal expected.

    Integers decode as signed unless unsigned is set.

    Raises:
        TypeMismatchError: the tag on the wire differs from expected
    """
    actual = reader.read_byte()
    if actual != expected:
        raise TypeMismatchError(int(expected), actual)
    return _read_value(reader, actual, unsigned)


def read_field(reader: BinaryReader, unsigned: bool = False) -> TypedValue:
    """Read one tagged value of any supported type, integers unsigned if asked."""
    tag = reader.read_byte()
    unsigned = unsigned and tag in _INTEGER_TAGS
    value = _read_value(reader, tag, unsigned)
    return TypedValue(TypeTag(tag), value, unsigned=unsigned)


def java_hash(name: str) -> int:
    """
    Java-compatible string hash over the UTF-8 bytes of name.

    h = 31 * h + b for every byte, wrapping at 32 bits, returned signed.

    Examples:
        >>> java_hash("")
        0
        >>> java_hash("A")
        65
    """
    h = 0
    for b in name.encode("utf-8"):
        h = (31 * h + b) & 0xFFFFFFFF
    return h - (1 << 32) if h & 0x80000000 else h
