"""
Cache Handle Module

IgniteCache addresses one named cache through the Java-compatible hash of
its name and runs key/value operations through the owning client.

Payload Format:
    GET: i32 cache_hash | u8 flags (0) | typed key
    PUT: i32 cache_hash | u8 flags (0) | typed key | typed value
"""

from typing import TYPE_CHECKING, Any, Optional, Union

from ..protocol.codec import BinaryReader, BinaryWriter
from ..protocol.frames import OpCode
from ..protocol.types import (
    TypeTag,
    java_hash,
    read_field,
    read_typed,
    resolve_tag,
    to_typed,
    write_field,
)

if TYPE_CHECKING:
    from ..client import IgniteClient

# Reserved flags byte sent with every key/value request
NO_FLAGS = 0


class IgniteCache:
    """
    Handle to a named cache on the server.

    Handles are created by IgniteClient.create_cache() and
    IgniteClient.get_or_create_cache(). They hold no server state; dropping
    one does not affect the cache.

    Keys and values may be bool, int, float, str or a TypedValue. Anything
    else raises UnsupportedTypeError before a request is sent.

    Attributes:
        name: Cache name
        hash_code: Java-compatible hash of the name, used on the wire
    """

    def __init__(self, client: "IgniteClient", name: str):
        self.client = client
        self.name = name
        self.hash_code = java_hash(name)

    def __repr__(self) -> str:
        return f"IgniteCache(name={self.name!r}, hash_code={self.hash_code})"

    def put(self, key: Any, value: Any) -> None:
        """
        Store value under key.

        Raises:
            UnsupportedTypeError: key or value has no protocol type
            StatusError: the server rejected the request
        """
        typed_key = to_typed(key)
        typed_value = to_typed(value)

        writer = self._writer()
        write_field(writer, typed_key)
        write_field(writer, typed_value)
        self.client.request(OpCode.CACHE_PUT, writer.flush())

    def get(
            self,
            key: Any,
            expected: Union[TypeTag, type, None] = None,
            unsigned: bool = False,
    ) -> Optional[Any]:
        """
        Fetch the value stored under key.

        Args:
            key: Key to look up
            expected: TypeTag or one of bool/int/float/str the value must
                have; None accepts any supported type
            unsigned: Decode integer values as unsigned

        Returns:
            The value, or None if the key is not in the cache

        Raises:
            UnsupportedTypeError: key or expected has no protocol type
            TypeMismatchError: the stored value has a different type
            StatusError: the server rejected the request
        """
        typed_key = to_typed(key)
        expected_tag = resolve_tag(expected)

        writer = self._writer()
        write_field(writer, typed_key)
        payload = self.client.request(OpCode.CACHE_GET, writer.flush())

        reader = BinaryReader(payload)
        if expected_tag is None:
            return read_field(reader, unsigned).value
        if payload[:1] == bytes([TypeTag.NULL]):
            return None
        return read_typed(reader, expected_tag, unsigned)

    def _writer(self) -> BinaryWriter:
        writer = BinaryWriter()
        writer.write_int(self.hash_code)
        writer.write_byte(NO_FLAGS)
        return writer
