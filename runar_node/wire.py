"""Compact binary encoding used for messages exchanged between nodes.

Integers are fixed-width little-endian; strings, byte strings and lists are
prefixed with their length as an unsigned 64-bit integer.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")


def _check_range(value: int, low: int, high: int, kind: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{kind} value must be an int, got {type(value).__name__}")
    if not low <= value <= high:
        raise ValueError(f"{value} does not fit in {kind}")


def encode_u32(value: int) -> bytes:
    """Encode an unsigned 32-bit integer."""
    _check_range(value, 0, 2**32 - 1, "u32")
    return _U32.pack(value)


def encode_u64(value: int) -> bytes:
    """Encode an unsigned 64-bit integer."""
    _check_range(value, 0, 2**64 - 1, "u64")
    return _U64.pack(value)


def encode_i64(value: int) -> bytes:
    """Encode a signed 64-bit integer."""
    _check_range(value, -(2**63), 2**63 - 1, "i64")
    return _I64.pack(value)


def encode_bytes(value: bytes) -> bytes:
    """Encode a length-prefixed byte string."""
    data = bytes(value)
    return encode_u64(len(data)) + data


def encode_string(value: str) -> bytes:
    """Encode a length-prefixed UTF-8 string."""
    return encode_bytes(value.encode("utf-8"))


def encode_string_list(values: Iterable[str]) -> bytes:
    """Encode a count-prefixed list of strings."""
    items = list(values)
    return encode_u64(len(items)) + b"".join(encode_string(item) for item in items)


class Decoder:
    """Reads encoded values from a byte string in order."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ValueError(
                f"unexpected end of data: needed {count} bytes at offset {self._pos}, "
                f"{len(self._data) - self._pos} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u32(self) -> int:
        """Read an unsigned 32-bit integer."""
        return _U32.unpack(self._take(_U32.size))[0]

    def u64(self) -> int:
        """Read an unsigned 64-bit integer."""
        return _U64.unpack(self._take(_U64.size))[0]

    def i64(self) -> int:
        """Read a signed 64-bit integer."""
        return _I64.unpack(self._take(_I64.size))[0]

    def bytes(self) -> bytes:
        """Read a length-prefixed byte string."""
        return self._take(self.u64())

    def string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return self.bytes().decode("utf-8")

    def string_list(self) -> list[str]:
        """Read a count-prefixed list of strings."""
        return [self.string() for _ in range(self.u64())]

    def finish(self) -> None:
        """Raise ValueError if any input is left unread."""
        left = len(self._data) - self._pos
        if left:
            raise ValueError(f"{left} trailing bytes after decoded value")