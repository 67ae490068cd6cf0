"""Cursor over a DIS byte buffer.

All multi-byte reads are big-endian (network order), floats are IEEE-754.
"""

from __future__ import annotations

import struct

from disrelay.core.errors import TruncatedBuffer

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")


class PduReader:
    """Sequential typed reads over an immutable buffer.

    A failed read raises ``TruncatedBuffer`` and leaves the cursor where it
    was, so the reader stays consistent even though the caller is expected
    to abandon the PDU.
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = bytes(data)
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, count: int) -> int:
        """Reserve ``count`` bytes and return their start offset."""
        if count > self.remaining:
            raise TruncatedBuffer(count, self.remaining, self._offset)
        start = self._offset
        self._offset += count
        return start

    def _unpack(self, fmt: struct.Struct):
        start = self._take(fmt.size)
        return fmt.unpack_from(self._data, start)[0]

    def u8(self) -> int:
        return self._unpack(_U8)

    def u16(self) -> int:
        return self._unpack(_U16)

    def u32(self) -> int:
        return self._unpack(_U32)

    def f32(self) -> float:
        return self._unpack(_F32)

    def f64(self) -> float:
        return self._unpack(_F64)

    def raw(self, count: int) -> bytes:
        start = self._take(count)
        return self._data[start:start + count]

    def skip(self, count: int) -> None:
        self._take(count)
