"""
Byte-level encoding helpers shared by the digest and serialization code.
"""

from __future__ import annotations

import struct

from mayazcash.constants import AMOUNT_DIGEST_WIDTH
from mayazcash.errors import TransactionParseError


def encode_compact_size(value: int) -> bytes:
    """Encode integer as a CompactSize (Bitcoin varint)."""
    if value < 0:
        raise ValueError(f"CompactSize cannot be negative: {value}")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def txid_to_bytes(txid: str) -> bytes:
    """RPC txids are displayed byte-reversed; return the internal order."""
    raw = bytes.fromhex(txid)
    if len(raw) != 32:
        raise ValueError(f"Invalid txid length: {len(raw)}")
    return raw[::-1]


class ByteWriter:
    """
    Append-only byte buffer.

    Writers for fixed-width fields refuse values that do not fit, and
    ``getvalue`` can assert the final length of a fixed-size preimage.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def write(self, data: bytes, length: int | None = None) -> ByteWriter:
        if length is not None and len(data) != length:
            raise ValueError(f"Expected {length} bytes, got {len(data)}")
        self._buf += data
        return self

    def write_uint(self, value: int, width: int) -> ByteWriter:
        # int.to_bytes raises OverflowError for values that do not fit
        self._buf += value.to_bytes(width, "little", signed=False)
        return self

    def write_uint8(self, value: int) -> ByteWriter:
        return self.write_uint(value, 1)

    def write_uint32(self, value: int) -> ByteWriter:
        return self.write_uint(value, 4)

    def write_uint64(self, value: int) -> ByteWriter:
        return self.write_uint(value, 8)

    def write_int32(self, value: int) -> ByteWriter:
        self._buf += struct.pack("<i", value)
        return self

    def write_digest_amount(self, value: int) -> ByteWriter:
        """Amount as 6 little-endian bytes in an 8-byte zero-padded slot."""
        self.write_uint(value, AMOUNT_DIGEST_WIDTH)
        self._buf += bytes(8 - AMOUNT_DIGEST_WIDTH)
        return self

    def write_compact_size(self, value: int) -> ByteWriter:
        self._buf += encode_compact_size(value)
        return self

    def write_var_bytes(self, data: bytes) -> ByteWriter:
        return self.write_compact_size(len(data)).write(data)

    def getvalue(self, expected_length: int | None = None) -> bytes:
        if expected_length is not None and len(self._buf) != expected_length:
            raise ValueError(f"Expected {expected_length} bytes, built {len(self._buf)}")
        return bytes(self._buf)


class ByteReader:
    """Cursor over a raw transaction used by the parser."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, length: int) -> bytes:
        if length > self.remaining:
            raise TransactionParseError(
                f"Unexpected end of data at offset {self.offset}: need {length} bytes, "
                f"have {self.remaining}"
            )
        chunk = self.data[self.offset : self.offset + length]
        self.offset += length
        return chunk

    def read_uint(self, width: int) -> int:
        return int.from_bytes(self.read(width), "little")

    def read_uint32(self) -> int:
        return self.read_uint(4)

    def read_uint64(self) -> int:
        return self.read_uint(8)

    def read_compact_size(self) -> int:
        first = self.read(1)[0]
        if first < 0xFD:
            return first
        if first == 0xFD:
            return self.read_uint(2)
        if first == 0xFE:
            return self.read_uint(4)
        return self.read_uint(8)

    def read_var_bytes(self) -> bytes:
        return self.read(self.read_compact_size())
