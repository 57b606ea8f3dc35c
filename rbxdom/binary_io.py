"""Primitive readers and writers for the Roblox binary model format."""

from __future__ import annotations

import io
import struct
from collections.abc import Iterable
from typing import BinaryIO

FILE_MAGIC_HEADER = b"<roblox!"
FILE_SIGNATURE = b"\x89\xff\x0d\x0a\x1a\x0a"
FILE_VERSION = 0

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _to_signed(value: int, bits: int) -> int:
    """Wrap an integer into the two's complement range of ``bits`` bits."""
    mask = (1 << bits) - 1
    value &= mask
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def transform_i32(value: int) -> int:
    """Apply the zigzag transformation used for integers in property data."""
    value = _to_signed(value, 32)
    return _to_signed((value << 1) ^ (value >> 31), 32)


def untransform_i32(value: int) -> int:
    """Invert :func:`transform_i32`."""
    unsigned = value & _MASK32
    return _to_signed((unsigned >> 1) ^ -(unsigned & 1), 32)


def transform_i64(value: int) -> int:
    """Apply the zigzag transformation to a 64-bit integer."""
    value = _to_signed(value, 64)
    return _to_signed((value << 1) ^ (value >> 63), 64)


def untransform_i64(value: int) -> int:
    """Invert :func:`transform_i64`."""
    unsigned = value & _MASK64
    return _to_signed((unsigned >> 1) ^ -(unsigned & 1), 64)


def _f32_to_bits(value: float) -> int:
    return struct.unpack(">I", struct.pack(">f", value))[0]


def _bits_to_f32(bits: int) -> float:
    return struct.unpack(">f", bits.to_bytes(4, "big"))[0]


class BinaryReader:
    """Reads little-endian primitives and interleaved arrays from a stream."""

    def __init__(self, source: bytes | bytearray | memoryview | BinaryIO) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source

    def _read_up_to(self, size: int) -> bytes:
        parts = []
        remaining = size
        while remaining > 0:
            part = self._stream.read(remaining)
            if not part:
                break
            parts.append(part)
            remaining -= len(part)
        return b"".join(parts)

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes or raise :class:`EOFError`."""
        data = self._read_up_to(size)
        if len(data) != size:
            raise EOFError(f"expected {size} bytes but only {len(data)} were available")
        return data

    def read_le_u32(self) -> int:
        return int.from_bytes(self.read_exact(4), "little")

    def read_le_u16(self) -> int:
        return int.from_bytes(self.read_exact(2), "little")

    def read_le_i16(self) -> int:
        return int.from_bytes(self.read_exact(2), "little", signed=True)

    def read_le_f32(self) -> float:
        return struct.unpack("<f", self.read_exact(4))[0]

    def read_le_f64(self) -> float:
        return struct.unpack("<d", self.read_exact(8))[0]

    def read_u8(self) -> int:
        return self.read_exact(1)[0]

    def read_binary_string(self) -> bytes:
        """Read a length-prefixed byte string; a short read yields fewer bytes."""
        length = self.read_le_u32()
        return self._read_up_to(length)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return self.read_binary_string().decode("utf-8")

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def _read_interleaved(self, count: int, width: int) -> list[int]:
        buffer = self.read_exact(count * width)
        planes = (buffer[k * count:(k + 1) * count] for k in range(width))
        return [int.from_bytes(bytes(column), "big") for column in zip(*planes)]

    def read_interleaved_i32_array(self, count: int) -> list[int]:
        return [untransform_i32(value) for value in self._read_interleaved(count, 4)]

    def read_interleaved_u32_array(self, count: int) -> list[int]:
        return self._read_interleaved(count, 4)

    def read_interleaved_f32_array(self, count: int) -> list[float]:
        return [
            _bits_to_f32(((bits >> 1) | ((bits & 1) << 31)) & _MASK32)
            for bits in self._read_interleaved(count, 4)
        ]

    def read_referent_array(self, count: int) -> list[int]:
        referents = []
        last = 0
        for delta in self.read_interleaved_i32_array(count):
            last = _to_signed(last + delta, 32)
            referents.append(last)
        return referents

    def read_interleaved_i64_array(self, count: int) -> list[int]:
        return [untransform_i64(value) for value in self._read_interleaved(count, 8)]


class BinaryWriter:
    """Writes little-endian primitives and interleaved arrays to a stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_all(self, data: bytes) -> None:
        self._stream.write(bytes(data))

    def write_le_u32(self, value: int) -> None:
        self.write_all(struct.pack("<I", value))

    def write_le_u16(self, value: int) -> None:
        self.write_all(struct.pack("<H", value))

    def write_le_i16(self, value: int) -> None:
        self.write_all(struct.pack("<h", value))

    def write_le_f32(self, value: float) -> None:
        self.write_all(struct.pack("<f", value))

    def write_le_f64(self, value: float) -> None:
        self.write_all(struct.pack("<d", value))

    def write_u8(self, value: int) -> None:
        self.write_all(bytes([value]))

    def write_binary_string(self, value: bytes) -> None:
        self.write_le_u32(len(value))
        self.write_all(value)

    def write_string(self, value: str) -> None:
        self.write_binary_string(value.encode("utf-8"))

    def write_bool(self, value: bool) -> None:
        self.write_u8(1 if value else 0)

    def _write_interleaved(self, values: list[int], width: int) -> None:
        for shift in range((width - 1) * 8, -1, -8):
            self.write_all(bytes((value >> shift) & 0xFF for value in values))

    def write_interleaved_i32_array(self, values: Iterable[int]) -> None:
        self._write_interleaved([transform_i32(v) & _MASK32 for v in values], 4)

    def write_interleaved_u32_array(self, values: Iterable[int]) -> None:
        self._write_interleaved([v & _MASK32 for v in values], 4)

    def write_interleaved_f32_array(self, values: Iterable[float]) -> None:
        encoded = []
        for value in values:
            bits = _f32_to_bits(value)
            encoded.append(((bits << 1) | (bits >> 31)) & _MASK32)
        self._write_interleaved(encoded, 4)

    def write_referent_array(self, values: Iterable[int]) -> None:
        values = list(values)
        deltas = [_to_signed(v - p, 32) for p, v in zip([0, *values], values)]
        self.write_interleaved_i32_array(deltas)

    def write_interleaved_i64_array(self, values: Iterable[int]) -> None:
        self._write_interleaved([transform_i64(v) & _MASK64 for v in values], 8)