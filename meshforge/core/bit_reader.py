# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

"""
Bit-level access to a decoded mesh shading stream.

Mesh data is packed MSB-first with no padding between values, so a record
can start anywhere inside a byte.  BitReader serves reads of arbitrary width
and raises EndOfData instead of padding when the stream is short.
"""

from .error import ConfigurationError, EndOfData


class BitReader:
    """Read arbitrary bit-width values from a byte buffer.

    Optimized with fast paths for byte-aligned reads of common bit widths.
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        if isinstance(data, (bytes, bytearray)):
            self.data = data
        else:
            self.data = bytes(data)
        self.bit_pos = 0
        self._len = len(self.data)
        self._total_bits = self._len << 3

    def read_bits(self, n: int) -> int:
        """Read n bits as an unsigned integer.

        Raises:
            EndOfData: fewer than n bits remain. The position is left unchanged.
        """
        if n == 0:
            return 0

        remaining = self._total_bits - self.bit_pos
        if n > remaining:
            raise EndOfData(n, remaining)

        bit_offset = self.bit_pos & 7
        byte_idx = self.bit_pos >> 3
        data = self.data

        # Fast path: byte-aligned reads of common sizes
        if bit_offset == 0:
            if n == 8:
                self.bit_pos += 8
                return data[byte_idx]
            elif n == 16:
                self.bit_pos += 16
                return (data[byte_idx] << 8) | data[byte_idx + 1]
            elif n == 32:
                self.bit_pos += 32
                return int.from_bytes(data[byte_idx:byte_idx + 4], "big")

        # General case: accumulate the covering bytes, then shift and mask
        end_byte = (self.bit_pos + n + 7) >> 3
        accum = int.from_bytes(data[byte_idx:end_byte], "big")
        right_shift = ((end_byte - byte_idx) << 3) - bit_offset - n
        self.bit_pos += n
        return (accum >> right_shift) & ((1 << n) - 1)

    @property
    def bits_remaining(self) -> int:
        return self._total_bits - self.bit_pos

    @property
    def exhausted(self) -> bool:
        return self.bit_pos >= self._total_bits


def max_sample(bits: int) -> int:
    """Largest raw value a field of the given width can hold."""
    if bits <= 0:
        raise ConfigurationError(f"bit width must be positive, got {bits}")
    return (1 << bits) - 1


def interpolate(raw: int, max_raw: int, lo: float, hi: float) -> float:
    """Map a quantized sample in [0, max_raw] linearly onto [lo, hi]."""
    if max_raw <= 0:
        raise ConfigurationError(f"sample range must be positive, got {max_raw}")
    return lo + (raw / max_raw) * (hi - lo)
