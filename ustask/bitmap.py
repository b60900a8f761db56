"""Bit allocation map used to hand out task identifiers."""

from __future__ import annotations

from .errors import check


class Bitmap:
    """A fixed-size array of bits, allocated one byte at a time."""

    def __init__(self, byte_length: int) -> None:
        if byte_length < 1:
            raise ValueError("bitmap needs at least one byte")
        self.byte_length = byte_length
        self._bits = bytearray(byte_length)

    @property
    def bit_length(self) -> int:
        return self.byte_length * 8

    def test(self, bit_idx: int) -> bool:
        """Return whether bit ``bit_idx`` is set."""
        byte_idx, bit_odd = divmod(bit_idx, 8)
        return bool(self._bits[byte_idx] & (1 << bit_odd))

    def scan(self, cnt: int) -> int:
        """Find ``cnt`` consecutive free bits and return the first index, or -1."""
        if cnt < 1:
            raise ValueError("cnt must be positive")
        idx_byte = next(
            (i for i, byte in enumerate(self._bits) if byte != 0xFF), None
        )
        check(idx_byte is not None, "idx_byte < btmp->btmp_bytes_len")
        assert idx_byte is not None
        byte = self._bits[idx_byte]
        idx_bit = next(bit for bit in range(8) if not byte & (1 << bit))
        start = idx_byte * 8 + idx_bit
        if cnt == 1:
            return start

        count = 1
        for next_bit in range(start + 1, self.bit_length):
            count = 0 if self.test(next_bit) else count + 1
            if count == cnt:
                return next_bit - cnt + 1
        return -1

    def set(self, bit_idx: int, value: int) -> None:
        """Set bit ``bit_idx`` to ``value``, which must be 0 or 1."""
        check(value in (0, 1), "(value == 0) || (value == 1)")
        byte_idx, bit_odd = divmod(bit_idx, 8)
        if value:
            self._bits[byte_idx] |= 1 << bit_odd
        else:
            self._bits[byte_idx] &= ~(1 << bit_odd) & 0xFF