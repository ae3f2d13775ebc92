"""Fixed-length bit array stored in a ``bytearray`` with a ``numpy.uint8`` view.

Bit ``i`` lives in byte ``i >> 3`` at bit position ``i & 7`` (least
significant bit first), which is also the serialized packing. Bits past
``length`` in the final byte are always zero.

Per-element work (a handful of positions per insert or query) is plain
integer arithmetic on the ``bytearray``; whole-array work (merge, popcount,
equality) goes through the numpy view of the same memory.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .errors import IncompatibleArray

__all__ = ["BitArray"]

# Set-bit count for every byte value.
_POPCOUNT = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)


# BitArray
#
# A contiguous run of `length` bits, zero on construction. Mutated only
# through `set`, `set_many` and `or_merge`; never resized.
#
# Parameters:
#   length (int): Number of addressable bits, at least 1.
#   buffer (bytearray, optional): Existing packed bytes to adopt, must hold
#     exactly ceil(length / 8) bytes.
#
# Attributes:
#   buffer (bytearray): The packed bits.
#   data (np.ndarray): uint8 view sharing memory with `buffer`.
#
class BitArray:
    def __init__(self, length: int, buffer: Optional[bytearray] = None):
        if length < 1:
            raise ValueError(f"bit array length must be positive, got {length}")
        self.length: int = int(length)
        n_bytes = (self.length + 7) // 8
        if buffer is None:
            buffer = bytearray(n_bytes)
        elif not isinstance(buffer, bytearray):
            raise ValueError(f"bit array storage must be a bytearray, got {type(buffer).__name__}")
        elif len(buffer) != n_bytes:
            raise ValueError(f"expected {n_bytes} bytes for {self.length} bits, got {len(buffer)}")
        self.buffer: bytearray = buffer
        # The exported view also pins the bytearray at its current size.
        self.data: np.ndarray = np.frombuffer(self.buffer, dtype=np.uint8)

    # Build a bit array that owns a copy of the given packed bytes.
    @classmethod
    def from_bytes(cls, packed: bytes, length: int) -> "BitArray":
        return cls(length, bytearray(packed))

    # Number of bits past `length` held in the final byte.
    @property
    def padding_bits(self) -> int:
        return (-self.length) % 8

    # True when every bit beyond `length` in the final byte is zero.
    def padding_is_clear(self) -> bool:
        if self.padding_bits == 0:
            return True
        used_mask = (1 << (8 - self.padding_bits)) - 1
        return (self.buffer[-1] & ~used_mask) == 0

    def _check_index(self, idx: int) -> int:
        idx = int(idx)
        if not (0 <= idx < self.length):
            raise IndexError(f"bit index {idx} out of range [0, {self.length})")
        return idx

    def get(self, idx: int) -> bool:
        idx = self._check_index(idx)
        return bool(self.buffer[idx >> 3] & (1 << (idx & 7)))

    def set(self, idx: int) -> None:
        idx = self._check_index(idx)
        self.buffer[idx >> 3] |= 1 << (idx & 7)

    # Set every bit listed in `indices`. Indices are trusted to be in
    # [0, length); this is the insert hot path.
    def set_many(self, indices: Iterable[int]) -> None:
        buffer = self.buffer
        for idx in indices:
            buffer[idx >> 3] |= 1 << (idx & 7)

    # True iff every bit listed in `indices` is set, stopping at the first
    # clear bit. Indices are trusted to be in [0, length).
    def all_set(self, indices: Iterable[int]) -> bool:
        buffer = self.buffer
        for idx in indices:
            if not (buffer[idx >> 3] & (1 << (idx & 7))):
                return False
        return True

    # In-place self |= other. Lengths are checked before any byte changes.
    #
    # Raises:
    #   IncompatibleArray: If the two arrays differ in length.
    #
    def or_merge(self, other: "BitArray") -> None:
        if self.length != other.length:
            raise IncompatibleArray(
                f"cannot merge bit arrays of length {self.length} and {other.length}"
            )
        np.bitwise_or(self.data, other.data, out=self.data)

    # Number of set bits.
    def count(self) -> int:
        return int(_POPCOUNT[self.data].sum(dtype=np.int64))

    def copy(self) -> "BitArray":
        return BitArray(self.length, bytearray(self.buffer))

    # Packed bytes, an independent copy of the current state.
    def to_bytes(self) -> bytes:
        return bytes(self.buffer)

    def __len__(self) -> int:
        return self.length

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitArray):
            return NotImplemented
        return (self.length == other.length) and bool(np.array_equal(self.data, other.data))

    __hash__ = None

    def __repr__(self) -> str:
        return f"BitArray(length={self.length}, set={self.count()})"
