"""Sizing of a Bloom filter from a target capacity and false-positive rate.

For ``n`` expected insertions at false-positive probability ``p`` the
bit-array length and hash count are the analytical optima

  m = ceil(-n ln p / (ln 2)^2)
  k = max(1, round(m/n ln 2))

Two filters are merge-compatible exactly when their ``(m, k)`` pairs agree,
so equality of ``FilterParameters`` only looks at those two fields.

Example
  params = FilterParameters.derive(100, 0.001)
  print(params.bit_array_length, params.hash_count, params.byte_size)
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import InvalidParameter

__all__ = [
    "DEFAULT_EXPECTED_INSERTIONS",
    "DEFAULT_FALSE_POSITIVE_PROBABILITY",
    "FilterParameters",
    "derive",
]

DEFAULT_EXPECTED_INSERTIONS: int = 10_000_000
DEFAULT_FALSE_POSITIVE_PROBABILITY: float = 0.01
# Limits imposed by the fixed-width header fields (m: u64, k: u32).
MAX_BIT_ARRAY_LENGTH: int = 2**64 - 1
MAX_HASH_COUNT: int = 2**32 - 1

_LN2 = math.log(2)


# Compute the optimal (m, k) for n expected insertions at false-positive
# probability p.
#
# Parameters:
#   n (int): Expected number of insertions, must be positive.
#   p (float): Target false-positive probability in (0, 1).
#
# Returns:
#   (int, int): Bit-array length m and hash count k.
#
# Raises:
#   InvalidParameter: If n or p are outside their domains, or the derived
#     sizes do not fit the serialized header.
#
def derive(n: int, p: float) -> Tuple[int, int]:
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise InvalidParameter(f"expected insertions must be an integer, got {n!r}")
    if n <= 0:
        raise InvalidParameter(f"expected insertions must be positive, got {n}")
    if isinstance(p, bool) or not isinstance(p, numbers.Real):
        raise InvalidParameter(f"false positive probability must be a number, got {p!r}")
    # Written as a positive range check so NaN is rejected too.
    if not (0.0 < p < 1.0):
        raise InvalidParameter(f"false positive probability must be in (0,1), got {p}")
    n = int(n)
    m = math.ceil(-n * math.log(p) / (_LN2 ** 2))
    m = max(1, m)
    k = max(1, int(round((m / n) * _LN2)))
    if m > MAX_BIT_ARRAY_LENGTH:
        raise InvalidParameter(f"bit array length {m} exceeds {MAX_BIT_ARRAY_LENGTH}")
    if k > MAX_HASH_COUNT:
        raise InvalidParameter(f"hash count {k} exceeds {MAX_HASH_COUNT}")
    return m, k


# FilterParameters
#
# Immutable sizing of one filter. Filters built from a serialized header
# only know (m, k), so the originating n and p are optional.
#
# Attributes:
#   bit_array_length (int): Number of bits m.
#   hash_count (int): Number of bit positions per element k.
#   expected_insertions (Optional[int]): Capacity n the filter was sized for.
#   false_positive_probability (Optional[float]): Target p at capacity n.
#
@dataclass(frozen=True)
class FilterParameters:
    bit_array_length: int
    hash_count: int
    expected_insertions: Optional[int] = field(default=None, compare=False)
    false_positive_probability: Optional[float] = field(default=None, compare=False)

    def __post_init__(self):
        if not (1 <= self.bit_array_length <= MAX_BIT_ARRAY_LENGTH):
            raise InvalidParameter(f"bit array length out of range: {self.bit_array_length}")
        if not (1 <= self.hash_count <= MAX_HASH_COUNT):
            raise InvalidParameter(f"hash count out of range: {self.hash_count}")

    # Size a filter for n insertions at false-positive probability p.
    @classmethod
    def derive(
        cls,
        expected_insertions: int = DEFAULT_EXPECTED_INSERTIONS,
        false_positive_probability: float = DEFAULT_FALSE_POSITIVE_PROBABILITY,
    ) -> "FilterParameters":
        m, k = derive(expected_insertions, false_positive_probability)
        logging.debug(
            f"Sized bloom filter for n={expected_insertions}, p={false_positive_probability}: "
            f"m={m} bits, k={k} hashes, {(m + 7) // 8} bytes."
        )
        return cls(
            bit_array_length=m,
            hash_count=k,
            expected_insertions=int(expected_insertions),
            false_positive_probability=float(false_positive_probability),
        )

    # Parameters recovered from a serialized header, where n and p are unknown.
    @classmethod
    def from_lengths(cls, bit_array_length: int, hash_count: int) -> "FilterParameters":
        return cls(bit_array_length=int(bit_array_length), hash_count=int(hash_count))

    # Number of bytes needed to hold the bit array, ceil(m / 8).
    @property
    def byte_size(self) -> int:
        return (self.bit_array_length + 7) // 8

    # Two filters can be OR-merged only when both m and k agree.
    def compatible_with(self, other: "FilterParameters") -> bool:
        return (
            self.bit_array_length == other.bit_array_length
            and self.hash_count == other.hash_count
        )
