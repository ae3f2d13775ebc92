"""Bloom filter membership engine.

Composes the parameter calculator, the double-hashing position generator
and the bit array store into insert / query / union. There are no false
negatives: once inserted, an element is reported present for every later
state of the filter, including after further inserts and unions.

A filter is not safe for concurrent mutation. Concurrent `might_contain`
calls are safe while nothing is inserting or merging; callers that need
shared writers should lock externally or keep one filter per worker and
`union` them at synchronization points.

Example
  bf = BloomFilter.create(1000, 0.01)
  bf.insert(b"robin")
  print(bf.might_contain(b"robin"))      # True
  print(b"verlangen" in bf)              # False (probably)
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Iterator, Optional

from .bits import BitArray
from .errors import IncompatibleFilter
from .hashing import Hash128, iter_positions, murmur3_128
from .parameters import (
    DEFAULT_EXPECTED_INSERTIONS,
    DEFAULT_FALSE_POSITIVE_PROBABILITY,
    FilterParameters,
)

__all__ = ["BloomFilter"]


# BloomFilter
#
# Owns exactly one FilterParameters and one BitArray for its whole life.
#
# Parameters:
#   parameters (FilterParameters): Fixed (m, k) of this filter.
#   bits (BitArray, optional): Existing bit array of length m to adopt.
#   hash_function (Hash128): 128-bit hash used for every position, must be
#     equal (==) between filters that will be merged or compared. Plain
#     functions compare by identity; callable objects may define __eq__.
#
class BloomFilter:
    def __init__(
        self,
        parameters: FilterParameters,
        bits: Optional[BitArray] = None,
        hash_function: Hash128 = murmur3_128,
    ):
        if bits is None:
            bits = BitArray(parameters.bit_array_length)
        elif len(bits) != parameters.bit_array_length:
            raise ValueError(
                f"bit array has {len(bits)} bits, parameters require {parameters.bit_array_length}"
            )
        self.parameters: FilterParameters = parameters
        self.bits: BitArray = bits
        self.hash_function: Hash128 = hash_function

    # Create an empty filter sized for `expected_insertions` at
    # `false_positive_probability`.
    #
    # Raises:
    #   InvalidParameter: If n <= 0 or p is not in (0, 1).
    #
    @classmethod
    def create(
        cls,
        expected_insertions: int = DEFAULT_EXPECTED_INSERTIONS,
        false_positive_probability: float = DEFAULT_FALSE_POSITIVE_PROBABILITY,
        hash_function: Hash128 = murmur3_128,
    ) -> "BloomFilter":
        parameters = FilterParameters.derive(expected_insertions, false_positive_probability)
        return cls(parameters, hash_function=hash_function)

    @property
    def bit_array_length(self) -> int:
        return self.parameters.bit_array_length

    @property
    def hash_count(self) -> int:
        return self.parameters.hash_count

    def _positions(self, element: bytes) -> Iterator[int]:
        return iter_positions(element, self.bit_array_length, self.hash_count, self.hash_function)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    # Set the k bits of `element`. Inserting beyond the sized capacity is
    # allowed; the false-positive rate just rises above target.
    def insert(self, element: bytes) -> None:
        self.bits.set_many(self._positions(element))

    # Insert every element of an iterable.
    def insert_all(self, elements: Iterable[bytes]) -> None:
        for element in elements:
            self.insert(element)

    # True if `element` may have been inserted, False if it definitely was not.
    def might_contain(self, element: bytes) -> bool:
        return self.bits.all_set(self._positions(element))

    def __contains__(self, element: bytes) -> bool:
        return self.might_contain(element)

    # Merge `other` into this filter in place, after which this filter
    # reports every element either filter reported.
    #
    # Raises:
    #   IncompatibleFilter: If (m, k) differ or the hash functions compare
    #     unequal. Neither filter is modified in that case.
    #
    def union(self, other: "BloomFilter") -> None:
        if not self.parameters.compatible_with(other.parameters):
            raise IncompatibleFilter(
                f"cannot union filter (m={self.bit_array_length}, k={self.hash_count}) "
                f"with filter (m={other.bit_array_length}, k={other.hash_count})"
            )
        if self.hash_function != other.hash_function:
            raise IncompatibleFilter("cannot union filters built with different hash functions")
        self.bits.or_merge(other.bits)
        logging.debug(f"Merged bloom filter (m={self.bit_array_length}, k={self.hash_count}).")

    # Support in-place union with |=
    def __ior__(self, other: "BloomFilter") -> "BloomFilter":
        self.union(other)
        return self

    # ------------------------------------------------------------------
    # Size and saturation
    # ------------------------------------------------------------------

    # In-memory footprint of the bit array, ceil(m / 8). Header bytes of the
    # serialized form are not included.
    def estimated_byte_size(self) -> int:
        return self.parameters.byte_size

    def bit_count(self) -> int:
        return self.bits.count()

    # Probability that a never-inserted element is reported present, given
    # the bits currently set: (bits_set / m) ** k.
    def expected_false_positive_probability(self) -> float:
        return (self.bit_count() / self.bit_array_length) ** self.hash_count

    # Estimate of the number of distinct elements inserted (Swamidass &
    # Baldi). A fully saturated filter has no finite estimate and returns
    # the bit-array length.
    def approximate_element_count(self) -> int:
        m = self.bit_array_length
        fraction_set = self.bit_count() / m
        if fraction_set >= 1.0:
            return m
        return int(round(-m / self.hash_count * math.log1p(-fraction_set)))

    # ------------------------------------------------------------------
    # Serialization (see `bitsieve.codec`)
    # ------------------------------------------------------------------

    def serialize(self) -> bytes:
        from .codec import serialize
        return serialize(self)

    @classmethod
    def deserialize(cls, data: bytes, hash_function: Hash128 = murmur3_128) -> "BloomFilter":
        from .codec import deserialize
        return deserialize(data, hash_function=hash_function)

    # Deterministic 128-bit fingerprint of this filter's serialized form.
    def fingerprint(self) -> bytes:
        from .codec import fingerprint
        return fingerprint(self.serialize(), hash_function=self.hash_function)

    # ------------------------------------------------------------------
    # Value behaviour
    # ------------------------------------------------------------------

    def copy(self) -> "BloomFilter":
        return BloomFilter(self.parameters, self.bits.copy(), self.hash_function)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            (self.parameters == other.parameters)
            and (self.hash_function == other.hash_function)
            and (self.bits == other.bits)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"BloomFilter(m={self.bit_array_length}, k={self.hash_count}, "
            f"bytes={self.estimated_byte_size()})"
        )
