"""Double-hashing position generator.

A single 128-bit digest of the element is split into two 64-bit halves,
``h1`` (low, bytes 0..7 little-endian) and ``h2`` (high, bytes 8..15
little-endian). The ``k`` bit positions are

  position_i = (h1 + i * h2) mod 2^64 mod m,   i = 0 .. k-1

i.e. the Kirsch-Mitzenmacher linear combination evaluated in unsigned
64-bit arithmetic. The 128-bit hash itself is injectable; the default is
MurmurHash3 x64/128 with seed 0 (``mmh3.hash_bytes``).
"""

from __future__ import annotations

from typing import Callable, Iterator, List, Tuple

import mmh3

__all__ = [
    "Hash128",
    "DIGEST_SIZE",
    "MASK64",
    "murmur3_128",
    "split_digest",
    "iter_positions",
    "positions",
]

# A 128-bit hash: bytes in, exactly DIGEST_SIZE bytes out.
Hash128 = Callable[[bytes], bytes]
DIGEST_SIZE: int = 16
MASK64: int = 2**64 - 1


# MurmurHash3 x64/128, seed 0, as 16 little-endian bytes.
def murmur3_128(data: bytes) -> bytes:
    return mmh3.hash_bytes(data)


# Raise TypeError unless `element` is bytes-like, return it as bytes.
def as_bytes(element) -> bytes:
    if not isinstance(element, (bytes, bytearray, memoryview)):
        raise TypeError(f"bloom filter elements must be bytes-like, got {type(element).__name__}")
    return bytes(element)


# Split a 16 byte digest into its (low, high) unsigned 64-bit halves.
#
# Raises:
#   ValueError: If the digest is not exactly 16 bytes.
#
def split_digest(digest: bytes) -> Tuple[int, int]:
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"128-bit hash must return {DIGEST_SIZE} bytes, got {len(digest)}")
    h1 = int.from_bytes(digest[:8], "little")
    h2 = int.from_bytes(digest[8:], "little")
    return h1, h2


def _walk(h1: int, h2: int, m: int, k: int) -> Iterator[int]:
    combined = h1
    for _ in range(k):
        yield combined % m
        # Stepping by h2 modulo 2^64 gives h1 + i * h2 in unsigned 64 bits.
        combined = (combined + h2) & MASK64


# Lazily yield the k bit positions of `element` in a filter of m bits.
# The element is hashed (and type checked) before this returns, so a bad
# element fails before any position is consumed.
#
# Parameters:
#   element (bytes): The element, any bytes-like value.
#   m (int): Bit-array length.
#   k (int): Number of positions to produce.
#   hash_function (Hash128): 128-bit hash, defaults to murmur3_128.
#
# Returns:
#   (Iterator[int]): k positions, each in [0, m).
#
def iter_positions(element: bytes, m: int, k: int, hash_function: Hash128 = murmur3_128) -> Iterator[int]:
    h1, h2 = split_digest(hash_function(as_bytes(element)))
    return _walk(h1, h2, m, k)


# All k bit positions of `element` as a list.
def positions(element: bytes, m: int, k: int, hash_function: Hash128 = murmur3_128) -> List[int]:
    return list(iter_positions(element, m, k, hash_function))
