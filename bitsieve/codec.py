"""Binary encoding of a Bloom filter and its content fingerprint.

Layout, all integers little-endian:

  [ m: u64 ][ k: u32 ][ bit array: ceil(m/8) bytes ]

Bit ``i`` of the filter is bit ``i % 8`` (least significant first) of byte
``i // 8`` of the bit array. Bits past ``m`` in the last byte are zero. The
layout is self-describing, so ``deserialize`` needs no outside schema.

``fingerprint`` hashes the serialized bytes directly, so two byte-identical
serializations always share a fingerprint. It is a cheap equality / dedup
check that never decodes the payload.

Example
  data = serialize(bf)
  same = deserialize(data)
  assert fingerprint(data) == fingerprint(serialize(same))
"""

from __future__ import annotations

import logging
import struct

from .bits import BitArray
from .errors import MalformedEncoding
from .filter import BloomFilter
from .hashing import DIGEST_SIZE, Hash128, murmur3_128
from .parameters import MAX_HASH_COUNT, FilterParameters

__all__ = ["HEADER_FORMAT", "HEADER_SIZE", "serialize", "deserialize", "fingerprint"]

HEADER_FORMAT: str = "<QI"
HEADER_SIZE: int = struct.calcsize(HEADER_FORMAT)


# Encode a filter as bytes. The result is an independent copy; later
# inserts into `bloom_filter` do not change it.
def serialize(bloom_filter: BloomFilter) -> bytes:
    header = struct.pack(HEADER_FORMAT, bloom_filter.bit_array_length, bloom_filter.hash_count)
    return header + bloom_filter.bits.to_bytes()


# Fail with MalformedEncoding after logging why.
def _malformed(message: str) -> MalformedEncoding:
    logging.warning(f"Rejecting serialized bloom filter: {message}")
    return MalformedEncoding(message)


# Decode bytes produced by `serialize`.
#
# Parameters:
#   data (bytes): Serialized filter, any bytes-like value.
#   hash_function (Hash128): Must match the hash the filter was built with.
#
# Returns:
#   (BloomFilter): A new filter owning a copy of the bit array.
#
# Raises:
#   MalformedEncoding: If the header is truncated or invalid, the length
#     is not HEADER_SIZE + ceil(m/8), or padding bits are set.
#
def deserialize(data: bytes, hash_function: Hash128 = murmur3_128) -> BloomFilter:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"serialized bloom filter must be bytes-like, got {type(data).__name__}")
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise _malformed(f"{len(data)} bytes is shorter than the {HEADER_SIZE} byte header")
    m, k = struct.unpack_from(HEADER_FORMAT, data)
    if m == 0:
        raise _malformed("bit array length is zero")
    if not (1 <= k <= MAX_HASH_COUNT):
        raise _malformed(f"hash count {k} is out of range")
    expected = HEADER_SIZE + (m + 7) // 8
    if len(data) != expected:
        raise _malformed(f"expected {expected} bytes for m={m}, got {len(data)}")
    bits = BitArray.from_bytes(data[HEADER_SIZE:], m)
    if not bits.padding_is_clear():
        raise _malformed(f"padding bits beyond m={m} are set")
    return BloomFilter(FilterParameters.from_lengths(m, k), bits, hash_function)


# 128-bit content hash of serialized bytes, computed over the bytes as
# given (no decoding). Pure and deterministic.
#
# Returns:
#   (bytes): 16 byte digest.
#
def fingerprint(data: bytes, hash_function: Hash128 = murmur3_128) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"fingerprint input must be bytes-like, got {type(data).__name__}")
    digest = hash_function(bytes(data))
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"128-bit hash must return {DIGEST_SIZE} bytes, got {len(digest)}")
    return digest
