"""Typed failures raised by the Bloom filter engine.

Every error is a ``ValueError`` so callers that only care about "bad input"
can catch that, while callers that want to recover (rebuild a filter at
matching parameters, refetch a corrupted payload) can catch the specific
class.
"""

__all__ = [
    "BloomFilterError",
    "InvalidParameter",
    "IncompatibleArray",
    "IncompatibleFilter",
    "MalformedEncoding",
]


class BloomFilterError(ValueError): pass


# Construction arguments outside their domain (n <= 0, p not in (0,1)).
class InvalidParameter(BloomFilterError): pass


# OR-merge attempted between bit arrays of different lengths.
class IncompatibleArray(BloomFilterError): pass


# Union attempted between filters with different (m, k) or unequal hashes.
class IncompatibleFilter(IncompatibleArray): pass


# Serialized bytes whose header or length cannot describe a filter.
class MalformedEncoding(BloomFilterError): pass
