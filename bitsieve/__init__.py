"""Bloom filter: approximate set membership with no false negatives."""

# Get the version number from the about file
import os

DIRECTORY = os.path.dirname(os.path.abspath(__file__))
ABOUT_DIR = os.path.join(DIRECTORY, "about")
VERSION_FILE = os.path.join(ABOUT_DIR, "version.txt")
if (os.path.exists(VERSION_FILE)):
    with open(VERSION_FILE) as f:
        __version__ = f.read().strip()
else:
    __version__ = "unknown"

from .errors import (
    BloomFilterError,
    IncompatibleArray,
    IncompatibleFilter,
    InvalidParameter,
    MalformedEncoding,
)
from .parameters import (
    DEFAULT_EXPECTED_INSERTIONS,
    DEFAULT_FALSE_POSITIVE_PROBABILITY,
    FilterParameters,
)
from .bits import BitArray
from .hashing import murmur3_128, positions
from .filter import BloomFilter
from .codec import deserialize, fingerprint, serialize

create = BloomFilter.create

__all__ = [
    "BitArray",
    "BloomFilter",
    "BloomFilterError",
    "DEFAULT_EXPECTED_INSERTIONS",
    "DEFAULT_FALSE_POSITIVE_PROBABILITY",
    "FilterParameters",
    "IncompatibleArray",
    "IncompatibleFilter",
    "InvalidParameter",
    "MalformedEncoding",
    "create",
    "deserialize",
    "fingerprint",
    "murmur3_128",
    "positions",
    "serialize",
]
