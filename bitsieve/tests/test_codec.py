import struct
import unittest

from bitsieve.codec import HEADER_SIZE, deserialize, fingerprint, serialize
from bitsieve.errors import MalformedEncoding
from bitsieve.filter import BloomFilter
from bitsieve.hashing import DIGEST_SIZE, murmur3_128
from bitsieve.parameters import FilterParameters


class TestSerialize(unittest.TestCase):

    def test_layout(self):
        """[m: u64][k: u32][bits], little-endian, bit i at byte i//8 bit i%8."""
        bf = BloomFilter(FilterParameters.from_lengths(10, 2))
        bf.bits.set(0)
        bf.bits.set(9)
        data = serialize(bf)
        self.assertEqual(HEADER_SIZE, 12)
        self.assertEqual(
            data,
            bytes.fromhex("0a00000000000000" "02000000") + bytes([0x01, 0x02]),
        )

    def test_length(self):
        for bf in (BloomFilter.create(100), BloomFilter.create(100, 0.001)):
            self.assertEqual(len(serialize(bf)), HEADER_SIZE + bf.estimated_byte_size())

    def test_round_trip(self):
        bf = BloomFilter.create(1000, 0.01)
        inserted = [f"member-{i}".encode() for i in range(500)]
        queries = [f"query-{i}".encode() for i in range(2000)]
        bf.insert_all(inserted)
        before = [x in bf for x in inserted + queries]
        copy = deserialize(serialize(bf))
        self.assertEqual(copy.parameters, bf.parameters)
        self.assertEqual(copy, bf)
        self.assertEqual([x in copy for x in inserted + queries], before)
        self.assertTrue(all(before[:len(inserted)]))

    def test_method_round_trip(self):
        bf = BloomFilter.create(100)
        bf.insert(b"robin")
        copy = BloomFilter.deserialize(bf.serialize())
        self.assertIn(b"robin", copy)
        self.assertEqual(copy.serialize(), bf.serialize())

    def test_deserialized_filter_can_union(self):
        a = BloomFilter.create(100)
        b = BloomFilter.create(100)
        b.insert(b"verlangen")
        a.union(deserialize(serialize(b)))
        self.assertIn(b"verlangen", a)

    def test_output_is_a_snapshot(self):
        bf = BloomFilter.create(100)
        data = serialize(bf)
        bf.insert(b"robin")
        self.assertEqual(data, serialize(BloomFilter.create(100)))
        self.assertNotEqual(data, serialize(bf))

    def test_deserialized_filter_owns_its_bits(self):
        bf = BloomFilter.create(100)
        data = bytearray(serialize(bf))
        copy = deserialize(data)
        copy.insert(b"robin")
        self.assertEqual(bytes(data), serialize(bf))

    def test_accepts_bytes_like(self):
        bf = BloomFilter.create(100)
        bf.insert(b"robin")
        data = serialize(bf)
        self.assertEqual(deserialize(bytearray(data)), bf)
        self.assertEqual(deserialize(memoryview(data)), bf)


class TestMalformed(unittest.TestCase):

    def setUp(self):
        self.data = serialize(BloomFilter.create(100))

    def test_truncated_header(self):
        with self.assertRaises(MalformedEncoding):
            deserialize(b"")
        with self.assertRaises(MalformedEncoding):
            deserialize(self.data[:HEADER_SIZE - 1])

    def test_wrong_length(self):
        with self.assertRaises(MalformedEncoding):
            deserialize(self.data[:-1])
        with self.assertRaises(MalformedEncoding):
            deserialize(self.data + b"\x00")

    def test_corrupt_header(self):
        with self.assertRaises(MalformedEncoding):
            deserialize(struct.pack("<QI", 0, 7))
        with self.assertRaises(MalformedEncoding):
            deserialize(struct.pack("<QI", 8, 0) + b"\x00")
        # A length field that disagrees with the payload.
        with self.assertRaises(MalformedEncoding):
            deserialize(struct.pack("<QI", 2**40, 7) + self.data[HEADER_SIZE:])

    def test_padding_bits_set(self):
        data = struct.pack("<QI", 10, 2) + bytes([0x00, 0x80])
        with self.assertRaises(MalformedEncoding):
            deserialize(data)

    def test_is_value_error(self):
        with self.assertRaises(ValueError):
            deserialize(b"\x01")

    def test_rejects_non_bytes(self):
        with self.assertRaises(TypeError):
            deserialize("not bytes")


class TestFingerprint(unittest.TestCase):

    def test_stable(self):
        data = serialize(BloomFilter.create())
        a = fingerprint(data)
        b = fingerprint(data)
        self.assertEqual(a, b)
        self.assertEqual(len(a), DIGEST_SIZE)

    def test_fresh_default_filters_agree(self):
        a = fingerprint(serialize(BloomFilter.create()))
        b = fingerprint(serialize(BloomFilter.create()))
        self.assertEqual(a, b)

    def test_over_serialized_bytes(self):
        bf = BloomFilter.create(100)
        data = serialize(bf)
        self.assertEqual(fingerprint(data), murmur3_128(data))
        self.assertEqual(bf.fingerprint(), fingerprint(data))

    def test_changes_with_content(self):
        bf = BloomFilter.create(100)
        empty = fingerprint(serialize(bf))
        bf.insert(b"robin")
        self.assertNotEqual(fingerprint(serialize(bf)), empty)
        self.assertNotEqual(
            fingerprint(serialize(BloomFilter.create(100))),
            fingerprint(serialize(BloomFilter.create(100, 0.001))),
        )

    def test_injected_hash(self):
        def xor_fold(data):
            out = bytearray(16)
            for i, byte in enumerate(data):
                out[i % 16] ^= byte
            return bytes(out)
        data = serialize(BloomFilter.create(100))
        self.assertEqual(fingerprint(data, hash_function=xor_fold), xor_fold(data))


if __name__ == "__main__":
    unittest.main()
