import unittest

from codablebloom import hashers
from codablebloom.bits import BitArray
from codablebloom.exceptions import DecodeError, IndexOutOfRange, UnknownHasherError
from codablebloom.hashers import DeterministicHasher


class SimpleToByteClass(object):
    def __init__(self, ordinal):
        self.o = ordinal
        self.method_called = False

    def to_bytes(self):
        self.method_called = True
        return self.o.to_bytes(1, "little")


class BadToByteClass(object):
    def to_bytes(self):
        return "not bytes"


class TestHashers(unittest.TestCase):
    def test_reference_values(self):
        self.assertEqual(DeterministicHasher.DJB2.apply("hash"), 2090320585)
        self.assertEqual(DeterministicHasher.DJB2A.apply("hash"), 2087809207)
        self.assertEqual(DeterministicHasher.SDBM.apply("hash"), 385600046)
        self.assertEqual(DeterministicHasher.FNV1.apply("hash"), 3616638997)
        self.assertEqual(DeterministicHasher.FNV1A.apply("hash"), 3469047761)

    def test_single_byte(self):
        self.assertEqual(hashers.djb2(b"a"), 177670)
        self.assertEqual(hashers.sdbm(b"a"), 97)
        self.assertEqual(hashers.fnv1(b"a"), 0x050C5D7E)
        self.assertEqual(hashers.fnv1a(b"a"), 0xE40C292C)

    def test_empty_input_is_initial_value(self):
        self.assertEqual(hashers.djb2(b""), 5381)
        self.assertEqual(hashers.djb2a(b""), 5381)
        self.assertEqual(hashers.sdbm(b""), 0)
        self.assertEqual(hashers.fnv1(b""), 2166136261)
        self.assertEqual(hashers.fnv1a(b""), 2166136261)
        self.assertEqual(hashers.murmur3(b""), 0)

    def test_murmur3_is_unsigned(self):
        # mmh3.hash(b"foo") is -156908512 as a signed int
        self.assertEqual(hashers.murmur3(b"foo"), 4138058784)

    def test_results_fit_in_32_bits(self):
        data = bytes(range(256)) * 16
        for h in DeterministicHasher:
            with self.subTest(hasher=h.value):
                value = h.digest(data)
                self.assertGreaterEqual(value, 0)
                self.assertLessEqual(value, hashers.MASK_32)
                self.assertEqual(value, h.digest(data))

    def test_lookup(self):
        self.assertIs(DeterministicHasher.lookup("sdbm"), DeterministicHasher.SDBM)
        self.assertIs(
            DeterministicHasher.lookup(DeterministicHasher.FNV1), DeterministicHasher.FNV1
        )
        with self.assertRaises(UnknownHasherError) as cm:
            DeterministicHasher.lookup("md5")
        self.assertEqual(cm.exception.name, "md5")
        self.assertIsInstance(cm.exception, DecodeError)

    def test_names_sorted(self):
        self.assertEqual(
            hashers.names(), ["djb2", "djb2a", "fnv1", "fnv1a", "murmur3", "sdbm"]
        )

    def test_registry_is_read_only(self):
        with self.assertRaises(TypeError):
            hashers._FUNCTIONS[DeterministicHasher.DJB2] = hashers.sdbm


class TestHashableBytes(unittest.TestCase):
    def test_input_types(self):
        self.assertEqual(hashers.hashable_bytes("lol"), b"lol")
        self.assertEqual(hashers.hashable_bytes(b"lol"), b"lol")
        self.assertEqual(hashers.hashable_bytes(bytearray(b"lol")), b"lol")
        self.assertEqual(hashers.hashable_bytes(memoryview(b"lol")), b"lol")
        self.assertEqual(hashers.hashable_bytes("é"), b"\xc3\xa9")

    def test_to_bytes_protocol(self):
        key = SimpleToByteClass(ord("A"))
        self.assertEqual(hashers.hashable_bytes(key), b"A")
        self.assertTrue(key.method_called)
        self.assertEqual(
            DeterministicHasher.DJB2.apply(key), DeterministicHasher.DJB2.apply("A")
        )

    def test_unsupported_types(self):
        for key in (1, True, 1.5, None, object()):
            with self.subTest(key=key):
                with self.assertRaises(TypeError):
                    hashers.hashable_bytes(key)
        with self.assertRaises(TypeError):
            hashers.hashable_bytes(BadToByteClass())


class TestBitArray(unittest.TestCase):
    def test_zero_filled(self):
        ba = BitArray(4)
        self.assertEqual(ba.bit_count, 32)
        self.assertEqual(len(ba), 32)
        self.assertEqual(ba.tobytes(), b"\x00" * 4)
        self.assertEqual(ba.count(), 0)
        self.assertFalse(any(ba[i] for i in range(32)))

    def test_least_significant_bit_first(self):
        ba = BitArray(2)
        ba[0] = True
        self.assertEqual(ba.tobytes(), b"\x01\x00")
        ba[15] = True
        self.assertEqual(ba.tobytes(), b"\x01\x80")
        ba[12] = True
        self.assertEqual(ba.tobytes(), b"\x01\x90")
        self.assertEqual(ba.count(), 3)

    def test_set_false(self):
        ba = BitArray.from_bytes(b"\xff")
        ba[3] = False
        self.assertEqual(ba.tobytes(), b"\xf7")
        self.assertFalse(ba[3])
        self.assertTrue(ba[4])

    def test_from_bytes(self):
        ba = BitArray.from_bytes(b"\x00\x10")
        self.assertEqual(ba.bit_count, 16)
        self.assertTrue(ba[12])
        self.assertEqual([i for i in range(16) if ba[i]], [12])
        self.assertEqual(ba, BitArray.from_bytes(bytearray(b"\x00\x10")))
        self.assertNotEqual(ba, BitArray(2))

    def test_index_out_of_range(self):
        ba = BitArray(8)
        for index in (64, 65, -1):
            with self.subTest(index=index):
                with self.assertRaises(IndexOutOfRange) as cm:
                    ba[index]
                self.assertEqual(cm.exception.bit_count, 64)
                with self.assertRaises(IndexError):
                    ba[index] = True
        self.assertEqual(ba.count(), 0)


if __name__ == "__main__":
    unittest.main()
