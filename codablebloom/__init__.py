# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

import base64
import collections.abc
import json
import logging
import math
import struct
from codablebloom import fileformats
from codablebloom.bits import BITS_IN_BYTE, BitArray
from codablebloom.exceptions import (
    BloomFilterError,
    ConfigurationError,
    DecodeError,
    IndexOutOfRange,
    UnknownHasherError,
)
from codablebloom.hashers import (
    DeterministicallyHashable,
    DeterministicHasher,
    hashable_bytes,
)
from deprecated import deprecated

log = logging.getLogger(__name__)

__all__ = [
    "BloomFilter",
    "BloomFilterError",
    "ConfigurationError",
    "DecodeError",
    "DeterministicHasher",
    "DeterministicallyHashable",
    "IndexOutOfRange",
    "UnknownHasherError",
    "decode",
    "encode",
]

# Order in which filter_with_characteristics picks hashers, most independent
# of each other first.
PREFERRED_HASHERS = (
    DeterministicHasher.MURMUR3,
    DeterministicHasher.FNV1A,
    DeterministicHasher.SDBM,
    DeterministicHasher.DJB2,
    DeterministicHasher.FNV1,
    DeterministicHasher.DJB2A,
)


def _sorted_hashers(hashers):
    return tuple(sorted(hashers, key=lambda h: h.value))


def _select_hashers(hashers):
    if isinstance(hashers, (str, bytes)):
        raise ConfigurationError("hashers must be a collection of names, not one string")
    try:
        selected = {DeterministicHasher.lookup(h) for h in hashers}
    except UnknownHasherError as e:
        raise ConfigurationError(str(e)) from e
    except TypeError as e:
        raise ConfigurationError(
            f"hashers must be a collection of names, not {hashers!r}"
        ) from e
    if not selected:
        raise ConfigurationError("At least one hasher is required")
    return _sorted_hashers(selected)


# A probabilistic set whose hashing is deterministic, so it can be persisted
# and reloaded (or rebuilt elsewhere) and still answer the same way.
# https://en.wikipedia.org/wiki/Bloom_filter
class BloomFilter:
    def __init__(self, *, hashers, byte_count):
        if (
            not isinstance(byte_count, int)
            or isinstance(byte_count, bool)
            or byte_count <= 0
        ):
            raise ConfigurationError(
                f"byte_count must be a positive integer, not {byte_count!r}"
            )
        self._hashers = _select_hashers(hashers)
        self.bitarray = BitArray(byte_count)

    @classmethod
    def from_bytes(cls, *, hashers, data, bit_count=None):
        """Rehydrate a filter from its raw bit-array bytes.

        If `bit_count' is supplied it must agree with the length of `data'.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ConfigurationError(
                f"data must be bytes, not {type(data).__name__}"
            )
        data = bytes(data)
        if bit_count is not None and bit_count != len(data) * BITS_IN_BYTE:
            raise ConfigurationError(
                f"bit_count {bit_count} does not match {len(data)} bytes of data"
            )
        bloom = cls(hashers=hashers, byte_count=len(data))
        bloom.bitarray = BitArray.from_bytes(data)
        return bloom

    @classmethod
    @deprecated(
        version="0.2.0",
        reason="Filters are sized in whole bytes; use BloomFilter(byte_count=...)",
    )
    def with_bit_count(cls, *, hashers, bits):
        return cls(hashers=hashers, byte_count=math.ceil(bits / BITS_IN_BYTE))

    @property
    def hashers(self):
        return tuple(h.value for h in self._hashers)

    @property
    def bit_count(self):
        return self.bitarray.bit_count

    @property
    def byte_count(self):
        return self.bit_count // BITS_IN_BYTE

    def indices(self, key):
        data = hashable_bytes(key)
        return [h.digest(data) % self.bit_count for h in self._hashers]

    def insert(self, key):
        for index in self.indices(key):
            self.bitarray[index] = True

    def contains(self, key):
        return all(self.bitarray[index] for index in self.indices(key))

    add = insert

    def __contains__(self, key):
        return self.contains(key)

    def set_bit_count(self):
        return self.bitarray.count()

    def false_positive_rate(self, elements):
        """Expected false positive rate after `elements' distinct inserts."""
        k = len(self._hashers)
        return (1 - math.exp(-k * elements / self.bit_count)) ** k

    def verify(self, *, include, exclude):
        for entry in include:
            assert entry in self, f"Verification Failure: false negative: {entry}"
        for entry in exclude:
            assert entry not in self, f"Verification Failure: false positive: {entry}"

    def __eq__(self, other):
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return self._hashers == other._hashers and self.bitarray == other.bitarray

    __hash__ = None

    def __repr__(self):
        return (
            f"BloomFilter(hashers={list(self.hashers)}, byte_count={self.byte_count})"
        )

    def to_json(self):
        """Canonical JSON, as UTF-8 bytes. Equal filters give equal output."""
        return json.dumps(
            encode(self), sort_keys=True, separators=fileformats.JSON_SEPARATORS
        ).encode("utf-8")

    @classmethod
    def from_json(cls, s):
        try:
            obj = json.loads(s)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Malformed JSON: {e}") from e
        bloom = decode(obj)
        log.debug(
            f"from_json hashers {bloom.hashers}, {bloom.byte_count} bytes, "
            f"{bloom.set_bit_count()} bits set"
        )
        return bloom

    # Follows the bitarray.tofile parameter convention.
    def tofile(self, f):
        """Write the binary form of the filter to file object `f'."""
        f.write(
            fileformats.header_struct.pack(
                fileformats.BINARY_VERSION, len(self._hashers)
            )
        )
        for name in self.hashers:
            raw_name = name.encode("ascii")
            f.write(fileformats.hasher_name_struct.pack(len(raw_name)))
            f.write(raw_name)
        data = self.bitarray.tobytes()
        f.write(fileformats.data_length_struct.pack(len(data)))
        f.write(data)
        f.flush()

    @classmethod
    def from_buf(cls, buf):
        buf = bytes(buf)
        try:
            version, hasher_count = fileformats.header_struct.unpack(
                buf[: fileformats.header_struct.size]
            )
            buf = buf[fileformats.header_struct.size :]

            if version != fileformats.BINARY_VERSION:
                raise DecodeError(f"Unknown version: {version}")

            names = []
            for _ in range(hasher_count):
                (name_len,) = fileformats.hasher_name_struct.unpack(
                    buf[: fileformats.hasher_name_struct.size]
                )
                buf = buf[fileformats.hasher_name_struct.size :]
                if len(buf) < name_len:
                    raise DecodeError("Truncated hasher name")
                names.append(buf[:name_len].decode("ascii"))
                buf = buf[name_len:]

            (byte_count,) = fileformats.data_length_struct.unpack(
                buf[: fileformats.data_length_struct.size]
            )
            buf = buf[fileformats.data_length_struct.size :]
        except struct.error as e:
            raise DecodeError(f"Truncated header: {e}") from e
        except UnicodeDecodeError as e:
            raise DecodeError(f"Hasher names must be ASCII: {e}") from e

        if len(buf) < byte_count:
            raise DecodeError(
                f"Truncated data: expected {byte_count} bytes, found {len(buf)}"
            )
        if len(buf) > byte_count:
            raise DecodeError(f"{len(buf) - byte_count} trailing bytes after data")

        log.debug(f"from_buf version {version}, hashers {names}, {byte_count} bytes")
        return _rehydrate(_decode_hashers(names), buf, None)

    @classmethod
    def filter_with_characteristics(cls, *, elements, falsePositiveRate):
        if not 0 < falsePositiveRate < 1:
            raise ConfigurationError("falsePositiveRate must be between 0 and 1")
        if elements <= 0:
            raise ConfigurationError("elements must be positive")
        nHashFuncs = cls.calc_n_hashes(falsePositiveRate)
        if nHashFuncs > len(PREFERRED_HASHERS):
            log.warning(
                f"A false positive rate of {falsePositiveRate} wants {nHashFuncs} "
                f"hashers but only {len(PREFERRED_HASHERS)} exist; the real rate "
                "will be higher"
            )
            nHashFuncs = len(PREFERRED_HASHERS)
        size = cls.calc_size(elements, falsePositiveRate)
        return cls(
            hashers=PREFERRED_HASHERS[:nHashFuncs], byte_count=size // BITS_IN_BYTE
        )

    @classmethod
    def calc_n_hashes(cls, falsePositiveRate):
        return math.ceil(math.log(1.0 / falsePositiveRate, 2))

    @classmethod
    def calc_size(cls, elements, falsePositiveRate):
        # From CRLite paper, https://cbw.sh/static/pdf/larisch-oakland17.pdf
        min_bits = math.ceil(1.44 * elements * math.log(1 / falsePositiveRate, 2))
        # Ensure the result is divisible by 8 for full bytes
        return BITS_IN_BYTE * math.ceil(min_bits / BITS_IN_BYTE)


def encode(bloom):
    """Return the canonical encoded form of `bloom' as a plain dict."""
    return {
        fileformats.DATA_KEY: base64.b64encode(bloom.bitarray.tobytes()).decode(
            "ascii"
        ),
        fileformats.HASHERS_KEY: list(bloom.hashers),
    }


def _decode_hashers(names):
    if not isinstance(names, (list, tuple)):
        raise DecodeError(f"hashers must be a list, not {type(names).__name__}")
    if not names:
        raise DecodeError("hashers must not be empty")
    for name in names:
        if not isinstance(name, str):
            raise DecodeError(f"hasher names must be strings, not {name!r}")
    selected = [DeterministicHasher.lookup(name) for name in names]
    if len(set(selected)) != len(selected):
        raise DecodeError(f"Duplicate hashers in {list(names)}")
    if tuple(selected) != _sorted_hashers(selected):
        raise DecodeError(f"hashers must be sorted, got {list(names)}")
    return tuple(selected)


def _rehydrate(hashers, data, bits):
    if not data:
        raise DecodeError("data must not be empty")
    if bits is not None:
        if not isinstance(bits, int) or isinstance(bits, bool):
            raise DecodeError(f"bits must be an integer, not {bits!r}")
        if bits != len(data) * BITS_IN_BYTE:
            raise DecodeError(
                f"bits {bits} does not match {len(data)} bytes of data"
            )
    return BloomFilter.from_bytes(hashers=hashers, data=data)


def decode(obj):
    """Build a filter from its encoded form, raising DecodeError if malformed."""
    if not isinstance(obj, collections.abc.Mapping):
        raise DecodeError(f"Expected an object, not {type(obj).__name__}")

    required = {fileformats.DATA_KEY, fileformats.HASHERS_KEY}
    missing = required - set(obj)
    if missing:
        raise DecodeError(f"Missing fields: {sorted(missing)}")
    unexpected = set(obj) - required - {fileformats.BITS_KEY}
    if unexpected:
        raise DecodeError(f"Unexpected fields: {sorted(unexpected)}")

    hashers = _decode_hashers(obj[fileformats.HASHERS_KEY])

    data = obj[fileformats.DATA_KEY]
    if not isinstance(data, str):
        raise DecodeError(f"data must be a base64 string, not {type(data).__name__}")
    try:
        raw = base64.b64decode(data, validate=True)
    except ValueError as e:
        raise DecodeError(f"data is not valid base64: {e}") from e

    bits = None
    if fileformats.BITS_KEY in obj:
        bits = obj[fileformats.BITS_KEY]
        if bits is None:
            raise DecodeError("bits must be an integer, not None")

    return _rehydrate(hashers, raw, bits)
