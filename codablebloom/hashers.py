# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Deterministic, seed-free hash functions.

Python's builtin ``hash()`` is salted per process, so filters that are
persisted and reloaded need their own hashes. Everything here is computed
with 32-bit unsigned wraparound so results match on every platform.

References:
  http://www.cse.yorku.ca/~oz/hash.html
  http://www.isthe.com/chongo/tech/comp/fnv/
"""

import enum
import types
from typing import Protocol, runtime_checkable

import mmh3

from codablebloom.exceptions import UnknownHasherError

MASK_32 = 0xFFFFFFFF
FNV_PRIME = 16777619
FNV_OFFSET_BASIS = 2166136261
DJB2_OFFSET_BASIS = 5381


@runtime_checkable
class DeterministicallyHashable(Protocol):
    """Anything that can project itself onto a stable byte sequence.

    The projection must not change between releases of the application:
    doing so silently invalidates every filter persisted before the change.
    """

    def to_bytes(self) -> bytes: ...


def hashable_bytes(key):
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    if isinstance(key, str):
        return key.encode("utf-8")
    # int.to_bytes() needs a length and byte order, so it is not a
    # canonical projection
    if isinstance(key, int):
        raise TypeError("integers have no canonical byte projection; encode them first")
    if isinstance(key, DeterministicallyHashable):
        data = key.to_bytes()
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"{type(key).__name__}.to_bytes() must return bytes")
        return bytes(data)
    raise TypeError(f"{type(key).__name__} is not deterministically hashable")


def _fold(data, initial, combine):
    acc = initial
    for byte in data:
        acc = combine(acc, byte) & MASK_32
    return acc


def djb2(data):
    return _fold(data, DJB2_OFFSET_BASIS, lambda acc, b: (acc << 5) + acc + b)


def djb2a(data):
    return _fold(data, DJB2_OFFSET_BASIS, lambda acc, b: ((acc << 5) + acc) ^ b)


def sdbm(data):
    return _fold(data, 0, lambda acc, b: b + (acc << 6) + (acc << 16) - acc)


def fnv1(data):
    return _fold(data, FNV_OFFSET_BASIS, lambda acc, b: (acc * FNV_PRIME) ^ b)


def fnv1a(data):
    return _fold(data, FNV_OFFSET_BASIS, lambda acc, b: (acc ^ b) * FNV_PRIME)


def murmur3(data):
    # x86 32-bit variant, fixed seed 0
    return mmh3.hash(data, 0) & MASK_32


class DeterministicHasher(str, enum.Enum):
    DJB2 = "djb2"
    DJB2A = "djb2a"
    SDBM = "sdbm"
    FNV1 = "fnv1"
    FNV1A = "fnv1a"
    MURMUR3 = "murmur3"

    @classmethod
    def lookup(cls, name):
        try:
            return cls(name)
        except ValueError:
            raise UnknownHasherError(name) from None

    def digest(self, data):
        return _FUNCTIONS[self](data)

    def apply(self, key):
        """Hash ``key``'s canonical bytes to an unsigned 32-bit integer."""
        return self.digest(hashable_bytes(key))


_FUNCTIONS = types.MappingProxyType(
    {
        DeterministicHasher.DJB2: djb2,
        DeterministicHasher.DJB2A: djb2a,
        DeterministicHasher.SDBM: sdbm,
        DeterministicHasher.FNV1: fnv1,
        DeterministicHasher.FNV1A: fnv1a,
        DeterministicHasher.MURMUR3: murmur3,
    }
)


def names():
    return sorted(h.value for h in DeterministicHasher)
