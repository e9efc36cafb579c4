# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

import bitarray

from codablebloom.exceptions import IndexOutOfRange

BITS_IN_BYTE = 8


class BitArray:
    """Fixed-length bit vector backed by whole bytes.

    Bit ``i`` lives in byte ``i // 8`` at position ``i % 8``, counting from
    the least significant bit. That ordering is part of the wire format, so
    the underlying bitarray is always little endian.
    """

    def __init__(self, byte_count):
        self.bits = bitarray.bitarray(byte_count * BITS_IN_BYTE, endian="little")
        self.bits.setall(False)

    @classmethod
    def from_bytes(cls, data):
        ba = cls(0)
        ba.bits.frombytes(bytes(data))
        return ba

    @property
    def bit_count(self):
        return len(self.bits)

    def __len__(self):
        return len(self.bits)

    def _check(self, index):
        # bitarray accepts negative indices; we do not
        if not 0 <= index < len(self.bits):
            raise IndexOutOfRange(index=index, bit_count=len(self.bits))

    def __getitem__(self, index):
        self._check(index)
        return bool(self.bits[index])

    def __setitem__(self, index, value):
        self._check(index)
        self.bits[index] = bool(value)

    def count(self):
        """Number of set bits."""
        return self.bits.count(1)

    def tobytes(self):
        return self.bits.tobytes()

    def __eq__(self, other):
        if not isinstance(other, BitArray):
            return NotImplemented
        return self.bits == other.bits

    def __repr__(self):
        return f"BitArray(bit_count={len(self.bits)}, set={self.count()})"
