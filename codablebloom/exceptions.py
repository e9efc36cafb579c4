# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.


class BloomFilterError(Exception):
    """Base class for every error raised by codablebloom."""


class ConfigurationError(BloomFilterError, ValueError):
    pass


class IndexOutOfRange(BloomFilterError, IndexError):
    def __init__(self, *, index, bit_count):
        self.index = index
        self.bit_count = bit_count
        self.message = f"Bit index {index} is outside [0, {bit_count})"

    def __str__(self):
        return self.message


class DecodeError(BloomFilterError, ValueError):
    pass


class UnknownHasherError(DecodeError):
    def __init__(self, name):
        self.name = name
        self.message = f"Unknown hasher: {name!r}"

    def __str__(self):
        return self.message
