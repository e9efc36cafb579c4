import struct

# JSON form: a compact, key-sorted object with exactly these fields.
# {"data": <base64 of the raw bit-array bytes>, "hashers": [<sorted names>]}
DATA_KEY = "data"
HASHERS_KEY = "hashers"
# Optional on decode only. The oldest filters carried their bit count
# alongside the data; when present it must equal len(data) * 8.
BITS_KEY = "bits"

JSON_SEPARATORS = (",", ":")

BINARY_VERSION = 1

# The header of the binary form
# Little endian (<)
# bytes 0-1: The format version, as an unsigned short
# byte 2: N, the number of hashers, as an unsigned char
header_struct = struct.Struct(b"<HB")

# Followed by N of these, in sorted order
# byte 0: L, length of the hasher name, as an unsigned char
# bytes 1+: the ASCII hasher name, of length L
hasher_name_struct = struct.Struct(b"<B")

# Followed by the bit array
# bytes 0-3: L, length of the bitarray, in bytes, as an unsigned int
# bytes 4+: the bitarray, least significant bit first within each byte
data_length_struct = struct.Struct(b"<I")
