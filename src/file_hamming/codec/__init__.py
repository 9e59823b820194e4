"""Hamming(7,4) encoding and decoding.

Every 4 data bits `(d0, d1, d2, d3)` are stored in a 7 bit codeword with the
data at positions 7, 6, 5 and 3 and the parity bits at positions 4, 2 and 1.
Codewords are always ordered by position from 7 down to 1, which is also the
order in which they are written to an encoded stream.

A single flipped bit per codeword is corrected. Multiple flips in the same
codeword are neither corrected nor detected.
"""

from ._core import (
    CODEWORD_BITS,
    DATA_BITS,
    BlockSizeError,
    DecodeResult,
    check_groups,
    decode_bits,
    decode_block,
    decode_codewords,
    encode_bits,
    encode_block,
    encode_nibbles,
    syndrome,
)

__all__ = [
    "CODEWORD_BITS",
    "DATA_BITS",
    "BlockSizeError",
    "DecodeResult",
    "check_groups",
    "decode_bits",
    "decode_block",
    "decode_codewords",
    "encode_bits",
    "encode_block",
    "encode_nibbles",
    "syndrome",
]
