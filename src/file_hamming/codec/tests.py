import itertools
import unittest

import numpy as np

from file_hamming.bits import bits_to_bytes, bytes_to_bits
from file_hamming.codec import (
    BlockSizeError,
    check_groups,
    decode_bits,
    decode_block,
    decode_codewords,
    encode_bits,
    encode_block,
    encode_nibbles,
    syndrome,
)

ALL_NIBBLES = [list(n) for n in itertools.product([0, 1], repeat=4)]


def flip_position(codeword: np.ndarray, position: int) -> np.ndarray:
    """Flip the bit at the 1-indexed Hamming position."""
    flipped = codeword.copy()
    flipped[7 - position] ^= 1
    return flipped


class TestBlock(unittest.TestCase):
    def test_known_codeword(self):
        # positions 7..1: d0 d1 d2 P4 d3 P2 P1
        self.assertEqual(encode_block([1, 0, 1, 1]).tolist(), [1, 0, 1, 0, 1, 0, 1])
        self.assertEqual(encode_block([0, 1, 0, 0]).tolist(), [0, 1, 0, 1, 0, 1, 0])
        self.assertEqual(encode_block([0, 0, 0, 0]).tolist(), [0] * 7)
        self.assertEqual(encode_block([1, 1, 1, 1]).tolist(), [1] * 7)

    def test_known_correction(self):
        corrupted = flip_position(encode_block([1, 0, 1, 1]), 5)
        self.assertEqual(corrupted.tolist(), [1, 0, 0, 0, 1, 0, 1])

        nibble, corrected = decode_block(corrupted)
        self.assertEqual(nibble.tolist(), [1, 0, 1, 1])
        self.assertTrue(corrected)

    def test_parity_invariant(self):
        for nibble in ALL_NIBBLES:
            codeword = encode_block(nibble)
            for k in range(3):
                parity = 0
                for position in range(1, 8):
                    if position & (1 << k):
                        parity ^= int(codeword[7 - position])
                self.assertEqual(parity, 0, f"check {1 << k} failed for {nibble}")

    def test_passthrough(self):
        for nibble in ALL_NIBBLES:
            decoded, corrected = decode_block(encode_block(nibble))
            self.assertEqual(decoded.tolist(), nibble)
            self.assertFalse(corrected)

    def test_single_flip_correction(self):
        for nibble in ALL_NIBBLES:
            codeword = encode_block(nibble)
            for position in range(1, 8):
                decoded, corrected = decode_block(flip_position(codeword, position))
                self.assertEqual(decoded.tolist(), nibble, f"position {position}")
                self.assertTrue(corrected)

    def test_double_flip_is_miscorrected(self):
        codeword = encode_block([0, 0, 0, 0])
        # P1 and P2 flipped point the syndrome at position 3 (d3).
        corrupted = flip_position(flip_position(codeword, 1), 2)

        decoded, corrected = decode_block(corrupted)
        self.assertEqual(decoded.tolist(), [0, 0, 0, 1])
        self.assertTrue(corrected)

    def test_decode_does_not_modify_input(self):
        corrupted = flip_position(encode_block([1, 1, 0, 0]), 7)
        original = corrupted.copy()
        _ = decode_block(corrupted)
        self.assertEqual(corrupted.tolist(), original.tolist())

    def test_block_size(self):
        with self.assertRaises(BlockSizeError):
            _ = encode_block([1, 0, 1])
        with self.assertRaises(BlockSizeError):
            _ = decode_block([1, 0, 1, 1, 0, 0, 1, 0])
        with self.assertRaises(ValueError):
            _ = encode_block([0, 2, 0, 0])


class TestBatch(unittest.TestCase):
    def test_matches_block(self):
        codewords = encode_nibbles(ALL_NIBBLES)
        self.assertEqual(codewords.shape, (16, 7))

        for nibble, codeword in zip(ALL_NIBBLES, codewords, strict=True):
            self.assertEqual(codeword.tolist(), encode_block(nibble).tolist())

        self.assertEqual(syndrome(codewords).tolist(), [0] * 16)

    def test_syndrome_points_at_flip(self):
        codewords = np.repeat(encode_nibbles([[1, 0, 0, 1]]), 7, axis=0)
        for i in range(7):
            codewords[i, i] ^= 1

        self.assertEqual(syndrome(codewords).tolist(), [7, 6, 5, 4, 3, 2, 1])

    def test_decode_mask(self):
        codewords = encode_nibbles(ALL_NIBBLES[:4])
        codewords[1, 3] ^= 1
        codewords[3, 0] ^= 1

        nibbles, corrected = decode_codewords(codewords)
        self.assertEqual(nibbles.tolist(), ALL_NIBBLES[:4])
        self.assertEqual(corrected.tolist(), [False, True, False, True])

    def test_empty(self):
        self.assertEqual(encode_nibbles(np.zeros((0, 4))).shape, (0, 7))
        nibbles, corrected = decode_codewords(np.zeros((0, 7)))
        self.assertEqual(nibbles.shape, (0, 4))
        self.assertEqual(len(corrected), 0)

    def test_check_groups(self):
        groups = [[1, 0, 1, 1], [0, 0, 0, 1]]
        checked = check_groups(groups, 4)
        self.assertEqual(checked.dtype, np.uint8)
        self.assertEqual(checked.tolist(), groups)

        # A copy, so callers can flip bits in place.
        checked[0, 0] ^= 1
        self.assertEqual(groups[0][0], 1)

        with self.assertRaises(BlockSizeError):
            _ = check_groups(groups, 7)
        with self.assertRaises(ValueError):
            _ = check_groups([[0, 3, 0, 0]], 4)

    def test_wrong_shape(self):
        with self.assertRaises(BlockSizeError):
            _ = encode_nibbles([1, 0, 1, 1])
        with self.assertRaises(BlockSizeError):
            _ = decode_codewords([[1, 0, 1, 1]])


class TestStream(unittest.TestCase):
    def test_byte_boundary(self):
        bits = bytes_to_bits(b"\xb4")
        encoded = encode_bits(bits)
        self.assertEqual(
            encoded.tolist(),
            [1, 0, 1, 0, 1, 0, 1] + [0, 1, 0, 1, 0, 1, 0],
        )

        result = decode_bits(encoded)
        self.assertEqual(bits_to_bytes(result.bits), b"\xb4")
        self.assertEqual(result.corrected_blocks, [])
        self.assertEqual(result.dropped_bits, 0)

    def test_encode_drops_partial_nibble(self):
        encoded = encode_bits([1, 0, 1, 1, 0, 1])
        self.assertEqual(encoded.tolist(), [1, 0, 1, 0, 1, 0, 1])

    def test_decode_drops_partial_codeword(self):
        encoded = encode_bits([1, 0, 1, 1, 0, 1, 0, 0])
        padded = np.concatenate([encoded, [0, 0]])

        result = decode_bits(padded)
        self.assertEqual(result.bits.tolist(), [1, 0, 1, 1, 0, 1, 0, 0])
        self.assertEqual(result.dropped_bits, 2)

    def test_corrected_blocks(self):
        encoded = encode_bits(bytes_to_bits(b"ham"))
        encoded[7 * 2 + 4] ^= 1
        encoded[7 * 5] ^= 1

        result = decode_bits(encoded)
        self.assertEqual(bits_to_bytes(result.bits), b"ham")
        self.assertEqual(result.corrected_blocks, [2, 5])


if __name__ == "__main__":
    _ = unittest.main()
