from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from file_hamming.bits import BitArray, split_groups

logger = logging.getLogger(__name__)

DATA_BITS = 4
CODEWORD_BITS = 7

# Hamming position held by each array index of a codeword.
CODEWORD_POSITIONS = np.array([7, 6, 5, 4, 3, 2, 1], dtype=np.uint8)

# Array indices of the data positions 7, 6, 5, 3 in stream order.
DATA_INDICES = [0, 1, 2, 4]

# Array indices of the parity positions 4, 2, 1.
P4_INDEX = 3
P2_INDEX = 5
P1_INDEX = 6


class BlockSizeError(ValueError):
    """A group of bits didn't have the size required by the code."""


@dataclass
class DecodeResult:
    """The output of `decode_bits`."""

    bits: BitArray
    # Indices of the codewords which had a bit flipped back.
    corrected_blocks: list[int] = field(default_factory=list)
    # Trailing bits which didn't fill a whole codeword.
    dropped_bits: int = 0


def check_groups(groups: npt.ArrayLike, size: int) -> BitArray:
    """Copy `groups` into a (n, `size`) bit array.

    Raises:
        BlockSizeError:
            If `groups` isn't 2 dimensional with `size` columns.
        ValueError:
            If any value isn't 0 or 1.
    """
    g = np.array(groups, dtype=np.uint8)

    if g.ndim != 2 or g.shape[1] != size:
        raise BlockSizeError(f"Expected groups of {size} bits, got shape {g.shape}")

    if np.any(g > 1):
        raise ValueError("Bit values must be 0 or 1")

    return g


def syndrome(codewords: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Compute the syndrome of every codeword (row) of a 2 dimensional array.

    Bit k of the syndrome is the parity of all set bits whose position has
    bit k set, which is the same as XOR-ing the positions of all set bits.
    A syndrome of 0 means that all parity checks pass, anything else is the
    position of a single flipped bit.
    """
    c = check_groups(codewords, CODEWORD_BITS)
    return np.bitwise_xor.reduce(c * CODEWORD_POSITIONS, axis=1).astype(np.uint8)


def encode_nibbles(nibbles: npt.ArrayLike) -> BitArray:
    """Encode every row of a (n, 4) array into a row of a (n, 7) array.

    The data bits are placed at positions 7, 6, 5, 3 and the parity bits are
    chosen so that every parity check has even parity.
    """
    d = check_groups(nibbles, DATA_BITS)

    codewords = np.zeros((d.shape[0], CODEWORD_BITS), dtype=np.uint8)
    codewords[:, DATA_INDICES] = d

    # With all parity bits still 0 the syndrome is the parity of each check
    # over the data bits alone.
    s = syndrome(codewords)
    codewords[:, P4_INDEX] = (s >> 2) & 1
    codewords[:, P2_INDEX] = (s >> 1) & 1
    codewords[:, P1_INDEX] = s & 1

    return codewords


def decode_codewords(
    codewords: npt.ArrayLike,
) -> tuple[BitArray, npt.NDArray[np.bool_]]:
    """Correct and decode every row of a (n, 7) array.

    Returns:
        A (n, 4) array of data bits and a mask of the rows which were
        corrected.

    Only single bit errors are corrected. Two or more flips in one codeword
    produce a wrong nibble without any indication.
    """
    c = check_groups(codewords, CODEWORD_BITS)

    s = syndrome(c)
    corrected = s != 0

    rows = np.flatnonzero(corrected)
    c[rows, CODEWORD_BITS - s[rows].astype(np.intp)] ^= 1

    return c[:, DATA_INDICES], corrected


def encode_block(bits: npt.ArrayLike) -> BitArray:
    """Encode 4 data bits `(d0, d1, d2, d3)` into a 7 bit codeword.

    The codeword is ordered by position from 7 down to 1.
    """
    b = np.asarray(bits, dtype=np.uint8)
    if b.shape != (DATA_BITS,):
        raise BlockSizeError(f"Expected {DATA_BITS} bits, got shape {b.shape}")

    return encode_nibbles(b.reshape(1, DATA_BITS))[0]


def decode_block(codeword: npt.ArrayLike) -> tuple[BitArray, bool]:
    """Decode a 7 bit codeword, correcting a single flipped bit.

    Returns:
        The 4 data bits and whether a bit had to be corrected.
    """
    c = np.asarray(codeword, dtype=np.uint8)
    if c.shape != (CODEWORD_BITS,):
        raise BlockSizeError(f"Expected {CODEWORD_BITS} bits, got shape {c.shape}")

    nibbles, corrected = decode_codewords(c.reshape(1, CODEWORD_BITS))
    return nibbles[0], bool(corrected[0])


def encode_bits(bits: npt.ArrayLike) -> BitArray:
    """Encode a bit stream 4 bits at a time.

    Trailing bits which don't fill a whole nibble are dropped. This never
    happens for byte aligned input.
    """
    nibbles, rest = split_groups(bits, DATA_BITS)
    if len(rest) > 0:
        logger.debug(f"Dropping {len(rest)} trailing bits that don't fill a nibble")

    return encode_nibbles(nibbles).reshape(-1)


def decode_bits(bits: npt.ArrayLike) -> DecodeResult:
    """Decode a bit stream 7 bits at a time.

    Trailing bits which don't fill a whole codeword are dropped, these are
    expected to be the zero padding added after encoding.
    """
    codewords, rest = split_groups(bits, CODEWORD_BITS)
    if len(rest) > 0:
        logger.debug(f"Dropping {len(rest)} trailing bits that don't fill a codeword")

    nibbles, corrected = decode_codewords(codewords)

    return DecodeResult(
        bits=nibbles.reshape(-1),
        corrected_blocks=np.flatnonzero(corrected).tolist(),
        dropped_bits=len(rest),
    )
