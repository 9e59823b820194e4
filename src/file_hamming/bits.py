"""Conversion between byte strings and bit arrays.

Bits are stored as 1-dimensional `uint8` arrays with one bit per element,
most significant bit of every byte first.
"""

import logging
from typing import TypeAlias

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

BITS_PER_BYTE = 8

BitArray: TypeAlias = npt.NDArray[np.uint8]


def bytes_to_bits(data: bytes) -> BitArray:
    """Unpack `data` into a bit array, MSB first."""
    return np.unpackbits(np.frombuffer(data, dtype=np.uint8))


def bits_to_bytes(bits: npt.ArrayLike, pad: bool = False) -> bytes:
    """Pack a bit array into bytes.

    With `pad` the bits are completed with zeros up to the next multiple of 8.
    Otherwise a trailing partial byte is dropped.
    """
    b = np.asarray(bits, dtype=np.uint8).reshape(-1)

    remainder = len(b) % BITS_PER_BYTE
    if remainder != 0 and not pad:
        logger.debug(f"Dropping {remainder} bits that don't fill a whole byte")
        b = b[: len(b) - remainder]

    # NOTE: packbits fills the last byte with zeros.
    return np.packbits(b).tobytes()


def split_groups(bits: npt.ArrayLike, size: int) -> tuple[BitArray, BitArray]:
    """Partition `bits` into consecutive groups of `size` bits.

    Returns:
        A 2 dimensional array with one group per row and the trailing bits
        that didn't fill a whole group.
    """
    if size < 1:
        raise ValueError(f"Group size must be positive, got {size}")

    b = np.asarray(bits, dtype=np.uint8).reshape(-1)
    aligned = (len(b) // size) * size

    return b[:aligned].reshape(-1, size), b[aligned:]
