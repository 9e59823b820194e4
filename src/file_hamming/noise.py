"""Channel noise for encoded codewords.

Every codeword independently has a 1 in 7 chance of getting exactly one of
its bits flipped. The bit to flip is chosen uniformly from all 7 positions,
parity bits included.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from file_hamming.bits import BitArray
from file_hamming.codec import CODEWORD_BITS, check_groups

logger = logging.getLogger(__name__)

# The draw out of [0, 6] that triggers a flip.
DEFAULT_SENTINEL = 4


@dataclass
class NoiseSimulator:
    """Injects at most one bit flip into each codeword.

    The random number generator is owned by the simulator so that a fixed
    seed reproduces the same corruption.
    """

    rng: np.random.Generator
    sentinel: int = DEFAULT_SENTINEL

    def __post_init__(self) -> None:
        if not (0 <= self.sentinel < CODEWORD_BITS):
            raise ValueError(
                f"The sentinel must be within 0 and {CODEWORD_BITS - 1}, got {self.sentinel}"
            )

    @classmethod
    def from_seed(cls, seed: int | None = None) -> NoiseSimulator:
        """Create a simulator with a fresh generator.

        A `None` seed draws fresh entropy from the operating system.
        """
        return cls(np.random.default_rng(seed))

    def corrupt_codewords(
        self, codewords: npt.ArrayLike
    ) -> tuple[BitArray, npt.NDArray[np.intp]]:
        """Corrupt the rows of a (n, 7) codeword array.

        The input is not modified.

        Returns:
            The corrupted codewords and the flipped index of every codeword,
            -1 where the codeword was left untouched.
        """
        c = check_groups(codewords, CODEWORD_BITS)
        count = c.shape[0]

        events = self.rng.integers(0, CODEWORD_BITS, size=count) == self.sentinel
        rows = np.flatnonzero(events)
        positions = self.rng.integers(0, CODEWORD_BITS, size=len(rows))

        c[rows, positions] ^= 1

        flips = np.full(count, -1, dtype=np.intp)
        flips[rows] = positions

        logger.debug(f"Flipped bits in {len(rows)}/{count} codewords")

        return c, flips

    def corrupt_bits(self, bits: npt.ArrayLike) -> tuple[BitArray, npt.NDArray[np.intp]]:
        """Corrupt a stream of concatenated codewords.

        Trailing bits which don't fill a whole codeword are copied unchanged.
        """
        b = np.asarray(bits, dtype=np.uint8).reshape(-1)
        aligned = (len(b) // CODEWORD_BITS) * CODEWORD_BITS

        corrupted, flips = self.corrupt_codewords(b[:aligned].reshape(-1, CODEWORD_BITS))

        return np.concatenate([corrupted.reshape(-1), b[aligned:]]), flips
