"""Whole-file Hamming(7,4) operations.

Each operation reads the complete input into memory, transforms it in one
pass and returns the output together with a `TransformReport`. The `*_file`
variants read from and write to paths.

The encoded format has no length header. Encoding pads the codeword stream
with zero bits to fill the last byte. For byte aligned input the padding is
always shorter than a codeword and never reaches a whole decoded byte, so the
original length comes back on its own. Other producers may need the original
length passed to `decode_bytes`.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path

import numpy as np

from file_hamming.bits import BITS_PER_BYTE, bits_to_bytes, bytes_to_bits
from file_hamming.codec import CODEWORD_BITS, DATA_BITS, decode_bits, encode_bits
from file_hamming.noise import NoiseSimulator
from file_hamming.report import Operation, TransformReport

logger = logging.getLogger(__name__)


class InvalidModeError(ValueError):
    """An unrecognized mode selector."""


class Mode(enum.Enum):
    """The modes of the combined `apply_file` entry point."""

    Encode = enum.auto()
    Decode = enum.auto()

    @classmethod
    def parse(cls, text: str) -> Mode:
        """Parse a mode selector: `0`/`encode` or `1`/`decode`.

        Raises:
            InvalidModeError:
                For anything else.
        """
        match text.strip().lower():
            case "0" | "encode":
                return Mode.Encode
            case "1" | "decode":
                return Mode.Decode
            case _:
                raise InvalidModeError(
                    f"Invalid mode `{text}`, expected one of: 0, encode, 1, decode"
                )


def read_bytes(path: Path) -> bytes:
    """Read a whole file as raw bytes."""
    logger.debug(f'Reading "{path}"')
    with open(path, "rb") as f:
        return f.read()


def write_bytes(path: Path, data: bytes) -> None:
    """Create or truncate the file at `path` and write `data` to it.

    A partially written file is removed if writing fails.
    """
    logger.debug(f'Writing {len(data)} bytes to "{path}"')
    f = open(path, "wb")
    try:
        with f:
            _ = f.write(data)
    except OSError:
        path.unlink(missing_ok=True)
        raise


def encode_bytes(
    data: bytes, noise: NoiseSimulator | None = None
) -> tuple[bytes, TransformReport]:
    """Encode `data`, optionally passing the codewords through `noise`.

    The output is padded with zero bits to a whole number of bytes.
    """
    encoded = encode_bits(bytes_to_bits(data))
    blocks_count = len(encoded) // CODEWORD_BITS

    flipped: dict[int, int] = {}
    if noise is not None:
        encoded, flips = noise.corrupt_bits(encoded)
        flipped = _flips_to_dict(flips)

    output = bits_to_bytes(encoded, pad=True)

    logger.debug(f"Padded {len(output) * BITS_PER_BYTE - len(encoded)} bits")

    return output, TransformReport(
        operation=Operation.Encode if noise is None else Operation.EncodeWithNoise,
        input_bytes=len(data),
        output_bytes=len(output),
        blocks_count=blocks_count,
        flipped_positions=flipped,
    )


def corrupt_bytes(
    data: bytes, noise: NoiseSimulator
) -> tuple[bytes, TransformReport]:
    """Inject noise into already encoded `data`.

    Only whole codewords are corrupted. The trailing padding bits are
    carried over unchanged so the output has as many bytes as the input.
    """
    bits = bytes_to_bits(data)
    corrupted, flips = noise.corrupt_bits(bits)
    output = bits_to_bytes(corrupted)

    return output, TransformReport(
        operation=Operation.Corrupt,
        input_bytes=len(data),
        output_bytes=len(output),
        blocks_count=len(flips),
        flipped_positions=_flips_to_dict(flips),
    )


def decode_bytes(
    data: bytes, length: int | None = None
) -> tuple[bytes, TransformReport]:
    """Decode `data`, correcting up to one flipped bit per codeword.

    Args:
        length: The number of bytes in the original data. Decoded bytes past
            this length are discarded.
    """
    if length is not None and length < 0:
        raise ValueError(f"The length must be non-negative, got {length}")

    result = decode_bits(bytes_to_bits(data))

    partial = len(result.bits) % BITS_PER_BYTE
    if partial != 0:
        logger.warning(
            f"The decoded data ends with {partial} bits that don't fill a byte, dropping them"
        )

    output = bits_to_bytes(result.bits)

    if length is not None:
        if length > len(output):
            logger.warning(
                f"Expected {length} bytes but only {len(output)} could be decoded"
            )
        output = output[:length]

    return output, TransformReport(
        operation=Operation.Decode,
        input_bytes=len(data),
        output_bytes=len(output),
        blocks_count=len(result.bits) // DATA_BITS,
        corrected_blocks=result.corrected_blocks,
        dropped_bits=result.dropped_bits + partial,
    )


def encode_file(input_path: Path, output_path: Path) -> TransformReport:
    """Encode the file at `input_path` into `output_path`."""
    output, report = encode_bytes(read_bytes(input_path))
    write_bytes(output_path, output)
    return report


def corrupt_file(
    input_path: Path, output_path: Path, noise: NoiseSimulator
) -> TransformReport:
    """Inject noise into the encoded file at `input_path`."""
    output, report = corrupt_bytes(read_bytes(input_path), noise)
    write_bytes(output_path, output)
    return report


def decode_file(
    input_path: Path, output_path: Path, length: int | None = None
) -> TransformReport:
    """Decode the encoded file at `input_path` into `output_path`."""
    output, report = decode_bytes(read_bytes(input_path), length)
    write_bytes(output_path, output)
    return report


def apply_file(
    mode: Mode,
    input_path: Path,
    output_path: Path,
    noise: NoiseSimulator | None = None,
) -> TransformReport:
    """Run the combined entry point.

    `Mode.Encode` encodes and injects noise in the same pass, `Mode.Decode`
    recovers the original data and ignores `noise`. Without `noise` encoding
    uses a simulator seeded from fresh entropy.
    """
    match mode:
        case Mode.Encode:
            if noise is None:
                noise = NoiseSimulator.from_seed()
            output, report = encode_bytes(read_bytes(input_path), noise)
        case Mode.Decode:
            output, report = decode_bytes(read_bytes(input_path))

    write_bytes(output_path, output)
    return report


def _flips_to_dict(flips: np.ndarray) -> dict[int, int]:
    rows = np.flatnonzero(flips >= 0)
    return {int(row): int(flips[row]) for row in rows}
