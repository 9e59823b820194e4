"Hamming(7,4) error correction for whole files"

from file_hamming.codec import (
    BlockSizeError,
    decode_block,
    encode_block,
)
from file_hamming.driver import (
    InvalidModeError,
    Mode,
    apply_file,
    corrupt_bytes,
    corrupt_file,
    decode_bytes,
    decode_file,
    encode_bytes,
    encode_file,
)
from file_hamming.noise import NoiseSimulator
from file_hamming.report import Operation, TransformReport

__all__ = [
    "BlockSizeError",
    "InvalidModeError",
    "Mode",
    "NoiseSimulator",
    "Operation",
    "TransformReport",
    "apply_file",
    "corrupt_bytes",
    "corrupt_file",
    "decode_block",
    "decode_bytes",
    "decode_file",
    "encode_block",
    "encode_bytes",
    "encode_file",
]
