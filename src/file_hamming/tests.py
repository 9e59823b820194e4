import tempfile
import unittest
from collections import deque
from pathlib import Path

import numpy as np

from file_hamming import (
    InvalidModeError,
    Mode,
    NoiseSimulator,
    Operation,
    TransformReport,
    apply_file,
    corrupt_bytes,
    corrupt_file,
    decode_bytes,
    decode_file,
    encode_bytes,
    encode_file,
)
from file_hamming.bits import bits_to_bytes, bytes_to_bits, split_groups
from file_hamming.codec import encode_nibbles
from file_hamming.driver import read_bytes, write_bytes


class ScriptedGenerator:
    """Stands in for `numpy.random.Generator`, returning scripted draws."""

    def __init__(self, *draws: list[int]) -> None:
        self.draws = deque(draws)

    def integers(self, low: int, high: int, size: int) -> np.ndarray:
        values = self.draws.popleft()
        assert len(values) == size, f"expected {size} draws, scripted {len(values)}"
        assert all(low <= v < high for v in values)
        return np.array(values, dtype=np.int64)


def scripted(*draws: list[int]) -> NoiseSimulator:
    return NoiseSimulator(ScriptedGenerator(*draws))  # pyright: ignore[reportArgumentType]


class TestBits(unittest.TestCase):
    def test_msb_first(self):
        self.assertEqual(bytes_to_bits(b"\xb4").tolist(), [1, 0, 1, 1, 0, 1, 0, 0])
        self.assertEqual(bytes_to_bits(b"").tolist(), [])

    def test_pack(self):
        self.assertEqual(bits_to_bytes([1, 0, 1, 1, 0, 1, 0, 0]), b"\xb4")
        self.assertEqual(bits_to_bytes([1, 0, 1], pad=True), b"\xa0")
        self.assertEqual(bits_to_bytes([1, 0, 1]), b"")
        self.assertEqual(bits_to_bytes([0] * 8 + [1], pad=False), b"\x00")

    def test_binary_safe(self):
        data = bytes(range(256)) + b"\r\n\n\r"
        self.assertEqual(bits_to_bytes(bytes_to_bits(data)), data)

    def test_split_groups(self):
        groups, rest = split_groups([1, 1, 0, 0, 1, 0, 1, 1, 1], 4)
        self.assertEqual(groups.tolist(), [[1, 1, 0, 0], [1, 0, 1, 1]])
        self.assertEqual(rest.tolist(), [1])

        with self.assertRaises(ValueError):
            _ = split_groups([1], 0)


class TestNoise(unittest.TestCase):
    def test_no_corruption(self):
        codewords = encode_nibbles([[1, 0, 1, 1], [0, 1, 0, 0]])
        corrupted, flips = scripted([0, 6], []).corrupt_codewords(codewords)

        self.assertEqual(corrupted.tolist(), codewords.tolist())
        self.assertEqual(flips.tolist(), [-1, -1])

    def test_forced_flip(self):
        codewords = encode_nibbles([[1, 0, 1, 1], [0, 1, 0, 0], [1, 1, 1, 1]])
        corrupted, flips = scripted([4, 0, 4], [2, 6]).corrupt_codewords(codewords)

        expected = codewords.copy()
        expected[0, 2] ^= 1
        expected[2, 6] ^= 1
        self.assertEqual(corrupted.tolist(), expected.tolist())
        self.assertEqual(flips.tolist(), [2, -1, 6])

        # The input is left alone.
        self.assertEqual(codewords[0].tolist(), [1, 0, 1, 0, 1, 0, 1])

    def test_custom_sentinel(self):
        codewords = encode_nibbles([[0, 0, 0, 0]])
        noise = NoiseSimulator(ScriptedGenerator([0], [3]), sentinel=0)  # pyright: ignore[reportArgumentType]
        corrupted, _ = noise.corrupt_codewords(codewords)
        self.assertEqual(corrupted.tolist(), [[0, 0, 0, 1, 0, 0, 0]])

        with self.assertRaises(ValueError):
            _ = NoiseSimulator(np.random.default_rng(0), sentinel=7)

    def test_trailing_bits_untouched(self):
        bits = np.concatenate([encode_nibbles([[1, 1, 0, 0]]).reshape(-1), [1, 0]])
        corrupted, flips = scripted([4], [0]).corrupt_bits(bits)

        self.assertEqual(corrupted.tolist(), [0, 1, 0, 0, 0, 0, 1, 1, 0])
        self.assertEqual(flips.tolist(), [0])

    def test_seeded(self):
        codewords = np.zeros((1000, 7), dtype=np.uint8)
        a, _ = NoiseSimulator.from_seed(42).corrupt_codewords(codewords)
        b, _ = NoiseSimulator.from_seed(42).corrupt_codewords(codewords)
        self.assertEqual(a.tolist(), b.tolist())

    def test_rate(self):
        trials = 100_000
        codewords = encode_nibbles(np.random.default_rng(7).integers(0, 2, (trials, 4)))
        corrupted, flips = NoiseSimulator.from_seed(2016).corrupt_codewords(codewords)

        flipped_bits = (corrupted != codewords).sum(axis=1)
        self.assertLessEqual(int(flipped_bits.max()), 1)
        self.assertEqual((flipped_bits == 1).tolist(), (flips >= 0).tolist())

        rate = float((flipped_bits == 1).mean())
        self.assertAlmostEqual(rate, 1 / 7, delta=0.01)

        # Every index of the codeword gets hit.
        self.assertEqual(set(flips[flips >= 0].tolist()), set(range(7)))


class TestDriver(unittest.TestCase):
    def test_round_trip(self):
        rng = np.random.default_rng(0)
        for length in [0, 1, 2, 3, 4, 7, 8, 100, 1001]:
            data = rng.integers(0, 256, length, dtype=np.uint8).tobytes()
            encoded, report = encode_bytes(data)

            self.assertEqual(len(encoded), (length * 14 + 7) // 8)
            self.assertEqual(report.blocks_count, length * 2)

            decoded, report = decode_bytes(encoded)
            self.assertEqual(decoded, data)
            self.assertEqual(report.corrected_blocks, [])

    def test_noisy_round_trip(self):
        data = bytes(range(256)) * 4
        encoded, _ = encode_bytes(data)
        corrupted, corrupt_report = corrupt_bytes(encoded, NoiseSimulator.from_seed(3))

        self.assertEqual(len(corrupted), len(encoded))
        self.assertNotEqual(corrupted, encoded)
        self.assertEqual(corrupt_report.operation, Operation.Corrupt)

        decoded, decode_report = decode_bytes(corrupted)
        self.assertEqual(decoded, data)
        self.assertEqual(
            decode_report.corrected_blocks,
            sorted(corrupt_report.flipped_positions.keys()),
        )

    def test_encode_with_noise(self):
        data = b"The quick brown fox jumps over the lazy dog"
        encoded, report = encode_bytes(data, NoiseSimulator.from_seed(11))
        self.assertEqual(report.operation, Operation.EncodeWithNoise)
        self.assertGreater(len(report.flipped_positions), 0)

        decoded, _ = decode_bytes(encoded)
        self.assertEqual(decoded, data)

    def test_decode_length(self):
        encoded, _ = encode_bytes(b"abc")

        decoded, report = decode_bytes(encoded, length=2)
        self.assertEqual(decoded, b"ab")
        self.assertEqual(report.output_bytes, 2)

        decoded, _ = decode_bytes(encoded, length=10)
        self.assertEqual(decoded, b"abc")

        with self.assertRaises(ValueError):
            _ = decode_bytes(encoded, length=-1)

    def test_decode_unaligned(self):
        # 3 bytes hold 3 codewords (12 bits), the last 4 bits don't fill a byte.
        with self.assertLogs("file_hamming.driver", "WARNING") as logs:
            decoded, report = decode_bytes(b"\x00\x00\x00")
        self.assertIn("4 bits that don't fill a byte", logs.output[0])

        self.assertEqual(decoded, b"\x00")
        self.assertEqual(report.blocks_count, 3)
        self.assertEqual(report.dropped_bits, 3 + 4)

    def test_mode(self):
        self.assertEqual(Mode.parse("0"), Mode.Encode)
        self.assertEqual(Mode.parse("encode"), Mode.Encode)
        self.assertEqual(Mode.parse("1"), Mode.Decode)
        self.assertEqual(Mode.parse(" Decode "), Mode.Decode)

        with self.assertRaises(InvalidModeError):
            _ = Mode.parse("2")


class TestFiles(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.root = Path(self._dir.name)
        self.data = bytes(range(256)) + b"line\r\nline\n"
        self.source = self.root / "source.bin"
        _ = self.source.write_bytes(self.data)

    def tearDown(self):
        self._dir.cleanup()

    def test_encode_corrupt_decode(self):
        encoded = self.root / "encoded.ham"
        noisy = self.root / "noisy.ham"
        restored = self.root / "restored.bin"

        report = encode_file(self.source, encoded)
        self.assertEqual(report.output_bytes, encoded.stat().st_size)

        _ = corrupt_file(encoded, noisy, NoiseSimulator.from_seed(5))
        self.assertEqual(noisy.stat().st_size, encoded.stat().st_size)

        _ = decode_file(noisy, restored, length=len(self.data))
        self.assertEqual(restored.read_bytes(), self.data)

    def test_apply(self):
        encoded = self.root / "encoded.ham"
        restored = self.root / "restored.bin"

        report = apply_file(
            Mode.Encode, self.source, encoded, NoiseSimulator.from_seed(9)
        )
        self.assertEqual(report.operation, Operation.EncodeWithNoise)

        report = apply_file(
            Mode.Decode, encoded, restored, NoiseSimulator.from_seed(9)
        )
        self.assertEqual(report.operation, Operation.Decode)
        self.assertEqual(restored.read_bytes(), self.data)

    def test_apply_without_noise(self):
        encoded = self.root / "encoded.ham"
        restored = self.root / "restored.bin"

        report = apply_file(Mode.Encode, self.source, encoded)
        self.assertEqual(report.operation, Operation.EncodeWithNoise)

        report = apply_file(Mode.Decode, encoded, restored)
        self.assertEqual(report.flipped_positions, {})
        self.assertEqual(restored.read_bytes(), self.data)

    def test_missing_input(self):
        output = self.root / "out.ham"
        with self.assertRaises(OSError):
            _ = encode_file(self.root / "missing.bin", output)
        self.assertFalse(output.exists())

    def test_unwritable_output(self):
        output = self.root / "missing-dir" / "out.ham"
        with self.assertRaises(OSError):
            write_bytes(output, b"data")
        self.assertFalse(output.exists())

    def test_read_write(self):
        path = self.root / "raw.bin"
        write_bytes(path, b"\x00\r\n\xff")
        self.assertEqual(read_bytes(path), b"\x00\r\n\xff")

        write_bytes(path, b"x")
        self.assertEqual(read_bytes(path), b"x")


class TestReport(unittest.TestCase):
    def report(self) -> TransformReport:
        return TransformReport(
            operation=Operation.Corrupt,
            input_bytes=14,
            output_bytes=14,
            blocks_count=16,
            flipped_positions={1: 3, 4: 3, 9: 0},
        )

    def test_summary(self):
        summary = self.report().summary()
        self.assertEqual(summary.flipped_count, 3)
        self.assertAlmostEqual(summary.corruption_rate(), 3 / 16)

        text = str(summary)
        self.assertIn("corrupt: 14 -> 14 bytes", text)
        self.assertIn("Flipped bits in 3 codewords", text)
        self.assertNotIn("Corrected", text)

    def test_decode_summary(self):
        report = TransformReport(
            operation=Operation.Decode,
            input_bytes=14,
            output_bytes=8,
            blocks_count=16,
            corrected_blocks=[1, 4],
            dropped_bits=0,
        )
        self.assertIn("Corrected 2 codewords (12.50%)", str(report.summary()))

    def test_flips_per_position(self):
        self.assertEqual(self.report().flips_per_position(), {3: 2, 0: 1})

    def test_save_load(self):
        with tempfile.TemporaryDirectory() as root:
            path = Path(root) / "report.json"
            report = self.report()
            report.save(path)

            self.assertEqual(TransformReport.load(path), report)


if __name__ == "__main__":
    _ = unittest.main()
