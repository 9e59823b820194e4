import json
import logging
import os
import tempfile
import unittest
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import typer
from typer.testing import CliRunner

from file_hamming.cli.main import (
    EXIT_INVALID_MODE,
    EXIT_IO_ERROR,
    app,
    corrupt,
    corrupt_main,
    decode,
    decode_main,
    encode,
    encode_main,
)
from file_hamming.cli.utils import LogFormatter, get_log_level

runner = CliRunner()


class TestCli(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.root = Path(self._dir.name)
        self.data = b"Hamming(7,4)\x00\x01\xfe\xff\r\n" * 20
        self.source = self.root / "source.bin"
        _ = self.source.write_bytes(self.data)

    def tearDown(self):
        self._dir.cleanup()

    def path(self, name: str) -> str:
        return str(self.root / name)

    def test_encode_corrupt_decode(self):
        result = runner.invoke(app, ["encode", str(self.source), self.path("enc")])
        self.assertEqual(result.exit_code, 0, result.output)

        result = runner.invoke(
            app, ["corrupt", self.path("enc"), self.path("err"), "--seed", "1"]
        )
        self.assertEqual(result.exit_code, 0, result.output)

        result = runner.invoke(app, ["decode", self.path("err"), self.path("dec")])
        self.assertEqual(result.exit_code, 0, result.output)

        self.assertEqual(Path(self.path("dec")).read_bytes(), self.data)

    def test_corrupt_seed_is_reproducible(self):
        _ = runner.invoke(app, ["encode", str(self.source), self.path("enc")])
        for name in ["a", "b"]:
            result = runner.invoke(
                app, ["corrupt", self.path("enc"), self.path(name), "--seed", "99"]
            )
            self.assertEqual(result.exit_code, 0, result.output)

        self.assertEqual(
            Path(self.path("a")).read_bytes(), Path(self.path("b")).read_bytes()
        )

    def test_apply(self):
        result = runner.invoke(
            app, ["apply", "0", str(self.source), self.path("enc"), "--seed", "4"]
        )
        self.assertEqual(result.exit_code, 0, result.output)

        result = runner.invoke(app, ["apply", "decode", self.path("enc"), self.path("dec")])
        self.assertEqual(result.exit_code, 0, result.output)

        self.assertEqual(Path(self.path("dec")).read_bytes(), self.data)

    def test_invalid_mode(self):
        result = runner.invoke(app, ["apply", "3", str(self.source), self.path("out")])
        self.assertEqual(result.exit_code, EXIT_INVALID_MODE)
        self.assertFalse(Path(self.path("out")).exists())

    def test_missing_input(self):
        result = runner.invoke(app, ["decode", self.path("missing"), self.path("out")])
        self.assertEqual(result.exit_code, EXIT_IO_ERROR)
        self.assertFalse(Path(self.path("out")).exists())

    def test_report_and_summary(self):
        result = runner.invoke(
            app,
            [
                "encode",
                str(self.source),
                self.path("enc"),
                "--report",
                self.path("report.json"),
                "--summary",
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("codewords", result.output)

        report = json.loads(Path(self.path("report.json")).read_text())
        self.assertEqual(report["operation"], "encode")
        self.assertEqual(report["input_bytes"], len(self.data))
        self.assertEqual(report["blocks_count"], len(self.data) * 2)

    def test_decode_length(self):
        _ = runner.invoke(app, ["encode", str(self.source), self.path("enc")])
        result = runner.invoke(
            app, ["decode", self.path("enc"), self.path("dec"), "--length", "5"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(Path(self.path("dec")).read_bytes(), self.data[:5])

    def test_unwritable_report(self):
        result = runner.invoke(
            app,
            [
                "encode",
                str(self.source),
                self.path("enc"),
                "--report",
                self.path("nodir/report.json"),
            ],
        )
        self.assertEqual(result.exit_code, EXIT_IO_ERROR)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertFalse(Path(self.path("nodir")).exists())

    def test_apply_decode_ignores_seed(self):
        _ = runner.invoke(app, ["encode", str(self.source), self.path("enc")])
        result = runner.invoke(
            app, ["apply", "1", self.path("enc"), self.path("dec"), "--seed", "3"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(Path(self.path("dec")).read_bytes(), self.data)


def single_command(command: Callable[..., None]) -> typer.Typer:
    """Build the one-command app that `typer.run` creates for `command`."""
    single = typer.Typer()
    _ = single.command()(command)
    return single


class TestSingleCommands(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.root = Path(self._dir.name)
        self.data = bytes(range(64)) * 3
        self.source = self.root / "source.bin"
        _ = self.source.write_bytes(self.data)

    def tearDown(self):
        self._dir.cleanup()

    def test_enc_err_dec(self):
        enc = str(self.root / "enc")
        err = str(self.root / "err")
        dec = str(self.root / "dec")

        result = runner.invoke(single_command(encode), [str(self.source), enc])
        self.assertEqual(result.exit_code, 0, result.output)

        result = runner.invoke(single_command(corrupt), [enc, err, "--seed", "8"])
        self.assertEqual(result.exit_code, 0, result.output)

        result = runner.invoke(
            single_command(decode), [err, dec, "--length", str(len(self.data))]
        )
        self.assertEqual(result.exit_code, 0, result.output)

        self.assertEqual(Path(dec).read_bytes(), self.data)

    def test_missing_input(self):
        result = runner.invoke(
            single_command(decode),
            [str(self.root / "missing"), str(self.root / "out")],
        )
        self.assertEqual(result.exit_code, EXIT_IO_ERROR)

    @patch("file_hamming.cli.main.typer.run")
    @patch("file_hamming.cli.main.setup_logging")
    def test_entry_points(self, setup_logging: MagicMock, run: MagicMock):
        entry_points = [
            (encode_main, encode),
            (corrupt_main, corrupt),
            (decode_main, decode),
        ]
        for entry_point, command in entry_points:
            entry_point()
            run.assert_called_with(command)

        self.assertEqual(setup_logging.call_count, 3)


class TestLogging(unittest.TestCase):
    def test_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_log_level(), (logging.INFO, False))

    def test_debug_is_verbose(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}, clear=True):
            self.assertEqual(get_log_level(), (logging.DEBUG, True))

    def test_verbose_override(self):
        env = {"LOG_LEVEL": "DEBUG", "VERBOSE_LOGS": "0"}
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(get_log_level(), (logging.DEBUG, False))

        env = {"LOG_LEVEL": "warning", "VERBOSE_LOGS": "1"}
        with patch.dict(os.environ, env, clear=True):
            self.assertEqual(get_log_level(), (logging.WARNING, True))

    def test_invalid_level(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "loud"}, clear=True):
            self.assertEqual(get_log_level(), (logging.INFO, False))

    def test_format_keeps_brackets(self):
        record = logging.LogRecord(
            "file_hamming", logging.WARNING, __file__, 1, "bad [x]", None, None
        )
        text = LogFormatter().format(record)
        self.assertIn("Warning", text)
        self.assertIn("bad [x]", text)


if __name__ == "__main__":
    _ = unittest.main()
