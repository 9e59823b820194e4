import logging
from pathlib import Path
from typing import Annotated

import typer

from file_hamming.driver import (
    InvalidModeError,
    Mode,
    apply_file,
    corrupt_file,
    decode_file,
    encode_file,
)
from file_hamming.noise import NoiseSimulator
from file_hamming.report import TransformReport

from .utils import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    no_args_is_help=True,
    help="Protect files with a Hamming(7,4) code, simulate noise and recover them.",
)

EXIT_IO_ERROR = 1
EXIT_INVALID_MODE = 2

InputPath = Annotated[
    Path,
    typer.Argument(help="The file to read.", show_default=False),
]
OutputPath = Annotated[
    Path,
    typer.Argument(
        help="The file to write. Created or overwritten.", show_default=False
    ),
]
ReportPath = Annotated[
    Path | None,
    typer.Option(
        "--report",
        help="Save statistics about the run as json to this path.",
        rich_help_panel="Reporting",
    ),
]
Summary = Annotated[
    bool,
    typer.Option(
        help="Print a summary of the run.",
        rich_help_panel="Reporting",
    ),
]
Seed = Annotated[
    int | None,
    typer.Option(
        min=0,
        help="Seed for the noise generator. Fresh entropy is used by default.",
        rich_help_panel="Noise settings",
    ),
]


def _finish(report: TransformReport, report_path: Path | None, summary: bool) -> None:
    if summary:
        print(report.summary())

    if report_path is None:
        return

    try:
        report.save(report_path)
    except OSError as e:
        logger.error(f"Failed to save the report to `{report_path}`\n-> {e}")
        raise typer.Exit(EXIT_IO_ERROR)


@app.command()
def encode(
    input_path: InputPath,
    output_path: OutputPath,
    report_path: ReportPath = None,
    summary: Summary = False,
):
    """Encode a file, adding 3 parity bits to every 4 data bits."""
    logger.info("Converting to hamming format")

    try:
        report = encode_file(input_path, output_path)
    except OSError as e:
        logger.error(f"Failed to encode `{input_path}`\n-> {e}")
        raise typer.Exit(EXIT_IO_ERROR)

    _finish(report, report_path, summary)


@app.command()
def corrupt(
    input_path: InputPath,
    output_path: OutputPath,
    seed: Seed = None,
    report_path: ReportPath = None,
    summary: Summary = False,
):
    """Flip at most one bit in each codeword of an encoded file."""
    logger.info("Generating errors")

    try:
        report = corrupt_file(input_path, output_path, NoiseSimulator.from_seed(seed))
    except OSError as e:
        logger.error(f"Failed to corrupt `{input_path}`\n-> {e}")
        raise typer.Exit(EXIT_IO_ERROR)

    _finish(report, report_path, summary)


@app.command()
def decode(
    input_path: InputPath,
    output_path: OutputPath,
    length: Annotated[
        int | None,
        typer.Option(
            min=0,
            help="The size of the original file in bytes. The decoded output is cut to this length.",
        ),
    ] = None,
    report_path: ReportPath = None,
    summary: Summary = False,
):
    """Decode an encoded file, correcting single bit errors."""
    logger.info("Correcting errors")

    try:
        report = decode_file(input_path, output_path, length)
    except OSError as e:
        logger.error(f"Failed to decode `{input_path}`\n-> {e}")
        raise typer.Exit(EXIT_IO_ERROR)

    _finish(report, report_path, summary)


@app.command()
def apply(
    mode: Annotated[
        str,
        typer.Argument(
            help="`0`/`encode` to encode with generated errors, `1`/`decode` to recover.",
            show_default=False,
        ),
    ],
    input_path: InputPath,
    output_path: OutputPath,
    seed: Seed = None,
    report_path: ReportPath = None,
    summary: Summary = False,
):
    """Encode with noise or decode, selected by MODE."""
    try:
        selected = Mode.parse(mode)
    except InvalidModeError as e:
        logger.error(f"Invalid parameters\n-> {e}")
        raise typer.Exit(EXIT_INVALID_MODE)

    match selected:
        case Mode.Encode:
            logger.info("Converting file to hamming format")
            noise = NoiseSimulator.from_seed(seed)
        case Mode.Decode:
            logger.info("Recovering file from hamming format")
            noise = None

    try:
        report = apply_file(selected, input_path, output_path, noise)
    except OSError as e:
        logger.error(f"Failed to process `{input_path}`\n-> {e}")
        raise typer.Exit(EXIT_IO_ERROR)

    _finish(report, report_path, summary)


def main():
    setup_logging()
    app()


def encode_main():
    setup_logging()
    typer.run(encode)


def corrupt_main():
    setup_logging()
    typer.run(corrupt)


def decode_main():
    setup_logging()
    typer.run(decode)


if __name__ == "__main__":
    main()
