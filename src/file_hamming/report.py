from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing_extensions import override

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Operation(enum.StrEnum):
    """The transforms recorded by a `TransformReport`."""

    Encode = "encode"
    Corrupt = "corrupt"
    EncodeWithNoise = "encode-with-noise"
    Decode = "decode"


class TransformReport(BaseModel):
    """Statistics about a single run of one of the stream operations."""

    operation: Operation
    input_bytes: int
    output_bytes: int
    # Number of codewords written, corrupted or read.
    blocks_count: int
    # Codewords which the decoder had to correct.
    corrected_blocks: list[int] = []
    # Codeword index: flipped bit index within the codeword.
    flipped_positions: dict[int, int] = {}
    # Bits which didn't fill a whole group.
    dropped_bits: int = 0

    @dataclass
    class Summary:
        operation: Operation
        input_bytes: int
        output_bytes: int
        blocks_count: int
        corrected_count: int
        flipped_count: int
        dropped_bits: int

        @override
        def __str__(self) -> str:
            lines = [
                f"{self.operation.value}: {self.input_bytes} -> {self.output_bytes} bytes",
                f"{self.blocks_count} codewords",
            ]

            if self.flipped_count > 0:
                lines.append(
                    f"Flipped bits in {self.flipped_count} codewords "
                    f"({self.corruption_rate():.2%})"
                )

            if self.operation == Operation.Decode:
                lines.append(
                    f"Corrected {self.corrected_count} codewords "
                    f"({self.correction_rate():.2%})"
                )

            if self.dropped_bits > 0:
                lines.append(f"Dropped {self.dropped_bits} trailing bits")

            return "\n".join(lines)

        def corruption_rate(self) -> float:
            """The fraction of codewords with a flipped bit."""
            if self.blocks_count == 0:
                return 0.0
            return self.flipped_count / self.blocks_count

        def correction_rate(self) -> float:
            """The fraction of codewords that needed a correction."""
            if self.blocks_count == 0:
                return 0.0
            return self.corrected_count / self.blocks_count

    def summary(self) -> TransformReport.Summary:
        return TransformReport.Summary(
            operation=self.operation,
            input_bytes=self.input_bytes,
            output_bytes=self.output_bytes,
            blocks_count=self.blocks_count,
            corrected_count=len(self.corrected_blocks),
            flipped_count=len(self.flipped_positions),
            dropped_bits=self.dropped_bits,
        )

    def flips_per_position(self) -> dict[int, int]:
        """Get the number of flips for each bit index of a codeword.

        The keys map to the bit index and the values to the number of flips.
        """
        index_map: dict[int, int] = dict()

        for index in self.flipped_positions.values():
            index_map[index] = 1 + index_map.get(index, 0)

        return index_map

    def save(self, report_path: Path) -> None:
        """Save the report as json to `report_path`."""
        path = report_path.expanduser()

        if path.exists():
            logger.info(f'Overwriting the report at "{path}"')
        else:
            logger.info(f'Saving the report to a new file at "{path}"')

        with open(path, "w") as f:
            _ = f.write(self.model_dump_json())

    @classmethod
    def load(cls, report_path: Path) -> TransformReport:
        """Load a report saved with `save`."""
        path = report_path.expanduser()

        logger.debug(f'Loading report from "{path}"')

        with open(path, "r") as f:
            return cls.model_validate_json(f.read())
