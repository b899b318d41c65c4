"""Run configuration, built once by the CLI and passed down explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from depth_dither.core.pixel import check_bits, palette, quantization_step

DEFAULT_INPUT = Path("input.png")
DEFAULT_OUTPUT = Path("output.png")
DEFAULT_BITS = 2


@dataclass(frozen=True)
class Settings:
    """Settings for a single decode -> dither -> encode run."""

    input_path: Path = DEFAULT_INPUT
    output_path: Path = DEFAULT_OUTPUT
    bits: int = DEFAULT_BITS  # 1 to 7

    def __post_init__(self) -> None:
        check_bits(self.bits)

    @property
    def step(self) -> float:
        return quantization_step(self.bits)

    @property
    def levels(self) -> int:
        """Number of distinct values a channel can take after dithering."""
        return len(palette(self.bits))
