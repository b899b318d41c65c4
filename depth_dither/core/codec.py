"""PNG decode/encode to and from flat RGBA pixel buffers.

Pillow does the actual PNG work. Whatever the source mode, decoded pixels come
back as 8-bit RGBA, with opaque alpha when the file has none.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from depth_dither.core.pixel import CHANNELS, DISPLAY_DTYPE

# Modes Pillow uses for 16-bit (and 32-bit integer) greyscale PNGs
_WIDE_GREY_MODES = ("I", "I;16", "I;16B", "I;16L")


class CodecError(Exception):
    """An image could not be decoded from, or encoded to, a PNG file."""


@dataclass
class RasterImage:
    """A decoded image: row-major RGBA display pixels, x as the fast axis."""

    width: int
    height: int
    pixels: np.ndarray  # shape (width * height, 4), uint8

    def __post_init__(self) -> None:
        expected = (self.width * self.height, CHANNELS)
        if self.pixels.shape != expected:
            raise ValueError(
                f"Pixel buffer shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height} image (expected {expected})"
            )
        if self.pixels.dtype != DISPLAY_DTYPE:
            raise ValueError(f"Pixel buffer must be uint8, got {self.pixels.dtype}")

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @classmethod
    def from_pil(cls, img: Image.Image) -> RasterImage:
        """Build from any Pillow image, converting it to 8-bit RGBA."""
        rgba = _to_rgba(img)
        pixels = np.array(rgba, dtype=DISPLAY_DTYPE).reshape(-1, CHANNELS)
        return cls(width=rgba.width, height=rgba.height, pixels=pixels)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels.reshape(self.height, self.width, CHANNELS))


def _wide_grey_to_rgba(img: Image.Image) -> Image.Image:
    """Keep the high byte of each sample; a tRNS key makes exact matches clear.

    Pillow's own conversion clips wide samples to 255 instead of scaling them,
    and the key has to be compared before the samples are narrowed.
    """
    wide = np.asarray(img).astype(np.uint32)
    grey = (wide >> 8).clip(0, 255).astype(np.uint8)
    alpha = np.full_like(grey, 255)
    transparency = img.info.get("transparency")
    if isinstance(transparency, int):
        alpha[wide == transparency] = 0
    return Image.fromarray(np.dstack([grey, grey, grey, alpha]))


def _to_rgba(img: Image.Image) -> Image.Image:
    """Convert any Pillow mode to 8-bit RGBA, opaque unless the file says not."""
    if img.mode in _WIDE_GREY_MODES:
        img = _wide_grey_to_rgba(img)
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return img


def decode(path: str | Path) -> RasterImage:
    """Read a PNG file into a RasterImage.

    Raises:
        CodecError: the file is missing, unreadable, or not a valid PNG.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            fmt = img.format
            image = RasterImage.from_pil(img)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise CodecError(f"Error decoding file {path}:\n{e}") from e

    if fmt != "PNG":
        raise CodecError(f"Error decoding file {path}:\nnot a PNG file ({fmt})")
    return image


def encode(path: str | Path, image: RasterImage) -> None:
    """Write a RasterImage as an RGBA PNG, whatever the path's extension.

    Raises:
        CodecError: the image is empty or the file cannot be written.
    """
    path = Path(path)
    if image.width == 0 or image.height == 0:
        raise CodecError(
            f"Error encoding file {path}:\n"
            f"zero width or height is invalid ({image.width}x{image.height})"
        )

    try:
        image.to_pil().save(path, format="PNG")
    except (OSError, ValueError) as e:
        raise CodecError(f"Error encoding file {path}:\n{e}") from e
