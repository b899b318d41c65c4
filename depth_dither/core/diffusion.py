"""Floyd-Steinberg error diffusion over a flat RGBA buffer."""

from __future__ import annotations

import numpy as np

from depth_dither.core.codec import RasterImage
from depth_dither.core.pixel import (
    CHANNELS,
    DISPLAY_DTYPE,
    DISPLAY_MAX,
    WORK_DTYPE,
    quantization_step,
    quantize,
    saturate,
    saturating_add,
    scale_error,
    widen,
)

#        *   7
#    3   5   1      (/16)
WEIGHT_E = 7 / 16
WEIGHT_SW = 3 / 16
WEIGHT_S = 5 / 16
WEIGHT_SE = 1 / 16

# (dx, dy, weight) for each neighbour that receives part of the residual
KERNEL: tuple[tuple[int, int, float], ...] = (
    (1, 0, WEIGHT_E),
    (-1, 1, WEIGHT_SW),
    (0, 1, WEIGHT_S),
    (1, 1, WEIGHT_SE),
)


def _diffuse_south(below: np.ndarray, errors: np.ndarray) -> None:
    """Push a finished row's residuals into the row beneath it.

    Row y + 1 is only written, never read, while row y is swept, so its
    updates can wait until the row is done. Each cell still receives them in
    sweep order (SE from the pixel above-left, S from above, SW from
    above-right) and saturates after every one.
    """
    below[1:] = saturating_add(below[1:], scale_error(errors[:-1], WEIGHT_SE))
    below[:] = saturating_add(below, scale_error(errors, WEIGHT_S))
    below[:-1] = saturating_add(below[:-1], scale_error(errors[1:], WEIGHT_SW))


def floyd_steinberg(
    pixels: np.ndarray, width: int, height: int, bits: int
) -> np.ndarray:
    """Quantize a buffer to ``bits`` per channel, diffusing the error.

    A single top-to-bottom, left-to-right sweep. Each pixel is quantized in
    place and its residual is pushed to the east and south neighbours, each
    update saturating at [0, 255]. The last row only quantizes. Neighbours
    outside the image are skipped rather than wrapped.

    Args:
        pixels: (width * height, 4) uint8 array, modified in place.
        width: image width in pixels.
        height: image height in pixels.
        bits: target bits per channel, 1 to 7.

    Returns:
        The same ``pixels`` array.

    Raises:
        ValueError: ``bits`` is out of range or the buffer does not hold
            exactly ``width * height`` RGBA pixels.
    """
    step = quantization_step(bits)
    if pixels.shape != (width * height, CHANNELS):
        raise ValueError(
            f"Pixel buffer shape {pixels.shape} does not match "
            f"{width}x{height} RGBA image"
        )
    if pixels.size == 0:
        return pixels

    # Splitting the pixel axis is always a view, so writes land in ``pixels``
    grid = pixels.reshape(height, width, CHANNELS)
    # quantize() of every display value, looked up per pixel
    table = quantize(np.arange(DISPLAY_MAX + 1, dtype=DISPLAY_DTYPE), step)

    for y in range(height - 1):
        work = widen(grid[y])
        errors = np.zeros((width, CHANNELS), dtype=WORK_DTYPE)

        for x in range(width):
            new = widen(table[work[x]])
            errors[x] = work[x] - new
            work[x] = new
            if x + 1 < width:
                work[x + 1] = saturate(work[x + 1] + scale_error(errors[x], WEIGHT_E))

        grid[y] = saturate(work)
        _diffuse_south(grid[y + 1], errors)

    grid[height - 1] = table[grid[height - 1]]
    return pixels


def dither_image(image: RasterImage, bits: int) -> RasterImage:
    """Run ``floyd_steinberg`` on a decoded image in place and return it."""
    floyd_steinberg(image.pixels, image.width, image.height, bits)
    return image
