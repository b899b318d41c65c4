"""Pixel arithmetic primitives: quantizer, saturating add, and conversions.

Two pixel forms are in play. Display pixels are uint8 RGBA and live in the
image buffer. Work pixels are int32 RGBA and hold signed residuals while error
is being diffused. The only ways across are ``widen`` and ``saturate``, so
display-form arithmetic can never wrap silently.
"""

from __future__ import annotations

import numpy as np

DISPLAY_DTYPE = np.uint8
WORK_DTYPE = np.int32

CHANNELS = 4  # r, g, b, a
DISPLAY_MAX = 255

MIN_BITS = 1
MAX_BITS = 7


def check_bits(bits: int) -> int:
    """Validate a bits-per-channel value, returning it unchanged."""
    if not MIN_BITS <= bits <= MAX_BITS:
        raise ValueError(
            f"Bits per channel must be in [{MIN_BITS}, {MAX_BITS}], got {bits}"
        )
    return bits


def quantization_step(bits: int) -> float:
    """Distance between adjacent palette levels: 255 / 2**bits."""
    check_bits(bits)
    return DISPLAY_MAX / float(2**bits)


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to nearest integer, ties away from zero.

    Neither ``round()`` nor ``np.round`` will do here; both round ties to even.
    """
    values = np.asarray(values, dtype=np.float64)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def widen(pixel: np.ndarray) -> np.ndarray:
    """Display pixel -> work pixel (zero extension)."""
    return np.asarray(pixel).astype(WORK_DTYPE)


def saturate(pixel: np.ndarray) -> np.ndarray:
    """Work pixel -> display pixel, clamping every channel to [0, 255]."""
    return np.clip(pixel, 0, DISPLAY_MAX).astype(DISPLAY_DTYPE)


def quantize(pixel: np.ndarray, step: float) -> np.ndarray:
    """Snap each channel to the nearest multiple of ``step``.

    The multiple is computed in floating point and truncated back to the
    display domain, so ``step=127.5`` maps 128 to 127. Works on a single
    pixel or on any array of display values.
    """
    levels = round_half_away(np.asarray(pixel, dtype=np.float64) / step)
    return (levels * step).astype(DISPLAY_DTYPE)


def scale_error(error: np.ndarray, weight: float) -> np.ndarray:
    """Multiply a work pixel by a kernel weight, truncating toward zero."""
    return (np.asarray(error, dtype=np.float64) * weight).astype(WORK_DTYPE)


def saturating_add(pixel: np.ndarray, delta: np.ndarray) -> np.ndarray:
    """Add a work-pixel delta to a display pixel with hard saturation."""
    return saturate(widen(pixel) + delta)


def palette(bits: int) -> tuple[int, ...]:
    """All channel values ``quantize`` can produce for a given bit depth."""
    step = quantization_step(bits)
    every_value = np.arange(DISPLAY_MAX + 1, dtype=DISPLAY_DTYPE)
    return tuple(int(v) for v in np.unique(quantize(every_value, step)))


def is_on_palette(pixels: np.ndarray, bits: int) -> bool:
    """True when every channel of every pixel is already a palette value."""
    step = quantization_step(bits)
    return bool(np.array_equal(quantize(pixels, step), pixels))
