"""Mapping escape counts to packed ARGB pixels.

The palette is a fixed linear ramp: fast escapes are near black, slower
escapes move through red, and the slowest escapes and in-set points
saturate to white. Counts are normalized against the lowest and highest
values of the render they came from.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .report import GridStatistics

__all__ = ["ALPHA", "channels_of", "color_of", "colorize", "unpack_argb"]

ALPHA = 0xFF
CHANNEL_MAX = 255.0


def channels_of(count: int, lowest: int, highest: int) -> Tuple[int, int]:
    """Return ``(red, greenblue)`` for a single escape count."""
    span = int(highest) - int(lowest)
    if span == 0:
        return 0, 0
    offset = float(int(count) - int(lowest))
    red = min(max(CHANNEL_MAX * offset / span, 0.0), CHANNEL_MAX)
    greenblue = min(max(2.0 * CHANNEL_MAX * offset / span, 0.0), CHANNEL_MAX)
    return int(red), int(greenblue)


def color_of(count: int, lowest: int, highest: int) -> int:
    """Packed ``0xAARRGGBB`` color of a single escape count."""
    red, greenblue = channels_of(count, lowest, highest)
    return (ALPHA << 24) | (red << 16) | (greenblue << 8) | greenblue


def colorize(grid: np.ndarray, stats: GridStatistics) -> np.ndarray:
    """Convert an escape grid into a packed ARGB buffer of the same shape.

    A degenerate render (``highest == lowest``) maps every pixel to opaque
    black instead of dividing by zero.
    """
    if stats.degenerate:
        return np.full(grid.shape, ALPHA << 24, dtype=np.uint32)

    span = float(stats.highest - stats.lowest)
    offset = grid.astype(np.float64) - float(stats.lowest)
    red = np.clip(CHANNEL_MAX * offset / span, 0.0, CHANNEL_MAX).astype(np.uint32)
    greenblue = np.clip(2.0 * CHANNEL_MAX * offset / span, 0.0, CHANNEL_MAX).astype(np.uint32)
    return (np.uint32(ALPHA << 24) | (red << np.uint32(16)) | (greenblue << np.uint32(8)) | greenblue).astype(
        np.uint32
    )


def unpack_argb(pixels: np.ndarray) -> np.ndarray:
    """Split packed ARGB pixels into an ``(..., 4)`` RGBA ``uint8`` array."""
    pixels = np.asarray(pixels, dtype=np.uint32)
    rgba = np.empty(pixels.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = (pixels >> 16) & 0xFF
    rgba[..., 1] = (pixels >> 8) & 0xFF
    rgba[..., 2] = pixels & 0xFF
    rgba[..., 3] = (pixels >> 24) & 0xFF
    return rgba
