"""Baseline Mandelbrot implementation."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def compute_mandelbrot(
    size: Tuple[int, int],
    center: Tuple[float, float],
    zoom: float,
    iterations: int,
) -> Tuple[np.ndarray, int, int]:
    """Compute the escape grid, lowest and highest count for the given view."""
    width, height = size
    grid = np.full((height, width), iterations, dtype=np.uint32)
    lowest, highest = iterations, 0

    for y in range(height):
        imag = (center[1] - 1.2 / zoom) + (y / (height - 1)) * 2.4 / zoom
        for x in range(width):
            real = (center[0] - 2.0 / zoom) + (x / (width - 1)) * 3.5 / zoom
            c = complex(real, imag)
            z = 0j
            for i in range(iterations):
                z = z * z + c
                if z.real * z.real + z.imag * z.imag > 4.0:
                    grid[y, x] = i
                    break
            lowest = min(lowest, int(grid[y, x]))
            highest = max(highest, int(grid[y, x]))

    return grid, lowest, highest
