from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit

from .config import RenderConfig
from .viewport import DEFAULT_GEOMETRY, ViewportGeometry, ViewportState, _pixel_to_complex

__all__ = ["GRID_DTYPE", "allocate_grid", "chunk_rows", "compute_chunk", "escape_time"]

GRID_DTYPE = np.uint32
BAILOUT_SQUARED = 4.0


@njit(nogil=True)
def _escape_time(real: float, imag: float, iterations: int) -> int:
    c = complex(real, imag)
    z = 0j
    for i in range(iterations):
        z = z * z + c
        if z.real * z.real + z.imag * z.imag > BAILOUT_SQUARED:
            return i
    return iterations


def escape_time(real: float, imag: float, iterations: int) -> int:
    """First step at which ``|z|^2 > 4``, or ``iterations`` if the point never escapes."""
    return int(_escape_time(float(real), float(imag), int(iterations)))


def allocate_grid(config: RenderConfig) -> np.ndarray:
    # Unwritten cells read as in-set.
    return np.full((config.render_height, config.render_width), config.iterations, dtype=GRID_DTYPE)


def chunk_rows(config: RenderConfig, chunk_id: int) -> Tuple[int, int]:
    start_row = chunk_id * config.chunk_size
    end_row = min(start_row + config.chunk_size, config.render_height)
    return start_row, max(start_row, end_row)


@njit(nogil=True)
def _compute_chunk(
    start_row: int,
    end_row: int,
    width: int,
    height: int,
    center_real: float,
    center_imag: float,
    zoom: float,
    span_real: float,
    span_imag: float,
    offset_real: float,
    offset_imag: float,
    iterations: int,
) -> Tuple[np.ndarray, int, int]:
    rows = np.empty((end_row - start_row, width), dtype=np.uint32)
    lowest = iterations
    highest = 0

    for local_y in range(end_row - start_row):
        y = start_row + local_y
        for x in range(width):
            real, imag = _pixel_to_complex(
                x,
                y,
                width,
                height,
                center_real,
                center_imag,
                zoom,
                span_real,
                span_imag,
                offset_real,
                offset_imag,
            )
            count = _escape_time(real, imag, iterations)
            rows[local_y, x] = count
            if count < lowest:
                lowest = count
            if count > highest:
                highest = count

    return rows, lowest, highest


def compute_chunk(
    config: RenderConfig,
    state: ViewportState,
    chunk_id: int,
    geometry: ViewportGeometry | None = None,
) -> Tuple[int, int, np.ndarray, int, int]:
    """Compute the rows of one chunk.

    Returns ``(start_row, end_row, rows, lowest, highest)`` where ``rows`` has
    shape ``(end_row - start_row, width)`` and the extrema cover only this
    chunk. An empty chunk reports the identity extrema ``(iterations, 0)``.
    """
    geometry = geometry or DEFAULT_GEOMETRY
    start_row, end_row = chunk_rows(config, chunk_id)
    rows, lowest, highest = _compute_chunk(
        start_row,
        end_row,
        config.render_width,
        config.render_height,
        state.center[0],
        state.center[1],
        state.zoom,
        geometry.span_real,
        geometry.span_imag,
        geometry.offset_real,
        geometry.offset_imag,
        config.iterations,
    )
    return start_row, end_row, rows, int(lowest), int(highest)
