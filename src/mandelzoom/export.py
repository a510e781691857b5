"""Supersampled export of the current view to PNG."""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt

from .color import colorize, unpack_argb
from .config import RenderConfig
from .errors import InvalidDimensionError
from .render import render
from .viewport import ViewportGeometry, ViewportState

DEFAULT_EXPORT_SCALE = 4


def export_filename(timestamp: float | None = None) -> str:
    stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(timestamp))
    return f"mandelbrot_{stamp}.png"


def render_pixels(
    config: RenderConfig,
    state: ViewportState,
    scale: int = DEFAULT_EXPORT_SCALE,
    geometry: ViewportGeometry | None = None,
) -> np.ndarray:
    """Render ``state`` at ``scale`` times the configured size and colorize it.

    The iteration budget stays that of the on-screen width.
    """
    if scale < 1:
        raise InvalidDimensionError(f"scale must be a positive integer, got {scale!r}")
    export_config = replace(config, scale=int(scale))
    report = render(export_config, state, geometry)
    if report.grid is None:
        raise RuntimeError("export must run on the rank that assembles the grid")
    return colorize(report.grid, report.stats)


def save_png(pixels: np.ndarray, path: str | Path) -> Path:
    """Write a packed ARGB buffer as a PNG image."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.imsave(path, unpack_argb(pixels), format="png")
    return path


def export_image(
    config: RenderConfig,
    state: ViewportState,
    scale: int = DEFAULT_EXPORT_SCALE,
    output_dir: str | Path = ".",
    geometry: ViewportGeometry | None = None,
) -> Path:
    pixels = render_pixels(config, state, scale, geometry)
    path = save_png(pixels, Path(output_dir) / export_filename())
    height, width = pixels.shape
    print(f"[Export] Saved {width}x{height} image to {path}", flush=True)
    return path
