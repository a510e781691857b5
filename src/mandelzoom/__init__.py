"""Mandelbrot zoom renderer - parallel escape-time engine with MLflow tracking."""

__version__ = "1.0.0"

# Core engine - lightweight, imported by every worker
from .color import color_of, colorize, unpack_argb
from .computation import compute_chunk, escape_time
from .config import RenderConfig, default_render_config
from .errors import InvalidDimensionError, WorkerFailure
from .render import render, render_grid
from .report import GridStatistics, RenderReport
from .viewport import INITIAL_STATE, ViewportGeometry, ViewportState, iteration_budget, pixel_to_complex
from .zoom import ZOOM_POWER, ZoomController


# Conditional imports - only loaded when needed
def __getattr__(name):
    """Lazy loading of heavy modules."""
    if name == "run_mpi_render":
        from .mpi import run_mpi_render

        return run_mpi_render
    elif name == "export_image":
        from .export import export_image

        return export_image
    elif name == "run_viewer":
        from .viewer import run_viewer

        return run_viewer
    elif name == "load_sweep_configs":
        from .config import load_sweep_configs

        return load_sweep_configs
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "INITIAL_STATE",
    "ZOOM_POWER",
    "GridStatistics",
    "InvalidDimensionError",
    "RenderConfig",
    "RenderReport",
    "ViewportGeometry",
    "ViewportState",
    "WorkerFailure",
    "ZoomController",
    "color_of",
    "colorize",
    "compute_chunk",
    "default_render_config",
    "escape_time",
    "export_image",
    "iteration_budget",
    "load_sweep_configs",
    "pixel_to_complex",
    "render",
    "render_grid",
    "run_mpi_render",
    "run_viewer",
    "unpack_argb",
]
