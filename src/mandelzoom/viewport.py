"""Viewport geometry and the pixel to complex-plane mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from numba import njit

from .errors import InvalidDimensionError

__all__ = [
    "DEFAULT_GEOMETRY",
    "INITIAL_STATE",
    "ViewportGeometry",
    "ViewportState",
    "iteration_budget",
    "pixel_to_complex",
]


@dataclass(frozen=True)
class ViewportGeometry:
    """Base extents framing the classic view at ``zoom == 1``."""

    span_real: float = 3.5
    span_imag: float = 2.4
    offset_real: float = 2.0
    offset_imag: float = 1.2

    @property
    def aspect(self) -> float:
        return self.span_imag / self.span_real

    def height_for(self, width: int) -> int:
        """Image height matching ``width`` at this geometry's aspect ratio."""
        return int(width * self.span_imag / self.span_real)


@dataclass(frozen=True)
class ViewportState:
    """Center and zoom of the window currently mapped onto the pixel grid."""

    center: Tuple[float, float] = (-0.25, 0.0)
    zoom: float = 1.0

    def __post_init__(self) -> None:
        if not self.zoom > 0:
            raise ValueError(f"zoom must be positive, got {self.zoom!r}")
        object.__setattr__(self, "center", (float(self.center[0]), float(self.center[1])))
        object.__setattr__(self, "zoom", float(self.zoom))

    def bounds(self, geometry: ViewportGeometry | None = None) -> Tuple[float, float, float, float]:
        """Return ``(real_min, real_max, imag_min, imag_max)`` of the window."""
        geometry = geometry or DEFAULT_GEOMETRY
        real_min = self.center[0] - geometry.offset_real / self.zoom
        imag_min = self.center[1] - geometry.offset_imag / self.zoom
        return (
            real_min,
            real_min + geometry.span_real / self.zoom,
            imag_min,
            imag_min + geometry.span_imag / self.zoom,
        )

    def to_dict(self) -> dict:
        return {"center_real": self.center[0], "center_imag": self.center[1], "zoom": self.zoom}


DEFAULT_GEOMETRY = ViewportGeometry()
INITIAL_STATE = ViewportState(center=(-0.25, 0.0), zoom=1.0)


@njit(nogil=True)
def _pixel_to_complex(
    x: int,
    y: int,
    width: int,
    height: int,
    center_real: float,
    center_imag: float,
    zoom: float,
    span_real: float,
    span_imag: float,
    offset_real: float,
    offset_imag: float,
) -> Tuple[float, float]:
    real = (center_real - offset_real / zoom) + (x / (width - 1)) * span_real / zoom
    imag = (center_imag - offset_imag / zoom) + (y / (height - 1)) * span_imag / zoom
    return real, imag


def pixel_to_complex(
    x: int,
    y: int,
    width: int,
    height: int,
    state: ViewportState,
    geometry: ViewportGeometry | None = None,
) -> Tuple[float, float]:
    """Map pixel ``(x, y)`` of a ``width x height`` image onto the complex plane."""
    if width < 2 or height < 2:
        raise InvalidDimensionError(f"image must be at least 2x2 pixels, got {width}x{height}")
    geometry = geometry or DEFAULT_GEOMETRY
    real, imag = _pixel_to_complex(
        int(x),
        int(y),
        int(width),
        int(height),
        state.center[0],
        state.center[1],
        state.zoom,
        geometry.span_real,
        geometry.span_imag,
        geometry.offset_real,
        geometry.offset_imag,
    )
    return float(real), float(imag)


def iteration_budget(width: int, scale: int = 1) -> int:
    """Iterations per pixel: one per on-screen column."""
    if scale < 1:
        raise InvalidDimensionError(f"scale must be a positive integer, got {scale!r}")
    return int(width // scale)
