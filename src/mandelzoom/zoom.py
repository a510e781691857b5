"""Zoom-in / zoom-out transitions driven by a clicked pixel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .viewport import DEFAULT_GEOMETRY, ViewportGeometry, ViewportState, pixel_to_complex

ZOOM_POWER = 3.0


@dataclass(frozen=True)
class ZoomController:
    """Produce a fresh ``ViewportState`` for each click.

    The new center is the clicked pixel located through the *old* viewport;
    zooming out uses the pixel mirrored through the image center, so the
    view moves away from the click.
    """

    geometry: ViewportGeometry = DEFAULT_GEOMETRY
    zoom_power: float = ZOOM_POWER

    def zoom_in(self, state: ViewportState, pixel: Tuple[int, int], width: int, height: int) -> ViewportState:
        center = pixel_to_complex(pixel[0], pixel[1], width, height, state, self.geometry)
        return ViewportState(center=center, zoom=state.zoom * self.zoom_power)

    def zoom_out(self, state: ViewportState, pixel: Tuple[int, int], width: int, height: int) -> ViewportState:
        mirrored_x = (width - 1) - pixel[0]
        mirrored_y = (height - 1) - pixel[1]
        center = pixel_to_complex(mirrored_x, mirrored_y, width, height, state, self.geometry)
        return ViewportState(center=center, zoom=state.zoom / self.zoom_power)
