"""Interactive matplotlib window: left click zooms in, right click zooms out.

Keys:
- ``r``: reset to the initial view
- ``s``: export the current view at the configured scale
- ``q``: close the window
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.backend_bases import KeyEvent, MouseButton, MouseEvent

from .color import colorize, unpack_argb
from .config import RenderConfig
from .export import DEFAULT_EXPORT_SCALE, export_image
from .render import render
from .viewport import DEFAULT_GEOMETRY, ViewportGeometry
from .zoom import ZoomController


class MandelbrotViewer:
    """Own the current viewport and redraw it after every zoom gesture."""

    def __init__(
        self,
        config: RenderConfig,
        geometry: ViewportGeometry = DEFAULT_GEOMETRY,
        export_scale: int = DEFAULT_EXPORT_SCALE,
        output_dir: str | Path = ".",
    ):
        self.config = config
        self.geometry = geometry
        self.export_scale = export_scale
        self.output_dir = Path(output_dir)
        self.controller = ZoomController(geometry)
        self.state = config.initial_state

        self.fig, self.ax = plt.subplots(figsize=(config.width / 100, config.height / 100), dpi=100)
        if self.fig.canvas.manager:
            self.fig.canvas.manager.set_window_title("Mandelbrot")
        self.fig.subplots_adjust(0, 0, 1, 1)
        self.ax.set_axis_off()
        self.im = self.ax.imshow(
            np.zeros((config.height, config.width, 4), dtype=np.uint8),
            interpolation="nearest",
        )

        self.fig.canvas.mpl_connect("button_press_event", self._on_click)
        self.fig.canvas.mpl_connect("key_press_event", self._on_key)
        self.refresh()

    def pixel_of(self, event: MouseEvent) -> Optional[Tuple[int, int]]:
        """Clamp the event position onto the image, or None outside the axes."""
        if event.inaxes is not self.ax or event.xdata is None or event.ydata is None:
            return None
        x = int(np.clip(round(event.xdata), 0, self.config.width - 1))
        y = int(np.clip(round(event.ydata), 0, self.config.height - 1))
        return x, y

    def refresh(self) -> None:
        report = render(self.config, self.state, self.geometry)
        self.im.set_data(unpack_argb(colorize(report.grid, report.stats)))
        self.fig.canvas.draw_idle()
        print(
            f"[View] center=({self.state.center[0]!r}, {self.state.center[1]!r}) "
            f"zoom={self.state.zoom:g} escapes={report.stats.lowest}..{report.stats.highest} "
            f"in {report.timing.get('wall_time', 0.0):.3f}s",
            flush=True,
        )

    def _on_click(self, event: MouseEvent) -> None:
        pixel = self.pixel_of(event)
        if pixel is None:
            return
        width, height = self.config.width, self.config.height
        if event.button is MouseButton.LEFT:
            transition = self.controller.zoom_in
        elif event.button is MouseButton.RIGHT:
            transition = self.controller.zoom_out
        else:
            return
        try:
            self.state = transition(self.state, pixel, width, height)
        except ValueError as exc:
            # Zoom left the representable range; keep the current view.
            print(f"[View] ignored click: {exc}", flush=True)
            return
        self.refresh()

    def _on_key(self, event: KeyEvent) -> None:
        if event.key == "r":
            self.state = self.config.initial_state
            self.refresh()
        elif event.key == "s":
            export_image(self.config, self.state, self.export_scale, self.output_dir, self.geometry)

    def show(self) -> None:
        plt.show()


def run_viewer(
    config: RenderConfig,
    export_scale: int = DEFAULT_EXPORT_SCALE,
    output_dir: str | Path = ".",
) -> None:
    MandelbrotViewer(config, export_scale=export_scale, output_dir=output_dir).show()
