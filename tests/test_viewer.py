from types import SimpleNamespace

import numpy as np
import pytest
from matplotlib.backend_bases import MouseButton

from mandelzoom.color import colorize, unpack_argb
from mandelzoom.config import RenderConfig
from mandelzoom.render import render
from mandelzoom.viewer import MandelbrotViewer
from mandelzoom.viewport import INITIAL_STATE, ViewportState


@pytest.fixture
def viewer(tmp_path):
    return MandelbrotViewer(RenderConfig(width=30, height=20, n_workers=2, chunk_size=4), output_dir=tmp_path)


def _click(viewer, x, y, button):
    return SimpleNamespace(inaxes=viewer.ax, xdata=x, ydata=y, button=button)


def test_initial_frame_is_drawn(viewer):
    frame = viewer.im.get_array()
    assert frame.shape == (20, 30, 4)
    assert np.asarray(frame)[..., 3].min() == 255


def test_left_click_zooms_in(viewer):
    viewer._on_click(_click(viewer, 14.6, 3.2, MouseButton.LEFT))

    expected = viewer.controller.zoom_in(INITIAL_STATE, (15, 3), 30, 20)
    assert viewer.state == expected


def test_right_click_zooms_out(viewer):
    viewer._on_click(_click(viewer, 0.0, 0.0, MouseButton.RIGHT))

    assert viewer.state.zoom == pytest.approx(1 / 3)


def test_click_outside_image_is_ignored(viewer):
    viewer._on_click(SimpleNamespace(inaxes=None, xdata=None, ydata=None, button=MouseButton.LEFT))
    assert viewer.state == INITIAL_STATE


def test_positions_are_clamped(viewer):
    assert viewer.pixel_of(_click(viewer, -0.4, 25.0, MouseButton.LEFT)) == (0, 19)


def test_reset_key(viewer):
    viewer._on_click(_click(viewer, 5, 5, MouseButton.LEFT))
    viewer._on_key(SimpleNamespace(key="r"))
    assert viewer.state == INITIAL_STATE


def test_export_key(viewer, tmp_path):
    viewer.export_scale = 2
    viewer._on_key(SimpleNamespace(key="s"))
    assert len(list(tmp_path.glob("mandelbrot_*.png"))) == 1


def test_zoom_out_underflow_keeps_view(viewer):
    tiny = ViewportState(center=(0.0, 0.0), zoom=5e-324)
    viewer.state = tiny
    viewer._on_click(_click(viewer, 3, 4, MouseButton.RIGHT))
    assert viewer.state == tiny


def test_refresh_draws_current_state(viewer):
    viewer.state = viewer.controller.zoom_in(INITIAL_STATE, (15, 10), 30, 20)
    viewer.refresh()

    report = render(viewer.config, viewer.state)
    assert np.array_equal(np.asarray(viewer.im.get_array()), unpack_argb(colorize(report.grid, report.stats)))
