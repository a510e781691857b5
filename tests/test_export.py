import re
from dataclasses import replace

import matplotlib.pyplot as plt
import numpy as np
import pytest

from mandelzoom.color import colorize, unpack_argb
from mandelzoom.config import RenderConfig
from mandelzoom.errors import InvalidDimensionError
from mandelzoom.export import export_filename, export_image, render_pixels, save_png
from mandelzoom.render import render
from mandelzoom.viewport import INITIAL_STATE


@pytest.fixture
def config():
    return RenderConfig(width=20, height=14, n_workers=2, chunk_size=5)


def test_supersampled_render_keeps_screen_budget(config):
    export_config = replace(config, scale=3)
    assert export_config.iterations == config.width

    pixels = render_pixels(config, INITIAL_STATE, scale=3)
    assert pixels.shape == (42, 60)
    assert pixels.dtype == np.uint32


def test_scale_one_matches_screen_render(config):
    report = render(config, INITIAL_STATE)
    np.testing.assert_array_equal(render_pixels(config, INITIAL_STATE, scale=1), colorize(report.grid, report.stats))


def test_rejects_non_positive_scale(config):
    with pytest.raises(InvalidDimensionError):
        render_pixels(config, INITIAL_STATE, scale=0)


def test_save_png_roundtrip(tmp_path):
    pixels = np.array([[0xFF000000, 0xFFFFFFFF], [0xFF7FFFFF, 0xFF190033]], dtype=np.uint32)
    path = save_png(pixels, tmp_path / "nested" / "out.png")

    image = plt.imread(path)
    assert image.shape == (2, 2, 4)
    np.testing.assert_array_equal((image * 255).round().astype(np.uint8), unpack_argb(pixels))


def test_export_image_names_file_by_time(config, tmp_path):
    path = export_image(config, INITIAL_STATE, scale=2, output_dir=tmp_path)

    assert path.parent == tmp_path
    assert re.fullmatch(r"mandelbrot_\d{8}-\d{6}\.png", path.name)
    assert plt.imread(path).shape[:2] == (28, 40)


def test_export_filename_is_deterministic_for_a_timestamp():
    assert export_filename(0.0) == export_filename(0.0)
