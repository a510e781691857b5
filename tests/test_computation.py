import numpy as np
import pytest

from mandelzoom.computation import chunk_rows, compute_chunk, escape_time
from mandelzoom.config import RenderConfig
from mandelzoom.viewport import INITIAL_STATE, pixel_to_complex


def test_outside_radius_escapes_immediately():
    assert escape_time(-2.25, -1.2, 4) == 0


def test_interior_point_never_escapes():
    assert escape_time(-0.25, 0.0, 1000) == 1000
    assert escape_time(0.0, 0.0, 50) == 50


def test_escape_index_counts_from_zero():
    # z: 1, 2, 5 -> |z|^2 first exceeds 4 on the third step
    assert escape_time(1.0, 0.0, 100) == 2


def test_bailout_is_strict():
    # c = -2 settles at z = 2 with |z|^2 == 4 forever
    assert escape_time(-2.0, 0.0, 64) == 64


@pytest.mark.parametrize("iterations", [1, 7, 64])
def test_never_exceeds_budget(iterations):
    for real in np.linspace(-2.5, 1.0, 15):
        for imag in np.linspace(-1.3, 1.3, 11):
            assert 0 <= escape_time(real, imag, iterations) <= iterations


def test_chunk_rows_cover_image():
    config = RenderConfig(width=10, height=11, chunk_size=4)
    assert config.total_chunks == 3
    assert [chunk_rows(config, cid) for cid in range(3)] == [(0, 4), (4, 8), (8, 11)]
    assert chunk_rows(config, 5) == (20, 20)


def test_compute_chunk_matches_pointwise_evaluation():
    config = RenderConfig(width=12, height=9, chunk_size=4)
    start, end, rows, lowest, highest = compute_chunk(config, INITIAL_STATE, 1)

    assert (start, end) == (4, 8)
    assert rows.shape == (4, 12)
    assert rows.dtype == np.uint32
    for local_y, y in enumerate(range(start, end)):
        for x in range(config.width):
            real, imag = pixel_to_complex(x, y, config.width, config.height, INITIAL_STATE)
            assert rows[local_y, x] == escape_time(real, imag, config.iterations)
    assert lowest == rows.min()
    assert highest == rows.max()


def test_empty_chunk_reports_identity_extrema():
    config = RenderConfig(width=8, height=8, chunk_size=4)
    start, end, rows, lowest, highest = compute_chunk(config, INITIAL_STATE, 7)
    assert start == end
    assert rows.shape == (0, 8)
    assert (lowest, highest) == (config.iterations, 0)
