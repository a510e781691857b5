import importlib
from dataclasses import replace

import numpy as np
import pytest

from mandelzoom.baseline import compute_mandelbrot
from mandelzoom.color import colorize
from mandelzoom.config import RenderConfig
from mandelzoom.errors import WorkerFailure
from mandelzoom.render import render, render_grid
from mandelzoom.viewport import INITIAL_STATE, ViewportState

# ``mandelzoom.render`` as an attribute is the re-exported function; fetch the submodule.
render_module = importlib.import_module("mandelzoom.render")


@pytest.mark.parametrize("schedule", ["static", "dynamic"])
@pytest.mark.parametrize(
    "state",
    [INITIAL_STATE, ViewportState(center=(-0.75, 0.1), zoom=9.0)],
    ids=["initial", "zoomed"],
)
def test_threads_match_baseline(small_config, schedule, state):
    config = replace(small_config, schedule=schedule)
    report = render_grid(config, state)
    baseline, lowest, highest = compute_mandelbrot(
        (config.width, config.height), state.center, state.zoom, config.iterations
    )

    np.testing.assert_array_equal(report.grid, baseline)
    assert (report.stats.lowest, report.stats.highest) == (lowest, highest)


def test_grid_layout_and_statistics(small_config):
    report = render(small_config)

    assert report.grid.shape == (small_config.height, small_config.width)
    assert report.grid.dtype == np.uint32
    assert report.stats.lowest <= report.stats.highest
    assert report.stats.lowest == report.grid.min()
    assert report.stats.highest == report.grid.max()
    assert report.grid.max() <= small_config.iterations


def test_repeated_renders_are_identical(small_config):
    first = render(small_config)
    second = render(replace(small_config, schedule="dynamic", n_workers=5, chunk_size=1))

    assert first.grid.tobytes() == second.grid.tobytes()
    assert first.stats == second.stats
    assert colorize(first.grid, first.stats).tobytes() == colorize(second.grid, second.stats).tobytes()


def test_four_by_four_scenario():
    config = RenderConfig(width=4, height=4, n_workers=2, chunk_size=1)
    report = render(config, INITIAL_STATE)

    assert config.iterations == 4
    assert report.grid[0, 0] == 0


def test_fully_divergent_view_is_degenerate():
    config = RenderConfig(width=16, height=10, n_workers=2)
    report = render(config, ViewportState(center=(10.0, 10.0), zoom=1.0))

    assert report.stats.lowest == report.stats.highest == 0
    assert not report.grid.any()
    assert (colorize(report.grid, report.stats) == 0xFF000000).all()


def test_chunk_records_and_timing(small_config):
    report = render(small_config)

    assert [record["chunk_id"] for record in report.chunks] == list(range(small_config.total_chunks))
    assert report.timing["total_chunks"] == small_config.total_chunks
    assert len(report.timing["worker_stats"]) == small_config.n_workers
    assert min(record["lowest"] for record in report.chunks) == report.stats.lowest
    assert max(record["highest"] for record in report.chunks) == report.stats.highest


def test_static_schedule_is_round_robin(small_config):
    report = render(small_config)

    for record in report.chunks:
        assert record["worker"] == record["chunk_id"] % small_config.n_workers


def test_more_workers_than_chunks():
    config = RenderConfig(width=6, height=4, n_workers=8, chunk_size=3)
    report = render(config)

    assert config.total_chunks == 2
    assert report.grid.shape == (4, 6)


def test_failing_chunk_aborts_render(small_config, monkeypatch):
    real_compute_chunk = render_module.compute_chunk

    def flaky(config, state, chunk_id, geometry=None):
        if chunk_id == 2:
            raise FloatingPointError("boom")
        return real_compute_chunk(config, state, chunk_id, geometry)

    monkeypatch.setattr(render_module, "compute_chunk", flaky)

    with pytest.raises(WorkerFailure) as excinfo:
        render_grid(small_config, INITIAL_STATE)
    assert excinfo.value.chunk_id == 2
    assert isinstance(excinfo.value.__cause__, FloatingPointError)
