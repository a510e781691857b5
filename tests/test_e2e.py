"""End-to-end test via main.py."""
import os
import subprocess
import sys
from pathlib import Path

import matplotlib.pyplot as plt

ROOT = Path(__file__).resolve().parent.parent


def _run(*args, timeout=120):
    return subprocess.run(
        [sys.executable, "main.py", *args],
        cwd=ROOT,
        env={**os.environ, "SKIP_MLFLOW": "1", "MPLBACKEND": "Agg"},
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def test_tests_suite():
    """Run TESTS suite end-to-end - should complete without errors."""
    result = _run("--sweep", "configs/sweeps.yaml", "--suite", "TESTS")

    assert result.returncode == 0, f"Suite failed:\n{result.stdout}\n{result.stderr}"
    assert "[Sweep] 2/2 renders succeeded" in result.stdout


def test_list_suites():
    result = _run("--sweep", "configs/sweeps.yaml", "--list-suites")

    assert result.returncode == 0, result.stderr
    assert "TESTS: 2 configurations" in result.stdout


def test_headless_render():
    result = _run("40", "--headless", "--workers", "2", "--chunk-size", "3")

    assert result.returncode == 0, result.stderr
    assert "[Stats] lowest=0 highest=40" in result.stdout


def test_width_is_positional():
    result = _run("--width", "40", "--headless")

    assert result.returncode != 0
    assert "unrecognized arguments: --width" in result.stderr


def test_export_writes_supersampled_png(tmp_path):
    result = _run("20", "--height", "14", "--export", "3", "--output", str(tmp_path))

    assert result.returncode == 0, result.stderr
    (png,) = tmp_path.glob("mandelbrot_*.png")
    assert plt.imread(png).shape[:2] == (42, 60)


def test_rejects_degenerate_width():
    result = _run("1", "--headless")

    assert result.returncode != 0
    assert "at least 2x2" in result.stderr
