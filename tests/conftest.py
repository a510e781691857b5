import matplotlib
import pytest

from mandelzoom.config import RenderConfig

matplotlib.use("Agg")


@pytest.fixture(autouse=True)
def _skip_mlflow(monkeypatch):
    monkeypatch.setenv("SKIP_MLFLOW", "1")


@pytest.fixture
def small_config():
    return RenderConfig(width=35, height=24, n_workers=3, chunk_size=4)
