"""MLflow logging for Mandelbrot renders."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Sequence

import mlflow
import pandas as pd
from matplotlib import pyplot as plt

from .color import colorize, unpack_argb
from .config import RenderConfig
from .report import RenderReport
from .viewport import ViewportState

DEFAULT_TRACKING_URI = "sqlite:///mlruns.db"
EXPERIMENT_NAME = "mandelzoom"


def log_to_mlflow(
    config: RenderConfig,
    state: ViewportState,
    report: RenderReport,
    suite_name: str = "default",
) -> None:
    """Log a render to MLflow as its own run, with the colored image and raw metrics.

    Args:
        config: Render configuration
        state: Viewport the grid was rendered for
        report: Grid, statistics, timing and chunk table
        suite_name: Name of the suite (TESTS, views, etc.) for tagging/filtering
    """
    # Skip logging in test mode
    if os.environ.get("SKIP_MLFLOW"):
        return

    mlflow.set_tracking_uri(_resolve_tracking_uri())
    mlflow.set_experiment(EXPERIMENT_NAME)

    with mlflow.start_run(run_name=config.run_name) as run:
        mlflow.set_tags({"node_name": os.uname().nodename, "suite": suite_name})

        chunk_records = report.copy_chunks()
        if chunk_records:
            mlflow.log_table(_records_to_table(chunk_records), "chunks.json")

        timing_stats = report.timing or {}
        worker_records = timing_stats.get("worker_stats")
        if isinstance(worker_records, list) and worker_records:
            mlflow.log_table(_records_to_table(worker_records), "workers.json")

        params = {**config.to_dict(), **state.to_dict(), "iterations": config.iterations}
        mlflow.log_params(params)

        metrics = {
            "wall_time": float(timing_stats.get("wall_time", 0.0)),
            "comp_total": float(timing_stats.get("comp_total", 0.0)),
            "comm_total": float(timing_stats.get("comm_total", 0.0)),
            "total_chunks": float(timing_stats.get("total_chunks", 0)),
        }
        if report.stats is not None:
            metrics["lowest"] = float(report.stats.lowest)
            metrics["highest"] = float(report.stats.highest)
        mlflow.log_metrics(metrics)

        if report.grid is not None and report.stats is not None:
            fig, ax = plt.subplots(figsize=(6, 6 * config.height / config.width))
            ax.imshow(unpack_argb(colorize(report.grid, report.stats)))
            ax.set_axis_off()
            mlflow.log_figure(fig, "figures/mandelbrot.png")
            plt.close(fig)

        print(f"[MLflow] Logged run: {config.run_name} (suite: {suite_name})")
        print(f"[MLflow] Run ID: {run.info.run_id}")


def _records_to_table(records: Sequence[Dict[str, Any]]) -> Dict[str, List[Any]]:
    """Convert row-wise records into MLflow table format."""
    frame = pd.DataFrame.from_records(records)
    return frame.to_dict(orient="list")


def _resolve_tracking_uri() -> str:
    """Resolve tracking URI."""
    return os.environ.get("MLFLOW_TRACKING_URI") or DEFAULT_TRACKING_URI
