"""Execution helpers for Mandelbrot CLI workflows."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Optional, Sequence

from .config import RenderConfig
from .errors import WorkerFailure
from .logging import log_to_mlflow
from .render import render
from .report import RenderReport


def _is_root(config: RenderConfig) -> bool:
    if config.backend != "mpi":
        return True
    from mpi4py import MPI

    return MPI.COMM_WORLD.Get_rank() == 0


def run_single_render(
    config: RenderConfig,
    suite_name: Optional[str],
    *,
    verbose: bool = False,
) -> Optional[RenderReport]:
    """Render the configured view once and log it.

    Returns the report on the rank that holds the grid, ``None`` elsewhere.
    """
    root = _is_root(config)
    state = config.initial_state

    if root:
        print(
            f"[Run] Starting render '{config.run_name}' "
            f"(backend={config.backend}, workers={config.n_workers}, "
            f"schedule={config.schedule}, chunks={config.total_chunks}, "
            f"iterations={config.iterations})",
            flush=True,
        )

    report = render(config, state, verbose=verbose)
    if not root:
        return None

    suite = suite_name or os.environ.get("MANDELZOOM_SUITE") or "default"
    log_to_mlflow(config, state, report, suite)

    print(f"[Stats] lowest={report.stats.lowest} highest={report.stats.highest}")
    print(f"[Timing] Total: {report.timing.get('wall_time', 0.0):.4f}s", flush=True)
    return report


def build_command(config: RenderConfig, suite_name: Optional[str] = None) -> tuple[list[str], dict[str, str]]:
    """Build the ``mpirun`` command and environment rendering ``config`` headless."""
    cmd = ["mpirun", "-n", str(config.n_workers), sys.executable, sys.argv[0], "--headless"]
    cmd.extend(config.to_cli_args())

    env = os.environ.copy()
    if suite_name:
        env["MANDELZOOM_SUITE"] = suite_name
    return cmd, env


def _run_config(config: RenderConfig, suite_name: Optional[str], verbose: bool) -> bool:
    if config.backend == "mpi":
        # MPI ranks need their own processes; output goes straight to our terminal.
        cmd, env = build_command(config, suite_name)
        returncode = subprocess.run(cmd, env=env).returncode
        if returncode != 0:
            print(f"[Sweep] {config.run_name} exited with code {returncode}", file=sys.stderr)
        return returncode == 0

    try:
        run_single_render(config, suite_name, verbose=verbose)
    except (WorkerFailure, ValueError) as exc:
        print(f"[Sweep] {config.run_name} failed: {exc}", file=sys.stderr)
        return False
    return True


def run_sweep(
    configs: Sequence[RenderConfig],
    suite_name: Optional[str] = None,
    task_id: Optional[int] = None,
    descriptor: str = "sweep",
    *,
    verbose: bool = False,
) -> int:
    """Render every config of a sweep (or only ``configs[task_id]``).

    Returns a process exit code: 0 when every selected render succeeded.
    """
    if not configs:
        print("ERROR: No configurations found in sweep", file=sys.stderr)
        return 1

    selected = list(enumerate(configs))
    if task_id is not None:
        if task_id < 0 or task_id >= len(configs):
            print(f"ERROR: task-id {task_id} out of range [0, {len(configs) - 1}]", file=sys.stderr)
            return 1
        selected = [selected[task_id]]

    print(f"[Sweep] {descriptor}: {len(selected)} of {len(configs)} configurations", flush=True)

    failures = []
    for idx, config in selected:
        print(f"[Sweep] ({idx + 1}/{len(configs)}) {config.run_name}", flush=True)
        if not _run_config(config, suite_name, verbose):
            failures.append((idx, config.run_name))

    print(f"[Sweep] {len(selected) - len(failures)}/{len(selected)} renders succeeded", flush=True)
    for idx, name in failures:
        print(f"[Sweep] failed: [{idx}] {name}", file=sys.stderr)
    return 1 if failures else 0
