"""Data-parallel grid rendering on a fixed pool of worker threads."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List

from .computation import allocate_grid, compute_chunk
from .config import RenderConfig
from .errors import WorkerFailure
from .report import GridStatistics, RenderReport
from .scheduling import DynamicScheduler, StaticScheduler
from .viewport import ViewportGeometry, ViewportState

__all__ = ["render", "render_grid"]


def render(
    config: RenderConfig,
    state: ViewportState | None = None,
    geometry: ViewportGeometry | None = None,
    *,
    verbose: bool = False,
) -> RenderReport:
    """Render the escape grid for ``state`` with the backend named in ``config``."""
    state = state or config.initial_state
    if config.backend == "mpi":
        from .mpi import run_mpi_render

        return run_mpi_render(config, state, geometry, verbose=verbose)
    return render_grid(config, state, geometry, verbose=verbose)


def _init_worker_stats() -> Dict[str, float]:
    return {"comp": 0.0, "chunks": 0.0}


def _worker_log(worker: int, message: str) -> None:
    """Emit a progress message from a given worker thread."""
    print(f"[Worker {worker}] {message}", flush=True)


def _chunk_record(
    worker: int,
    chunk_id: int,
    start: int,
    end: int,
    comp_time: float,
    lowest: int,
    highest: int,
) -> Dict[str, Any]:
    """Create a uniform chunk metadata record."""
    return {
        "worker": worker,
        "chunk_id": int(chunk_id),
        "start_row": int(start),
        "end_row": int(end - 1) if end > start else int(end),
        "comp_time": comp_time,
        "lowest": int(lowest),
        "highest": int(highest),
    }


def render_grid(
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None = None,
    *,
    verbose: bool = False,
) -> RenderReport:
    """Fill the escape grid with ``config.n_workers`` threads.

    Every worker writes only the rows of the chunks it was handed and
    proposes each chunk's extrema to the shared statistics. The first chunk
    that raises stops the other workers and surfaces as ``WorkerFailure``.
    """
    start_time = time.perf_counter()
    grid = allocate_grid(config)
    stats = GridStatistics.identity(config.iterations)
    stats_lock = threading.Lock()
    abort = threading.Event()
    chunk_records: List[Dict[str, Any]] = []
    worker_stats = [_init_worker_stats() for _ in range(config.n_workers)]

    def run_worker(worker: int, chunk_ids: Iterable[int]) -> None:
        nonlocal stats
        for chunk_id in chunk_ids:
            if abort.is_set():
                return
            comp_start = time.perf_counter()
            try:
                start, end, rows, lowest, highest = compute_chunk(config, state, chunk_id, geometry)
            except Exception as exc:
                abort.set()
                raise WorkerFailure(chunk_id, exc) from exc
            comp_time = time.perf_counter() - comp_start

            grid[start:end, :] = rows
            with stats_lock:
                stats = stats.propose(lowest, highest)
                chunk_records.append(
                    _chunk_record(worker, chunk_id, start, end, comp_time, lowest, highest)
                )
            worker_stats[worker]["comp"] += comp_time
            worker_stats[worker]["chunks"] += 1
            if verbose:
                _worker_log(
                    worker,
                    f"Computing chunk {chunk_id} (rows {start}:{end}) took {comp_time:.4f}s "
                    f"[{config.schedule}]",
                )

    if config.schedule == "static":
        scheduler = StaticScheduler(config, config.n_workers)
        assignments = [scheduler.chunks_for_rank(worker) for worker in range(config.n_workers)]
    else:
        dynamic = DynamicScheduler(config)
        assignments = [iter(dynamic.request_chunk, None) for _ in range(config.n_workers)]

    with ThreadPoolExecutor(max_workers=config.n_workers, thread_name_prefix="mandelzoom") as pool:
        futures = [pool.submit(run_worker, worker, chunk_ids) for worker, chunk_ids in enumerate(assignments)]
        for future in as_completed(futures):
            # A failed chunk aborts the render; the partial grid is never returned.
            future.result()

    total_time = time.perf_counter() - start_time
    timing = _aggregate_timing(worker_stats, total_time)
    chunk_records.sort(key=lambda record: record["chunk_id"])
    return RenderReport(grid=grid, stats=stats, timing=timing, chunks=chunk_records)


def _aggregate_timing(all_stats: List[Dict[str, float]], total_time: float) -> Dict[str, Any]:
    """Aggregate wall-clock timing plus per-worker statistics."""
    worker_records = [
        {"worker": worker, "comp_time": float(stats["comp"]), "chunks": int(stats["chunks"])}
        for worker, stats in enumerate(all_stats)
    ]
    return {
        "wall_time": float(total_time),
        "comp_total": float(sum(record["comp_time"] for record in worker_records)),
        "total_chunks": int(sum(record["chunks"] for record in worker_records)),
        "worker_stats": worker_records,
    }
