"""MPI rendering backend: ranks are the workers, rank 0 assembles the grid."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import numpy as np
from mpi4py import MPI

from .computation import allocate_grid, compute_chunk
from .config import RenderConfig
from .report import GridStatistics, RenderReport
from .scheduling import DynamicScheduler, StaticScheduler
from .viewport import ViewportGeometry, ViewportState

__all__ = ["run_mpi_render"]

# MPI tags
REQUEST_TAG = 10
ASSIGN_TAG = 11
DATA_TAG = 20

ChunkResult = Tuple[int, int, np.ndarray, int, int]


def _init_rank_stats() -> Dict[str, float]:
    return {
        "comp": 0.0,
        "comm_send": 0.0,
        "comm_recv": 0.0,
        "chunks": 0.0,
    }


def _rank_log(rank: int, message: str) -> None:
    """Emit a progress message from a given MPI rank."""
    print(f"[Rank {rank}] {message}", flush=True)


def _compute_chunk_timed(
    comm: MPI.Intracomm,
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None,
    chunk_id: int,
) -> tuple[ChunkResult, float]:
    """Compute a chunk and return it along with elapsed time.

    A failing chunk aborts every rank: a partial grid has no meaningful
    statistics.
    """
    comp_start = MPI.Wtime()
    try:
        result = compute_chunk(config, state, chunk_id, geometry)
    except Exception as exc:
        _rank_log(comm.Get_rank(), f"Chunk {chunk_id} failed: {exc!r} - aborting render")
        comm.Abort(1)
        raise
    return result, MPI.Wtime() - comp_start


def _store_chunk(grid: np.ndarray, start: int, end: int, rows: np.ndarray) -> None:
    grid[start:end, :] = rows


def _receive_worker_chunk(
    comm: MPI.Intracomm,
    worker: int,
    grid: np.ndarray,
    stats: Dict[str, float] | None = None,
) -> None:
    """Receive a chunk produced by a worker and write it into the grid."""
    t0 = MPI.Wtime()
    start, end = comm.recv(source=worker, tag=DATA_TAG)
    rows = comm.recv(source=worker, tag=DATA_TAG)
    _store_chunk(grid, start, end, rows)
    if stats is not None:
        stats["comm_recv"] += MPI.Wtime() - t0


def _assign_chunk(
    comm: MPI.Intracomm,
    scheduler: DynamicScheduler,
    worker: int,
    stats: Dict[str, float] | None = None,
    verbose: bool = False,
) -> bool:
    """Assign the next chunk to a worker, or send shutdown if depleted."""
    chunk_id = scheduler.request_chunk()
    if chunk_id is not None:
        if verbose:
            _rank_log(0, f"Assigning chunk {chunk_id} to worker {worker}")
        payload = chunk_id
    else:
        if verbose:
            _rank_log(0, f"No more chunks - sending shutdown to worker {worker}")
        payload = -1
    t0 = MPI.Wtime()
    comm.send(payload, dest=worker, tag=ASSIGN_TAG)
    if stats is not None:
        stats["comm_send"] += MPI.Wtime() - t0
    return chunk_id is not None


def _send_chunk_payload(
    comm: MPI.Intracomm,
    dest: int,
    start: int,
    end: int,
    rows: np.ndarray,
    stats: Dict[str, float] | None = None,
) -> None:
    """Send chunk row range and payload to the destination rank."""
    t0 = MPI.Wtime()
    comm.send((start, end), dest=dest, tag=DATA_TAG)
    comm.send(rows, dest=dest, tag=DATA_TAG)
    if stats is not None:
        stats["comm_send"] += MPI.Wtime() - t0


def _send_chunk_count(comm: MPI.Intracomm, count: int, stats: Dict[str, float] | None = None) -> None:
    """Tell rank 0 how many chunks this worker is about to send."""
    t0 = MPI.Wtime()
    comm.send(count, dest=0, tag=DATA_TAG)
    if stats is not None:
        stats["comm_send"] += MPI.Wtime() - t0


def _iter_worker_counts(
    comm: MPI.Intracomm,
    size: int,
    stats: Dict[str, float] | None = None,
) -> List[tuple[int, int]]:
    """Collect chunk counts from workers, in rank order."""
    pairs = []
    for worker in range(1, size):
        t0 = MPI.Wtime()
        count = comm.recv(source=worker, tag=DATA_TAG)
        if stats is not None:
            stats["comm_recv"] += MPI.Wtime() - t0
        pairs.append((worker, count))
    return pairs


def _chunk_record(rank: int, chunk_id: int, result: ChunkResult, comp_time: float) -> Dict[str, Any]:
    """Create a uniform chunk metadata record."""
    start, end, _, lowest, highest = result
    return {
        "worker": rank,
        "chunk_id": int(chunk_id),
        "start_row": int(start),
        "end_row": int(end - 1) if end > start else int(end),
        "comp_time": comp_time,
        "lowest": int(lowest),
        "highest": int(highest),
    }


def run_mpi_render(
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None = None,
    *,
    verbose: bool = False,
) -> RenderReport:
    """Execute the render across all ranks of ``COMM_WORLD``.

    Only rank 0 receives the grid and its statistics; other ranks get a
    report with ``grid`` and ``stats`` set to ``None``.
    """
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    size = comm.Get_size()

    start_time = MPI.Wtime()

    if config.schedule == "static":
        grid, local, rank_times, chunk_records = _run_static(comm, config, state, geometry, rank, size, verbose)
    else:
        grid, local, rank_times, chunk_records = _run_dynamic(comm, config, state, geometry, rank, size, verbose)

    # Order-independent combine of every rank's partial extrema.
    lowest = comm.reduce(local.lowest, op=MPI.MIN, root=0)
    highest = comm.reduce(local.highest, op=MPI.MAX, root=0)

    # Excluding time spent gathering timings
    total_time = MPI.Wtime() - start_time

    all_times = comm.gather(rank_times, root=0)
    all_chunks = comm.gather(chunk_records, root=0)

    if rank != 0:
        return RenderReport(None, None, {}, None)

    timing_stats = _aggregate_timing(all_times, total_time)
    records = sorted(
        (record for records in all_chunks for record in records),
        key=lambda record: record["chunk_id"],
    )
    return RenderReport(grid, GridStatistics(int(lowest), int(highest)), timing_stats, records or None)


def _run_static(
    comm: MPI.Intracomm,
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None,
    rank: int,
    size: int,
    verbose: bool,
) -> Tuple[np.ndarray | None, GridStatistics, Dict, List[Dict]]:
    """Static scheduling: pre-assigned chunks."""
    scheduler = StaticScheduler(config, size)
    chunk_ids = scheduler.chunks_for_rank(rank)

    results: List[ChunkResult] = []
    chunk_details: List[Dict] = []
    stats = _init_rank_stats()
    local = GridStatistics.identity(config.iterations)

    for cid in chunk_ids:
        result, single_comp = _compute_chunk_timed(comm, config, state, geometry, cid)
        start, end, _, lowest, highest = result
        if verbose:
            _rank_log(rank, f"Computing chunk {cid} (rows {start}:{end}) took {single_comp:.4f}s [static]")
        stats["comp"] += single_comp
        stats["chunks"] += 1
        local = local.propose(lowest, highest)
        results.append(result)
        chunk_details.append(_chunk_record(rank, cid, result, single_comp))

    grid = _gather_results(comm, config, results, rank, size, stats)
    return grid, local, stats, chunk_details


def _run_dynamic(
    comm: MPI.Intracomm,
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None,
    rank: int,
    size: int,
    verbose: bool,
) -> Tuple[np.ndarray | None, GridStatistics, Dict, List[Dict]]:
    """Dynamic scheduling: on-demand chunk assignment."""
    # Single process - compute all locally
    if size == 1:
        grid = allocate_grid(config)
        chunk_details: List[Dict] = []
        stats = _init_rank_stats()
        local = GridStatistics.identity(config.iterations)

        for chunk_id in range(config.total_chunks):
            result, single_comp = _compute_chunk_timed(comm, config, state, geometry, chunk_id)
            start, end, rows, lowest, highest = result
            if verbose:
                _rank_log(
                    rank,
                    f"Computing chunk {chunk_id} (rows {start}:{end}) took {single_comp:.4f}s "
                    f"[dynamic-single]",
                )
            stats["comp"] += single_comp
            stats["chunks"] += 1
            local = local.propose(lowest, highest)
            _store_chunk(grid, start, end, rows)
            chunk_details.append(_chunk_record(rank, chunk_id, result, single_comp))

        return grid, local, stats, chunk_details

    # Rank 0 is master, others are workers
    if rank == 0:
        grid, stats = _master_dynamic(comm, config, size, verbose)
        return grid, GridStatistics.identity(config.iterations), stats, []
    local, stats, chunk_details = _worker_dynamic(comm, config, state, geometry, verbose)
    return None, local, stats, chunk_details


def _master_dynamic(
    comm: MPI.Intracomm,
    config: RenderConfig,
    size: int,
    verbose: bool,
) -> Tuple[np.ndarray, Dict]:
    """Master rank for dynamic scheduling."""
    scheduler = DynamicScheduler(config)
    grid = allocate_grid(config)
    stats = _init_rank_stats()

    active_workers = size - 1

    def handle_completion(worker: int) -> None:
        nonlocal active_workers
        _receive_worker_chunk(comm, worker, grid, stats)
        if not _assign_chunk(comm, scheduler, worker, stats, verbose):
            active_workers -= 1

    # Initial assignment to all workers
    for worker in range(1, size):
        if not _assign_chunk(comm, scheduler, worker, stats, verbose):
            active_workers -= 1

    status = MPI.Status()

    while active_workers > 0:
        recv_start = MPI.Wtime()
        comm.recv(source=MPI.ANY_SOURCE, tag=REQUEST_TAG, status=status)
        stats["comm_recv"] += MPI.Wtime() - recv_start
        handle_completion(status.Get_source())

    return grid, stats


def _worker_dynamic(
    comm: MPI.Intracomm,
    config: RenderConfig,
    state: ViewportState,
    geometry: ViewportGeometry | None,
    verbose: bool,
) -> Tuple[GridStatistics, Dict, List[Dict]]:
    """Worker rank for dynamic scheduling."""
    rank = comm.Get_rank()
    stats = _init_rank_stats()
    chunk_details: List[Dict] = []
    local = GridStatistics.identity(config.iterations)

    while True:
        recv_start = MPI.Wtime()
        chunk_id = comm.recv(source=0, tag=ASSIGN_TAG)
        stats["comm_recv"] += MPI.Wtime() - recv_start

        if chunk_id == -1:  # Done signal
            if verbose:
                _rank_log(rank, f"Received shutdown signal after {int(stats['chunks'])} chunks")
            break

        result, single_comp = _compute_chunk_timed(comm, config, state, geometry, chunk_id)
        start, end, rows, lowest, highest = result
        if verbose:
            _rank_log(rank, f"Computing chunk {chunk_id} (rows {start}:{end}) took {single_comp:.4f}s")
        stats["comp"] += single_comp
        stats["chunks"] += 1
        local = local.propose(lowest, highest)

        # Send result and request more
        send_start = MPI.Wtime()
        comm.send(None, dest=0, tag=REQUEST_TAG)
        stats["comm_send"] += MPI.Wtime() - send_start
        _send_chunk_payload(comm, dest=0, start=start, end=end, rows=rows, stats=stats)

        chunk_details.append(_chunk_record(rank, chunk_id, result, single_comp))

    return local, stats, chunk_details


def _gather_results(
    comm: MPI.Intracomm,
    config: RenderConfig,
    results: List[ChunkResult],
    rank: int,
    size: int,
    stats: Dict[str, float],
) -> np.ndarray | None:
    """Gather chunk results back to the master rank."""
    if rank == 0:
        grid = allocate_grid(config)
        for start, end, rows, _, _ in results:
            _store_chunk(grid, start, end, rows)

        for worker, count in _iter_worker_counts(comm, size, stats):
            for _ in range(count):
                _receive_worker_chunk(comm, worker, grid, stats)

        return grid

    _send_chunk_count(comm, len(results), stats)
    for start, end, rows, _, _ in results:
        _send_chunk_payload(comm, dest=0, start=start, end=end, rows=rows, stats=stats)
    return None


def _aggregate_timing(all_times: List[Dict], total_time: float) -> Dict:
    """Aggregate wall-clock timing plus per-rank statistics."""
    rank_stats: List[Dict[str, float]] = []
    comp_total = 0.0
    comm_send_total = 0.0
    comm_recv_total = 0.0
    total_chunks = 0

    for rank, stats in enumerate(all_times):
        comp = float(stats.get("comp", 0.0))
        comm_send = float(stats.get("comm_send", 0.0))
        comm_recv = float(stats.get("comm_recv", 0.0))
        chunks = int(stats.get("chunks", 0))

        rank_stats.append(
            {
                "worker": int(rank),
                "comp_time": comp,
                "comm_time": comm_send + comm_recv,
                "comm_send_time": comm_send,
                "comm_recv_time": comm_recv,
                "chunks": chunks,
            }
        )

        comp_total += comp
        comm_send_total += comm_send
        comm_recv_total += comm_recv
        total_chunks += chunks

    return {
        "wall_time": float(total_time),
        "comp_total": comp_total,
        "comm_send_total": comm_send_total,
        "comm_recv_total": comm_recv_total,
        "comm_total": comm_send_total + comm_recv_total,
        "total_chunks": total_chunks,
        "worker_stats": rank_stats,
    }
