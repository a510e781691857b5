"""Helper script to run MPI render and save the grid and its statistics."""

import sys

import numpy as np
from mpi4py import MPI

from mandelzoom.config import load_sweep_configs
from mandelzoom.mpi import run_mpi_render

try:
    config_file = sys.argv[1]
    config_idx = int(sys.argv[2])
    output_file = sys.argv[3]

    config = load_sweep_configs(config_file)[config_idx]
    report = run_mpi_render(config, config.initial_state)

    if MPI.COMM_WORLD.rank == 0:
        np.savez(output_file, grid=report.grid, lowest=report.stats.lowest, highest=report.stats.highest)

    sys.exit(0)

except Exception as e:
    if MPI.COMM_WORLD.rank == 0:
        print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)
