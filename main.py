from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mandelzoom.config import default_render_config, load_named_sweep_configs, parse_center
from mandelzoom.errors import InvalidDimensionError
from mandelzoom.execution import run_single_render, run_sweep


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Explore and export the Mandelbrot set.")
    parser.add_argument("width", type=int, nargs="?", default=1024, help="Window width in pixels")
    parser.add_argument("--height", type=int, help="Window height (default keeps the 3.5:2.4 aspect)")
    parser.add_argument("--workers", type=int, default=4, help="Number of render workers (or MPI ranks)")
    parser.add_argument("--chunk-size", type=int, default=16, help="Rows per unit of work")
    parser.add_argument("--schedule", choices=["static", "dynamic"], default="static")
    parser.add_argument("--backend", choices=["threads", "mpi"], default="threads")
    parser.add_argument("--center", type=str, help="Initial center as real:imag")
    parser.add_argument("--zoom", type=float, help="Initial zoom")
    parser.add_argument("--export", type=int, metavar="SCALE", help="Export one supersampled PNG and exit")
    parser.add_argument("--export-scale", type=int, default=4, help="Supersampling used by the 's' key")
    parser.add_argument("--output", type=str, default=".", help="Directory for exported images")
    parser.add_argument("--headless", action="store_true", help="Render once and log instead of opening a window")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every chunk")

    parser.add_argument("--sweep", type=str, help="Path to sweep YAML file")
    parser.add_argument("--suite", type=str, help="Name of suite/experiment within sweep file")
    parser.add_argument("--list-suites", action="store_true", help="List suites in sweep file")
    parser.add_argument("--task-id", type=int, help="Run specific config index (for HPC arrays)")

    # Direct run parameters used by sweep subprocesses (hidden from help)
    parser.add_argument("--image-size", type=str, help=argparse.SUPPRESS)
    parser.add_argument("--scale", type=int, default=1, help=argparse.SUPPRESS)

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Handle sweep runs
    if args.sweep:
        sweep_path = Path(args.sweep)

        if args.list_suites:
            suites = load_named_sweep_configs(sweep_path)
            for name, configs in suites:
                label = name or sweep_path.stem
                print(f"{label}: {len(configs)} configurations")
            return 0

        if args.task_id is not None and args.suite is None:
            sys.exit("ERROR: --task-id requires --suite")

        try:
            suites = load_named_sweep_configs(sweep_path, args.suite)
        except (InvalidDimensionError, ValueError) as exc:
            sys.exit(f"ERROR: {exc}")

        exit_code = 0
        for suite_name, configs in suites:
            descriptor = f"{sweep_path}::{suite_name}" if suite_name else str(sweep_path)
            rc = run_sweep(configs, suite_name, args.task_id, descriptor, verbose=args.verbose)
            exit_code = exit_code or rc
        return exit_code

    if args.suite or args.list_suites or args.task_id is not None:
        sys.exit("ERROR: --suite, --list-suites and --task-id require --sweep")

    overrides = {
        "n_workers": args.workers,
        "chunk_size": args.chunk_size,
        "schedule": args.schedule,
        "backend": args.backend,
        "scale": args.scale,
    }
    if args.image_size:
        overrides["image_size"] = args.image_size
    else:
        overrides["width"] = args.width
        overrides["height"] = args.height
    if args.center:
        overrides["center"] = parse_center(args.center)
    if args.zoom is not None:
        overrides["zoom"] = args.zoom

    try:
        config = default_render_config(**overrides)
    except (InvalidDimensionError, ValueError) as exc:
        sys.exit(f"ERROR: {exc}")

    if args.export is not None:
        from mandelzoom.export import export_image

        try:
            export_image(config, config.initial_state, args.export, args.output)
        except InvalidDimensionError as exc:
            sys.exit(f"ERROR: {exc}")
        return 0

    if args.headless:
        run_single_render(config, None, verbose=args.verbose)
        return 0

    from mandelzoom.viewer import run_viewer

    run_viewer(config, export_scale=args.export_scale, output_dir=args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
