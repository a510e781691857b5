"""Configuration objects and YAML loading for Mandelbrot renders."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from itertools import product
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from .errors import InvalidDimensionError
from .viewport import DEFAULT_GEOMETRY, ViewportState, iteration_budget

SCHEDULES = ("static", "dynamic")
BACKENDS = ("threads", "mpi")


def _check_choice(name: str, value: str, choices: Iterable[str]) -> None:
    if value not in choices:
        raise ValueError(f"Unknown {name} {value!r}, expected one of {', '.join(choices)}")


@dataclass(frozen=True)
class RenderConfig:
    """Runtime configuration for a single render."""

    width: int
    height: Optional[int] = None
    n_workers: int = 4
    chunk_size: int = 16
    schedule: str = "static"  # 'static' or 'dynamic'
    backend: str = "threads"  # 'threads' or 'mpi'
    scale: int = 1
    center: Tuple[float, float] = (-0.25, 0.0)
    zoom: float = 1.0

    def __post_init__(self) -> None:
        if self.height is None:
            object.__setattr__(self, "height", DEFAULT_GEOMETRY.height_for(self.width))
        if self.width < 2 or self.height < 2:
            raise InvalidDimensionError(
                f"image must be at least 2x2 pixels, got {self.width}x{self.height}"
            )
        if self.scale < 1:
            raise InvalidDimensionError(f"scale must be a positive integer, got {self.scale!r}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {self.n_workers!r}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size!r}")
        _check_choice("schedule", self.schedule, SCHEDULES)
        _check_choice("backend", self.backend, BACKENDS)

    @property
    def render_width(self) -> int:
        return self.width * self.scale

    @property
    def render_height(self) -> int:
        return self.height * self.scale

    @property
    def iterations(self) -> int:
        return iteration_budget(self.render_width, self.scale)

    @property
    def total_chunks(self) -> int:
        return (self.render_height + self.chunk_size - 1) // self.chunk_size

    @property
    def initial_state(self) -> ViewportState:
        return ViewportState(center=self.center, zoom=self.zoom)

    @property
    def run_name(self) -> str:
        """Generate unique run name embedding all parameters."""
        name = (
            f"{self.backend}_{self.schedule}_n{self.n_workers}_"
            f"c{self.chunk_size}_{self.width}x{self.height}"
        )
        if self.scale > 1:
            name += f"_s{self.scale}"
        return name

    @property
    def image_size(self) -> str:
        return f"{self.width}x{self.height}"

    def to_dict(self) -> dict:
        """Convert to dictionary for MLflow logging."""
        return asdict(self)

    def to_cli_args(self) -> List[str]:
        """Convert config to CLI arguments."""
        return [
            f"--backend={self.backend}",
            f"--workers={self.n_workers}",
            f"--chunk-size={self.chunk_size}",
            f"--schedule={self.schedule}",
            f"--image-size={self.image_size}",
            f"--scale={self.scale}",
            f"--center={self.center[0]!r}:{self.center[1]!r}",
            f"--zoom={self.zoom!r}",
        ]


DEFAULT_RENDER_CONFIG = RenderConfig(width=1024)


def default_render_config(**overrides: object) -> RenderConfig:
    """Return the canonical default config optionally overridden with kwargs."""
    overrides = _coerce_dimensions(overrides)
    if "width" in overrides and "height" not in overrides:
        overrides["height"] = None
    return replace(DEFAULT_RENDER_CONFIG, **overrides)


def load_sweep_configs(yaml_path: str | Path) -> List[RenderConfig]:
    """Load YAML config and generate all parameter sweep combinations.

    Supports a top-level ``sweep`` as well as named suites nested under
    ``experiments``.
    """
    with open(yaml_path) as f:
        cfg = yaml.safe_load(f) or {}

    global_defaults: Dict[str, object] = cfg.get("defaults", {}) or {}

    if "experiments" in cfg:
        configs: List[RenderConfig] = []
        for exp in cfg.get("experiments") or []:
            sweep = exp.get("sweep")
            if not sweep:
                continue
            exp_defaults = {**global_defaults, **(exp.get("defaults", {}) or {})}
            configs.extend(_expand_sweep(exp_defaults, sweep))
        return configs

    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    return _expand_sweep(global_defaults, sweep)


def get_config_by_index(yaml_path: str | Path, index: int) -> RenderConfig:
    """Get a specific config by index from sweep."""
    configs = load_sweep_configs(yaml_path)
    if index < 0 or index >= len(configs):
        raise ValueError(f"Config index {index} out of range [0, {len(configs) - 1}]")
    return configs[index]


def load_named_sweep_configs(
    yaml_path: str | Path,
    suite: str | None = None,
) -> List[tuple[str, List[RenderConfig]]]:
    with open(yaml_path) as f:
        cfg = yaml.safe_load(f) or {}

    defaults: Dict[str, object] = cfg.get("defaults", {}) or {}
    experiments = cfg.get("experiments")
    results: List[tuple[str, List[RenderConfig]]] = []

    if experiments:
        for exp in experiments:
            name = exp.get("name")
            if not name:
                continue
            if suite and name != suite:
                continue
            sweep = exp.get("sweep") or {}
            exp_defaults = {**defaults, **(exp.get("defaults", {}) or {})}
            results.append((name, _expand_sweep(exp_defaults, sweep)))
        if suite and not results:
            raise ValueError(f"Suite '{suite}' not found in {yaml_path}")
        return results

    sweep: Dict[str, object] = cfg.get("sweep", {}) or {}
    label = cfg.get("name") or Path(yaml_path).stem
    return [(label, _expand_sweep(defaults, sweep))]


def parse_image_size(value: str) -> Tuple[int, int]:
    width_str, height_str = value.lower().split("x")
    return int(width_str.strip()), int(height_str.strip())


def parse_center(value: str) -> Tuple[float, float]:
    real_str, imag_str = value.split(":")
    return float(real_str), float(imag_str)


def _build_render_config(raw_data: Dict[str, object]) -> RenderConfig:
    data = _coerce_dimensions(dict(raw_data))
    if "center" in data:
        data["center"] = tuple(map(float, data["center"]))
    if "zoom" in data:
        data["zoom"] = float(data["zoom"])
    return RenderConfig(**data)  # type: ignore[arg-type]


def _expand_sweep(defaults: Dict[str, object], sweep: Dict[str, object]) -> List[RenderConfig]:
    """Expand sweep definition into RenderConfig instances."""
    configs: List[RenderConfig] = []

    views = sweep.get("views")
    param_grid = {k: sweep[k] for k in sweep if k not in {"views", "image_shape"}}
    shape_options = sweep.get("image_shape")
    keys = list(param_grid.keys())

    for view in views or [None]:
        combos = product(*[param_grid[k] for k in keys]) if keys else [()]
        for combo in combos:
            data = {**defaults, **dict(zip(keys, combo))}
            if view is not None:
                data.update(_normalize_view_entry(view))
            configs.extend(_expand_shapes(data, shape_options))

    return configs


def _normalize_view_entry(entry: object) -> Dict[str, object]:
    if isinstance(entry, dict):
        if "center" not in entry:
            raise ValueError("view dict must include 'center'")
        return {"center": tuple(map(float, entry["center"])), "zoom": float(entry.get("zoom", 1.0))}
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        center, zoom = entry
        return {"center": tuple(map(float, center)), "zoom": float(zoom)}
    raise ValueError(f"Unsupported view specification: {entry!r}")


def _coerce_dimensions(data: Dict[str, object]) -> Dict[str, object]:
    result = dict(data)
    image = result.pop("image_size", None)
    if image is not None:
        width, height = _normalize_shape_entry(image)
        result.setdefault("width", width)
        result.setdefault("height", height)
    shape = result.pop("image_shape", None)
    if shape is not None:
        width, height = _normalize_shape_entry(shape)
        result.setdefault("width", width)
        result.setdefault("height", height)
    for key in ("width", "height", "n_workers", "chunk_size", "scale"):
        if result.get(key) is not None:
            result[key] = int(result[key])
    return result


def _normalize_shape_entry(entry: object) -> Tuple[int, int]:
    if isinstance(entry, dict):
        width = entry.get("width")
        height = entry.get("height")
        if width is None or height is None:
            raise ValueError("image_shape dict must include 'width' and 'height'")
        return int(width), int(height)
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return int(entry[0]), int(entry[1])
    if isinstance(entry, str):
        return parse_image_size(entry)
    raise ValueError(f"Unsupported image shape specification: {entry!r}")


def _expand_shapes(base: Dict[str, object], shape_options: object) -> List[RenderConfig]:
    if not shape_options:
        return [_build_render_config(base)]

    shapes: Iterable[Tuple[int, int]]
    if isinstance(shape_options, (list, tuple)):
        shapes = [_normalize_shape_entry(opt) for opt in shape_options]
    else:
        shapes = [_normalize_shape_entry(shape_options)]

    return [_build_render_config({**base, "width": width, "height": height}) for width, height in shapes]
