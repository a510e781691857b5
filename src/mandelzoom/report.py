"""Structured results returned from a render."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass(frozen=True)
class GridStatistics:
    """Lowest and highest escape counts written during one render."""

    lowest: int
    highest: int

    @classmethod
    def identity(cls, iterations: int) -> "GridStatistics":
        """Starting point of the reduction: lowest at the sentinel, highest at zero."""
        return cls(lowest=int(iterations), highest=0)

    def merge(self, other: "GridStatistics") -> "GridStatistics":
        return GridStatistics(min(self.lowest, other.lowest), max(self.highest, other.highest))

    def propose(self, lowest: int, highest: int) -> "GridStatistics":
        return self.merge(GridStatistics(int(lowest), int(highest)))

    @property
    def degenerate(self) -> bool:
        return self.highest == self.lowest


@dataclass(frozen=True)
class RenderReport:
    """Container for outputs produced by ``render`` and ``run_mpi_render``."""

    grid: Optional[np.ndarray]
    stats: Optional[GridStatistics]
    timing: Dict[str, Any]
    chunks: Optional[List[Dict[str, Any]]]

    def copy_chunks(self) -> Optional[List[Dict[str, Any]]]:
        if self.chunks is None:
            return None
        return [record.copy() for record in self.chunks]
