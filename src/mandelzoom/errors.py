"""Exceptions raised by the rendering engine."""

from __future__ import annotations


class InvalidDimensionError(ValueError):
    """Image dimensions or supersampling scale that cannot be rendered."""


class WorkerFailure(RuntimeError):
    """A chunk of the grid failed to compute and the render was abandoned."""

    def __init__(self, chunk_id: int, cause: BaseException) -> None:
        super().__init__(f"chunk {chunk_id} failed: {cause!r}")
        self.chunk_id = chunk_id
        self.cause = cause
