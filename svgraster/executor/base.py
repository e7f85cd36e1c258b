"""Executor capability consumed by the build pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from ..workorder.models import PostProcessStep, Rasterization, VectorConversion


class Executor(Protocol):
    """Turns work-order batches into files on disk.

    Each method either completes its whole batch or raises
    :class:`~svgraster.errors.ExecutorError`.
    """

    def rasterize(self, rasterizations: Sequence[Rasterization]) -> None:
        ...

    def post_process(self, steps: Sequence[PostProcessStep]) -> None:
        ...

    def convert_to_vector(self, conversions: Sequence[VectorConversion]) -> None:
        ...

    def optimize(self, paths: Sequence[Path]) -> None:
        ...
