"""Work orders handed from the planner to an executor."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class RasterOutput(BaseModel):
    """A PNG to render for one density tier."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(description="Destination PNG.")
    density: str = Field(description="Density tier name, e.g. 'xhdpi'.")
    size: str | None = Field(
        default=None,
        description="svgexport size spec: '<px>:' for width, ':<px>' for height, None for native size.",
    )


class Rasterization(BaseModel):
    """Render one SVG into several PNG outputs in a single tool invocation."""

    model_config = ConfigDict(frozen=True)

    source: Path
    outputs: tuple[RasterOutput, ...] = Field(default_factory=tuple)


class PaddingOp(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["padding"] = "padding"
    width: int = Field(ge=0, description="Final canvas width in pixels.")
    height: int = Field(ge=0, description="Final canvas height in pixels.")


class BackgroundOp(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["background"] = "background"
    rrggbb: str
    alpha: str = ""

    @property
    def color(self) -> str:
        return f"#{self.rrggbb}{self.alpha}"


class RoundOp(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["round"] = "round"


PostOperation = Annotated[Union[PaddingOp, BackgroundOp, RoundOp], Field(discriminator="kind")]


class PostProcessStep(BaseModel):
    """In-place edit of an already rasterized PNG."""

    model_config = ConfigDict(frozen=True)

    path: Path
    density: str
    operation: PostOperation


class VectorConversion(BaseModel):
    """Convert an SVG straight into an Android VectorDrawable."""

    model_config = ConfigDict(frozen=True)

    source: Path
    output: Path


class WorkOrder(BaseModel):
    """Batches of work for one or more sources.

    Rasterizations and vector conversions must finish before any
    post-processing step touching the same path, and post-processing must
    finish before optimization.
    """

    rasterizations: list[Rasterization] = Field(default_factory=list)
    post_processing: list[PostProcessStep] = Field(default_factory=list)
    vector_conversions: list[VectorConversion] = Field(default_factory=list)

    def extend(self, other: "WorkOrder") -> None:
        self.rasterizations.extend(other.rasterizations)
        self.post_processing.extend(other.post_processing)
        self.vector_conversions.extend(other.vector_conversions)

    @property
    def is_empty(self) -> bool:
        return not (self.rasterizations or self.post_processing or self.vector_conversions)

    @property
    def raster_outputs(self) -> list[RasterOutput]:
        return [output for rasterization in self.rasterizations for output in rasterization.outputs]

    def expected_outputs(self) -> list[Path]:
        """Every file this work order is expected to leave on disk."""
        return _unique(
            [output.path for output in self.raster_outputs]
            + [step.path for step in self.post_processing]
            + [conversion.output for conversion in self.vector_conversions]
        )

    def optimization_targets(self) -> list[Path]:
        """Distinct PNGs produced by rasterization or touched by post-processing."""
        return _unique(
            [output.path for output in self.raster_outputs]
            + [step.path for step in self.post_processing]
        )

    def output_directories(self) -> list[Path]:
        return _unique(path.parent for path in self.expected_outputs())


def _unique(paths: Iterable[Path]) -> list[Path]:
    seen: set[Path] = set()
    ordered: list[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered
