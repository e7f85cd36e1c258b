"""Resolve decoded directives into per-density outputs and work orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..config import EmptyOpsPolicy, SizelessPolicy
from ..densities import DensityTier
from ..directives import (
    Background,
    Mipmap,
    Pad,
    Round,
    SizeDirective,
    TargetHeight,
    TargetWidth,
    decode_all,
)
from ..errors import MissingDirectivesError
from ..sources import SourceItem
from .models import (
    BackgroundOp,
    PaddingOp,
    PostProcessStep,
    RasterOutput,
    Rasterization,
    RoundOp,
    VectorConversion,
    WorkOrder,
)

logger = logging.getLogger(__name__)

RASTER_EXTENSION = ".png"
VECTOR_EXTENSION = ".xml"
VECTOR_DIRECTORY = "drawable"


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Run-wide settings the builder needs besides the source itself."""

    output_dir: Path
    empty_ops_policy: EmptyOpsPolicy = EmptyOpsPolicy.VECTOR
    sizeless_policy: SizelessPolicy = SizelessPolicy.UNSIZED


@dataclass(slots=True)
class ResolvedDirectives:
    """Directives of one source folded into last-write-wins settings."""

    size: SizeDirective | None = None
    pad: Pad | None = None
    background: Background | None = None
    round: bool = False
    mipmap: bool = False

    @property
    def has_post_processing(self) -> bool:
        return self.pad is not None or self.background is not None or self.round

    @property
    def has_raster_ops(self) -> bool:
        return self.size is not None or self.has_post_processing


def resolve_directives(source: SourceItem) -> ResolvedDirectives:
    resolved = ResolvedDirectives()
    for directive in decode_all(source.ops, source=source.file_name):
        if isinstance(directive, (TargetWidth, TargetHeight)):
            resolved.size = directive
        elif isinstance(directive, Pad):
            resolved.pad = directive
        elif isinstance(directive, Background):
            resolved.background = directive
        elif isinstance(directive, Round):
            resolved.round = True
        elif isinstance(directive, Mipmap):
            resolved.mipmap = True
    return resolved


def raster_path(output_dir: Path, base_name: str, density: str, *, mipmap: bool) -> Path:
    directory = "mipmap" if mipmap else "drawable"
    return output_dir / f"{directory}-{density}" / f"{base_name}{RASTER_EXTENSION}"


def vector_path(output_dir: Path, base_name: str) -> Path:
    return output_dir / VECTOR_DIRECTORY / f"{base_name}{VECTOR_EXTENSION}"


def size_spec(directive: SizeDirective, tier: DensityTier) -> str:
    """Return the ``width:height`` spec with the aspect-derived side left blank."""
    pixels = tier.px(directive.dp)
    if isinstance(directive, TargetWidth):
        return f"{pixels}:"
    return f":{pixels}"


def build_work_order(
    source: SourceItem,
    tiers: Sequence[DensityTier],
    options: BuildOptions,
) -> WorkOrder:
    """Compute every output one source needs across ``tiers``.

    Raises:
        InvalidDirectiveError: When a token of the source is malformed.
        MissingDirectivesError: When a policy configured as ``error`` is hit.
    """
    resolved = resolve_directives(source)
    order = WorkOrder()

    if not resolved.has_raster_ops:
        return _without_raster_ops(source, options, order)

    if resolved.size is None:
        if options.sizeless_policy is SizelessPolicy.SKIP:
            logger.warning("Skipping %s: post-processing requested without tw/th", source.path)
            return order
        if options.sizeless_policy is SizelessPolicy.ERROR:
            raise MissingDirectivesError(source.path, "post-processing requested without a tw/th directive")

    outputs: list[RasterOutput] = []
    for tier in tiers:
        path = raster_path(options.output_dir, source.base_name, tier.name, mipmap=resolved.mipmap)
        size = size_spec(resolved.size, tier) if resolved.size is not None else None
        outputs.append(RasterOutput(path=path, density=tier.name, size=size))
    order.rasterizations.append(Rasterization(source=source.path, outputs=tuple(outputs)))

    if resolved.pad is not None:
        pad = resolved.pad
        order.post_processing.extend(
            PostProcessStep(
                path=output.path,
                density=tier.name,
                operation=PaddingOp(width=tier.px(pad.width_dp), height=tier.px(pad.height_dp)),
            )
            for output, tier in zip(outputs, tiers)
        )

    if resolved.background is not None:
        background = BackgroundOp(rrggbb=resolved.background.rrggbb, alpha=resolved.background.alpha)
        order.post_processing.extend(
            PostProcessStep(path=output.path, density=output.density, operation=background)
            for output in outputs
        )

    if resolved.round:
        order.post_processing.extend(
            PostProcessStep(path=output.path, density=output.density, operation=RoundOp())
            for output in outputs
        )

    return order


def _without_raster_ops(source: SourceItem, options: BuildOptions, order: WorkOrder) -> WorkOrder:
    policy = options.empty_ops_policy
    if policy is EmptyOpsPolicy.SKIP:
        logger.warning("Skipping file without ops: %s", source.path)
        return order
    if policy is EmptyOpsPolicy.ERROR:
        raise MissingDirectivesError(source.path, "no size or post-processing directive found")

    order.vector_conversions.append(
        VectorConversion(source=source.path, output=vector_path(options.output_dir, source.base_name))
    )
    return order
