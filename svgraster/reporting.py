"""Build reporting helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from .pipeline import BuildResult

REPORT_FILENAME = "build-report.json"


class SourceStats(BaseModel):
    discovered: int
    planned: int
    cached: int
    ignored: int


class WorkStats(BaseModel):
    rasterizations: int
    raster_outputs: int
    post_processing_steps: int
    vector_conversions: int
    optimized_images: int


class BuildReport(BaseModel):
    generated_at: datetime
    duration_seconds: float
    densities: list[str]
    executed: bool
    sources: SourceStats
    work: WorkStats
    warnings: list[str] = Field(default_factory=list)


def build_source_stats(result: BuildResult) -> SourceStats:
    plan = result.plan
    return SourceStats(
        discovered=plan.discovered,
        planned=len(plan.planned),
        cached=len(plan.cached),
        ignored=len(plan.ignored),
    )


def build_work_stats(result: BuildResult) -> WorkStats:
    order = result.work_order
    return WorkStats(
        rasterizations=len(order.rasterizations),
        raster_outputs=len(order.raster_outputs),
        post_processing_steps=len(order.post_processing),
        vector_conversions=len(order.vector_conversions),
        optimized_images=len(result.optimized),
    )


def assemble_report(result: BuildResult, *, duration_seconds: float) -> BuildReport:
    return BuildReport(
        generated_at=datetime.now(timezone.utc),
        duration_seconds=duration_seconds,
        densities=[tier.name for tier in result.plan.tiers],
        executed=result.executed,
        sources=build_source_stats(result),
        work=build_work_stats(result),
        warnings=list(result.warnings),
    )


def write_report(report: BuildReport, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / REPORT_FILENAME
    with target.open("w", encoding="utf-8") as handle:
        json.dump(report.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
    return target
