"""Run driver: discover sources, consult the cache, plan and execute work orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .cache import BuildCache
from .config import Config
from .densities import DensityTier, resolve_tiers
from .errors import CacheWriteError, DuplicateOutputError
from .executor import Executor, SubprocessExecutor
from .sources import SourceItem, discover_sources, parse_source
from .workorder import BuildOptions, WorkOrder, build_work_order

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BuildPlan:
    """Sources sorted by what the run has to do with them."""

    tiers: tuple[DensityTier, ...]
    work_order: WorkOrder = field(default_factory=WorkOrder)
    planned: list[SourceItem] = field(default_factory=list)
    cached: list[SourceItem] = field(default_factory=list)
    ignored: list[SourceItem] = field(default_factory=list)

    @property
    def discovered(self) -> int:
        return len(self.planned) + len(self.cached) + len(self.ignored)


@dataclass(slots=True)
class BuildResult:
    """Outcome of a build run."""

    plan: BuildPlan
    executed: bool = False
    optimized: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def work_order(self) -> WorkOrder:
        return self.plan.work_order


def plan_build(config: Config, cache: BuildCache, tiers: tuple[DensityTier, ...]) -> BuildPlan:
    """Resolve every discovered source into work or a cache hit.

    Raises:
        InvalidDirectiveError: On the first malformed directive.
        DuplicateOutputError: When two sources resolve to the same output file.
        MissingDirectivesError: When a policy configured as ``error`` is hit.
    """
    options = BuildOptions(
        output_dir=config.output_dir,
        empty_ops_policy=config.empty_ops_policy,
        sizeless_policy=config.sizeless_policy,
    )
    plan = BuildPlan(tiers=tiers)
    owners: dict[Path, Path] = {}

    for path in discover_sources(config.input_paths):
        source = parse_source(path, config.override_ops)
        order = build_work_order(source, tiers, options)
        if order.is_empty:
            plan.ignored.append(source)
            continue
        expected = order.expected_outputs()
        for output in expected:
            owner = owners.setdefault(output, source.path)
            if owner != source.path:
                raise DuplicateOutputError(output, owner, source.path)
        if cache.should_skip(source, expected, force=config.force):
            logger.info("Up to date: %s", source.path)
            plan.cached.append(source)
            continue
        plan.planned.append(source)
        plan.work_order.extend(order)

    return plan


def run_build(
    config: Config,
    executor: Executor | None = None,
    *,
    cache: BuildCache | None = None,
    dry_run: bool = False,
    on_progress: Callable[[str, int], None] | None = None,
) -> BuildResult:
    """Plan and execute a build.

    Density names are validated before anything touches the filesystem. The
    cache is only updated once every batch has completed; any executor error
    propagates and leaves the persisted cache untouched.

    When provided, ``on_progress`` receives the stage name and the number of
    items in that stage before the stage starts.
    """
    tiers = resolve_tiers(config.densities)
    cache = cache if cache is not None else BuildCache.for_directory(config.cache_dir)

    plan = plan_build(config, cache, tiers)
    result = BuildResult(plan=plan)
    if dry_run or not plan.planned:
        return result

    executor = executor if executor is not None else SubprocessExecutor(config.tools, config.ops_dir)
    order = plan.work_order

    def _stage(name: str, count: int) -> None:
        logger.info("%s: %d item(s)", name, count)
        if on_progress is not None:
            on_progress(name, count)

    _stage("rasterize", len(order.rasterizations))
    executor.rasterize(order.rasterizations)

    _stage("vector", len(order.vector_conversions))
    executor.convert_to_vector(order.vector_conversions)

    _stage("post-process", len(order.post_processing))
    executor.post_process(order.post_processing)

    result.optimized = order.optimization_targets() if config.tools.optimize else []
    _stage("optimize", len(result.optimized))
    executor.optimize(result.optimized)
    result.executed = True

    for source in plan.planned:
        cache.record_success(source)
    try:
        cache.persist()
    except CacheWriteError as exc:
        logger.warning("%s", exc)
        result.warnings.append(str(exc))

    return result
