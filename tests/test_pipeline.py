from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pytest

from svgraster.cache import CACHE_FILENAME
from svgraster.config import Config, EmptyOpsPolicy, ToolsConfig
from svgraster.errors import (
    DuplicateOutputError,
    ExecutorError,
    InvalidDirectiveError,
    UnknownDensityTierError,
)
from svgraster.pipeline import run_build
from svgraster.workorder import PostProcessStep, Rasterization, VectorConversion


class RecordingExecutor:
    """Executor double that writes placeholder files and records call order."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[str, int]] = []
        self.fail_on = fail_on

    def _record(self, name: str, count: int) -> None:
        self.calls.append((name, count))
        if name == self.fail_on:
            raise ExecutorError(f"{name} exploded")

    def rasterize(self, rasterizations: Sequence[Rasterization]) -> None:
        self._record("rasterize", len(rasterizations))
        for rasterization in rasterizations:
            for output in rasterization.outputs:
                output.path.parent.mkdir(parents=True, exist_ok=True)
                output.path.write_bytes(b"png")

    def convert_to_vector(self, conversions: Sequence[VectorConversion]) -> None:
        self._record("vector", len(conversions))
        for conversion in conversions:
            conversion.output.parent.mkdir(parents=True, exist_ok=True)
            conversion.output.write_text("<vector/>", encoding="utf-8")

    def post_process(self, steps: Sequence[PostProcessStep]) -> None:
        self._record("post-process", len(steps))
        for step in steps:
            assert step.path.exists(), "post-processing ran before rasterization"

    def optimize(self, paths: Sequence[Path]) -> None:
        self._record("optimize", len(paths))


def _project(tmp_path: Path, *names: str) -> Config:
    svg_dir = tmp_path / "svg"
    svg_dir.mkdir()
    for name in names:
        (svg_dir / name).write_text(f"<svg id='{name}'/>", encoding="utf-8")
    return Config(
        input_paths=[svg_dir],
        output_dir=tmp_path / "res",
        cache_dir=tmp_path / "build",
        ops_dir=tmp_path / "build",
        densities=["mdpi", "xhdpi"],
    )


def test_build_runs_batches_in_barrier_order(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24~pad32x32.svg", "arrow.svg")
    executor = RecordingExecutor()

    result = run_build(config, executor)

    assert executor.calls == [("rasterize", 1), ("vector", 1), ("post-process", 2), ("optimize", 2)]
    assert result.executed
    assert (tmp_path / "res" / "drawable-xhdpi" / "icon.png").exists()
    assert (tmp_path / "res" / "drawable" / "arrow.xml").exists()

    cache = json.loads((tmp_path / "build" / CACHE_FILENAME).read_text(encoding="utf-8"))
    assert sorted(cache) == ["arrow.svg", "icon~tw24~pad32x32.svg"]


def test_second_build_skips_unchanged_sources(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg", "logo~th10.svg")
    run_build(config, RecordingExecutor())

    (tmp_path / "svg" / "logo~th10.svg").write_text("<svg changed='1'/>", encoding="utf-8")
    executor = RecordingExecutor()
    result = run_build(config, executor)

    assert [source.file_name for source in result.plan.cached] == ["icon~tw24.svg"]
    assert [source.file_name for source in result.plan.planned] == ["logo~th10.svg"]
    assert executor.calls[0] == ("rasterize", 1)


def test_deleted_output_triggers_regeneration(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg")
    run_build(config, RecordingExecutor())
    (tmp_path / "res" / "drawable-mdpi" / "icon.png").unlink()

    result = run_build(config, RecordingExecutor())

    assert [source.file_name for source in result.plan.planned] == ["icon~tw24.svg"]


def test_nothing_to_do_does_not_call_executor(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg")
    run_build(config, RecordingExecutor())

    executor = RecordingExecutor()
    result = run_build(config, executor)

    assert executor.calls == []
    assert not result.executed
    assert len(result.plan.cached) == 1


def test_force_regenerates_everything(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg")
    run_build(config, RecordingExecutor())

    result = run_build(config.model_copy(update={"force": True}), RecordingExecutor())

    assert len(result.plan.planned) == 1
    assert result.plan.cached == []


def test_executor_failure_leaves_cache_untouched(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24~round.svg")
    executor = RecordingExecutor(fail_on="post-process")

    with pytest.raises(ExecutorError):
        run_build(config, executor)

    assert executor.calls == [("rasterize", 1), ("vector", 0), ("post-process", 2)]
    assert not (tmp_path / "build" / CACHE_FILENAME).exists()


def test_unknown_density_aborts_before_touching_filesystem(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg").model_copy(update={"densities": ["mdpi", "tvdpi"]})
    executor = RecordingExecutor()

    with pytest.raises(UnknownDensityTierError):
        run_build(config, executor)

    assert executor.calls == []
    assert not (tmp_path / "res").exists()
    assert not (tmp_path / "build").exists()


def test_invalid_directive_aborts_run(tmp_path: Path) -> None:
    config = _project(tmp_path, "good~tw24.svg", "bad~pad12.svg")
    executor = RecordingExecutor()

    with pytest.raises(InvalidDirectiveError, match="bad~pad12.svg"):
        run_build(config, executor)

    assert executor.calls == []


def test_skip_policy_ignores_sources_without_ops(tmp_path: Path) -> None:
    config = _project(tmp_path, "plain.svg", "icon~tw24.svg").model_copy(
        update={"empty_ops_policy": EmptyOpsPolicy.SKIP}
    )

    result = run_build(config, RecordingExecutor())

    assert [source.file_name for source in result.plan.ignored] == ["plain.svg"]
    cache = json.loads((tmp_path / "build" / CACHE_FILENAME).read_text(encoding="utf-8"))
    assert list(cache) == ["icon~tw24.svg"]


def test_override_ops_apply_to_every_source(tmp_path: Path) -> None:
    config = _project(tmp_path, "a~tw10.svg", "b.svg").model_copy(update={"override_ops": "th16~mipmap"})

    result = run_build(config, dry_run=True)

    sizes = [(output.path.parent.name, output.size) for output in result.work_order.raster_outputs]
    assert sizes == [
        ("mipmap-mdpi", ":16"),
        ("mipmap-xhdpi", ":32"),
        ("mipmap-mdpi", ":16"),
        ("mipmap-xhdpi", ":32"),
    ]


def test_dry_run_plans_without_executing(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg")
    executor = RecordingExecutor()

    result = run_build(config, executor, dry_run=True)

    assert executor.calls == []
    assert not result.executed
    assert len(result.work_order.rasterizations) == 1
    assert not (tmp_path / "build").exists()


def test_progress_callback_reports_each_stage(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg").model_copy(
        update={"tools": ToolsConfig(optimize=False)}
    )
    stages: list[tuple[str, int]] = []

    result = run_build(config, RecordingExecutor(), on_progress=lambda name, count: stages.append((name, count)))

    assert stages == [("rasterize", 1), ("vector", 0), ("post-process", 0), ("optimize", 0)]
    assert result.optimized == []


def test_cache_write_failure_is_reported_not_raised(tmp_path: Path) -> None:
    config = _project(tmp_path, "icon~tw24.svg")
    blocker = tmp_path / "blocked"
    blocker.write_text("file", encoding="utf-8")
    config = config.model_copy(update={"cache_dir": blocker})

    result = run_build(config, RecordingExecutor())

    assert result.executed
    assert len(result.warnings) == 1
    assert "Unable to write cache" in result.warnings[0]


def test_same_file_name_in_two_roots_is_rejected(tmp_path: Path) -> None:
    config = _project(tmp_path, "logo~tw24~bg_80ff0000.svg")
    other = tmp_path / "more-svg"
    other.mkdir()
    (other / "logo~tw24~bg_80ff0000.svg").write_text("<svg id='other'/>", encoding="utf-8")
    config = config.model_copy(update={"input_paths": [*config.input_paths, other], "densities": ["mdpi"]})
    executor = RecordingExecutor()

    with pytest.raises(DuplicateOutputError) as excinfo:
        run_build(config, executor)

    assert excinfo.value.output == tmp_path / "res" / "drawable-mdpi" / "logo.png"
    assert excinfo.value.first == tmp_path / "svg" / "logo~tw24~bg_80ff0000.svg"
    assert excinfo.value.second == other / "logo~tw24~bg_80ff0000.svg"
    assert executor.calls == []


def test_names_sanitizing_to_the_same_resource_are_rejected(tmp_path: Path) -> None:
    config = _project(tmp_path, "A-b~tw24~round.svg", "a_b~th10.svg")

    with pytest.raises(DuplicateOutputError, match="a_b~th10.svg"):
        run_build(config, dry_run=True)


def test_raster_and_vector_outputs_with_same_base_name_coexist(tmp_path: Path) -> None:
    config = _project(tmp_path, "arrow.svg", "arrow~tw24.svg")

    result = run_build(config, dry_run=True)

    assert len(result.plan.planned) == 2
    assert len(result.work_order.vector_conversions) == 1
