from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from svgraster.config import (
    Config,
    EmptyOpsPolicy,
    PostProcessor,
    SizelessPolicy,
    ToolsConfig,
    load_config,
)
from svgraster.densities import DEFAULT_DENSITIES


def _write_project_config(root: Path) -> Path:
    config_text = (
        "input_paths:\n"
        "  - art/icons\n"
        "  - art/launcher\n"
        "output_dir: app/src/main/res-gen\n"
        "cache_dir: .cache\n"
        "ops_dir: .cache/ops\n"
        "densities: mdpi, xhdpi xxhdpi\n"
        "override_ops: '  '\n"
        "empty_ops_policy: skip\n"
        "sizeless_policy: error\n"
        "tools:\n"
        "  convert: magick\n"
        "  post_processor: pillow\n"
        "  optimize: false\n"
    )
    cfg_path = root / "svgraster.yml"
    cfg_path.write_text(config_text, encoding="utf-8")
    return cfg_path


def test_load_config_resolves_paths_relative_to_config_directory(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    _write_project_config(project)

    # Pass a directory path; loader should find svgraster.yml inside it.
    cfg = load_config(project)

    assert cfg.input_paths == [(project / "art" / "icons").resolve(), (project / "art" / "launcher").resolve()]
    assert cfg.output_dir == (project / "app" / "src" / "main" / "res-gen").resolve()
    assert cfg.cache_dir == (project / ".cache").resolve()
    assert cfg.ops_dir == (project / ".cache" / "ops").resolve()

    assert cfg.densities == ["mdpi", "xhdpi", "xxhdpi"]
    assert cfg.override_ops is None
    assert cfg.empty_ops_policy is EmptyOpsPolicy.SKIP
    assert cfg.sizeless_policy is SizelessPolicy.ERROR
    assert cfg.tools.convert == "magick"
    assert cfg.tools.post_processor is PostProcessor.PILLOW
    assert cfg.tools.optimize is False
    assert cfg.tools.svgexport == "svgexport"


def test_load_config_accepts_config_file_path(tmp_path: Path) -> None:
    project = tmp_path / "appproj"
    project.mkdir()
    config_file = _write_project_config(project)

    cfg = load_config(config_file)
    assert cfg.output_dir == (project / "app" / "src" / "main" / "res-gen").resolve()


def test_load_config_uses_defaults_when_directory_has_no_config(tmp_path: Path) -> None:
    project = tmp_path / "emptyproj"
    project.mkdir()

    cfg = load_config(project)

    # Defaults anchored to the provided directory
    assert cfg.input_paths == [(project / "app" / "src" / "main" / "svg-png").resolve()]
    assert cfg.output_dir == (project / "app" / "src" / "main" / "generated-res").resolve()
    assert cfg.cache_dir == (project / "app" / "build").resolve()
    assert cfg.ops_dir == (project / "app" / "build").resolve()
    assert cfg.densities == list(DEFAULT_DENSITIES)
    assert cfg.empty_ops_policy is EmptyOpsPolicy.VECTOR
    assert cfg.sizeless_policy is SizelessPolicy.UNSIZED
    assert cfg.force is False


def test_load_config_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    config_file = tmp_path / "svgraster.yml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="expected a mapping"):
        load_config(config_file)


def test_single_input_path_string_is_wrapped() -> None:
    cfg = Config(input_paths="svg")
    assert cfg.input_paths == [Path("svg")]


def test_vector_command_requires_both_placeholders() -> None:
    with pytest.raises(ValidationError):
        ToolsConfig(vector_command=["s2v", "{source}"])
    with pytest.raises(ValidationError):
        ToolsConfig(vector_command=[])


def test_unknown_policy_value_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Config(empty_ops_policy="maybe")
