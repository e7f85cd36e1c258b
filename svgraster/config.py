from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .densities import DEFAULT_DENSITIES

CONFIG_FILENAME = "svgraster.yml"


class EmptyOpsPolicy(str, Enum):
    """What to do with a source that carries no raster directives."""

    SKIP = "skip"
    VECTOR = "vector"
    ERROR = "error"


class SizelessPolicy(str, Enum):
    """What to do with a source that has post-processing but no tw/th directive."""

    UNSIZED = "unsized"
    SKIP = "skip"
    ERROR = "error"


class PostProcessor(str, Enum):
    IMAGEMAGICK = "imagemagick"
    PILLOW = "pillow"


class ToolsConfig(BaseModel):
    """External commands used by the default executor."""

    svgexport: str = Field(default="svgexport", description="svgexport executable.")
    convert: str = Field(default="convert", description="ImageMagick convert executable.")
    optipng: str = Field(default="optipng", description="OptiPNG executable.")
    vector_command: list[str] = Field(
        default_factory=lambda: ["s2v", "-i", "{source}", "-o", "{output}"],
        description="SVG to VectorDrawable command; '{source}' and '{output}' are substituted.",
    )
    post_processor: PostProcessor = Field(
        default=PostProcessor.IMAGEMAGICK,
        description="Backend applying padding, background and round operations.",
    )
    optimize: bool = Field(default=True, description="Run optipng over generated PNGs.")

    @field_validator("vector_command")
    def _require_placeholders(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("vector_command cannot be empty")
        joined = " ".join(value)
        if "{source}" not in joined or "{output}" not in joined:
            raise ValueError("vector_command must reference both {source} and {output}")
        return value


class Config(BaseModel):
    input_paths: list[Path] = Field(default_factory=lambda: [Path("app/src/main/svg-png")])
    output_dir: Path = Field(default=Path("app/src/main/generated-res"))
    cache_dir: Path = Field(default=Path("app/build"))
    ops_dir: Path = Field(
        default=Path("app/build"),
        description="Directory receiving the svgexport batch file.",
    )
    densities: list[str] = Field(default_factory=lambda: list(DEFAULT_DENSITIES))
    override_ops: str | None = Field(
        default=None,
        description="Replace the directives of every source (e.g. 'tw32~pad60x60').",
    )
    force: bool = Field(default=False, description="Regenerate every source, ignoring the cache.")
    empty_ops_policy: EmptyOpsPolicy = Field(default=EmptyOpsPolicy.VECTOR)
    sizeless_policy: SizelessPolicy = Field(default=SizelessPolicy.UNSIZED)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)

    @field_validator("output_dir", "cache_dir", "ops_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("input_paths", mode="before")
    def _ensure_path_list(cls, value: Any) -> list[Path]:
        if isinstance(value, (str, Path)):
            value = [value]
        return [Path(item) for item in value]

    @field_validator("densities", mode="before")
    def _split_densities(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.replace(",", " ").split()
        return [str(item).strip() for item in value if str(item).strip()]

    @field_validator("override_ops", mode="before")
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    ``path`` may point to a config file or to a directory; a directory without
    ``svgraster.yml`` yields the defaults anchored to that directory.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    cfg = Config(**data)

    def _abs(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.input_paths = [_abs(item) for item in cfg.input_paths]
    cfg.output_dir = _abs(cfg.output_dir)
    cfg.cache_dir = _abs(cfg.cache_dir)
    cfg.ops_dir = _abs(cfg.ops_dir)
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data
