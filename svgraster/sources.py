"""Discovery of SVG sources and parsing of their file names."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".svg"
DIRECTIVE_SEPARATOR = "~"

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_]")


@dataclass(frozen=True, slots=True)
class SourceItem:
    """One discovered SVG file, its resource name and raw directive tokens."""

    path: Path
    base_name: str
    ops: tuple[str, ...]

    @property
    def file_name(self) -> str:
        return self.path.name


def android_valid_name(name: str) -> str:
    """Lowercase ``name`` and replace characters Android rejects with ``_``."""
    return _INVALID_NAME_CHARS.sub("_", name.lower())


def split_ops(text: str) -> tuple[str, ...]:
    return tuple(token for token in text.split(DIRECTIVE_SEPARATOR) if token)


def parse_source(path: Path, override_ops: str | None = None) -> SourceItem:
    """Split a source file name into its base name and directive tokens.

    When ``override_ops`` is given it replaces the tokens found in the file
    name; the base name is always taken from the file name.
    """
    stem = path.name
    if stem.lower().endswith(SOURCE_SUFFIX):
        stem = stem[: -len(SOURCE_SUFFIX)]

    raw_base, _, raw_ops = stem.partition(DIRECTIVE_SEPARATOR)
    ops = split_ops(raw_ops)
    if override_ops is not None:
        ops = split_ops(override_ops)

    return SourceItem(path=path, base_name=android_valid_name(raw_base), ops=ops)


def discover_sources(inputs: Iterable[Path]) -> list[Path]:
    """Return SVG files under ``inputs`` in a stable order without duplicates.

    Directories are walked recursively; files are accepted as-is when they
    carry the SVG suffix.
    """
    discovered: list[Path] = []
    seen: set[Path] = set()
    for root in inputs:
        if not root.exists():
            logger.warning("Input path does not exist: %s", root)
            continue
        for candidate in _iter_candidates(root):
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            discovered.append(candidate)
    return discovered


def _iter_candidates(root: Path) -> Iterator[Path]:
    if root.is_file():
        if _is_source(root):
            yield root
        return
    for entry in sorted(root.rglob("*")):
        if entry.is_file() and _is_source(entry):
            yield entry


def _is_source(path: Path) -> bool:
    return path.name.lower().endswith(SOURCE_SUFFIX)
