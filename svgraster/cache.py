"""Content-hash cache deciding which sources can skip regeneration.

Entries are keyed by the bare file name of the source, not its full path:
two sources sharing a file name in different input directories share one
entry and overwrite each other's digest.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping

from .errors import CacheWriteError
from .sources import SourceItem

logger = logging.getLogger(__name__)

CACHE_FILENAME = "svgraster-cache.json"


def fingerprint(path: Path) -> str:
    """Return the SHA-256 hex digest of the file's bytes."""
    hasher = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class BuildCache:
    """Persisted mapping of source file name to content digest."""

    def __init__(self, path: Path, entries: Mapping[str, str] | None = None):
        self._path = Path(path)
        self._entries: Dict[str, str] = dict(entries or {})
        self._digests: Dict[Path, str] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def entries(self) -> Dict[str, str]:
        return dict(self._entries)

    @classmethod
    def for_directory(cls, cache_dir: Path) -> "BuildCache":
        return cls.load(Path(cache_dir) / CACHE_FILENAME)

    @classmethod
    def load(cls, path: Path) -> "BuildCache":
        """Read the cache file; anything unreadable counts as an empty cache."""
        path = Path(path)
        if not path.exists():
            return cls(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", path, exc)
            return cls(path)
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed cache %s: expected an object", path)
            return cls(path)

        entries = {str(key): value for key, value in payload.items() if isinstance(value, str)}
        return cls(path, entries)

    def digest(self, source: SourceItem) -> str:
        """Hash the source once per run and remember the result."""
        cached = self._digests.get(source.path)
        if cached is None:
            cached = fingerprint(source.path)
            self._digests[source.path] = cached
        return cached

    def should_skip(
        self,
        source: SourceItem,
        expected_outputs: Iterable[Path],
        *,
        force: bool = False,
    ) -> bool:
        """Return True when the source is unchanged and all of its outputs exist."""
        current = self.digest(source)
        if force:
            return False
        previous = self._entries.get(source.file_name)
        if previous is None or previous != current:
            return False
        missing = [path for path in expected_outputs if not path.exists()]
        if missing:
            logger.debug("%s: %d expected output(s) missing", source.file_name, len(missing))
            return False
        return True

    def record_success(self, source: SourceItem, digest: str | None = None) -> None:
        self._entries[source.file_name] = digest or self.digest(source)

    def persist(self) -> None:
        """Replace the cache file with the current mapping.

        Raises:
            CacheWriteError: When the file cannot be written.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._entries, ensure_ascii=False, indent=2, sort_keys=True),
                encoding="utf-8",
            )
        except OSError as exc:
            raise CacheWriteError(f"Unable to write cache {self._path}: {exc}") from exc
