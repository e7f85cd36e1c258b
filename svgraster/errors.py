"""Exception hierarchy for svgraster."""

from __future__ import annotations

from pathlib import Path


class RasterizerError(RuntimeError):
    """Base error for every failure surfaced by a build run."""


class UnknownDensityTierError(RasterizerError):
    """Raised when a requested density tier is not in the density table."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown density {name!r}")
        self.name = name


class InvalidDirectiveError(RasterizerError):
    """Raised when a directive token has a recognized prefix but a malformed body."""

    def __init__(self, token: str, reason: str, *, source: str | None = None) -> None:
        message = f"Invalid directive {token!r}: {reason}"
        if source:
            message = f"{source}: {message}"
        super().__init__(message)
        self.token = token
        self.reason = reason
        self.source = source

    def for_source(self, source: str) -> "InvalidDirectiveError":
        return InvalidDirectiveError(self.token, self.reason, source=source)


class MissingDirectivesError(RasterizerError):
    """Raised when a source lacks the directives required by the configured policy."""

    def __init__(self, source: Path, detail: str) -> None:
        super().__init__(f"{source.name}: {detail}")
        self.source = source


class CacheWriteError(RasterizerError):
    """Raised when the incremental cache cannot be written back to disk."""


class ExecutorError(RasterizerError):
    """Raised when an external tool fails while executing a work order."""


class ToolUnavailableError(ExecutorError):
    """Raised when an external tool cannot be found in the environment."""


class DuplicateOutputError(RasterizerError):
    """Raised when two sources resolve to the same output file."""

    def __init__(self, output: Path, first: Path, second: Path) -> None:
        super().__init__(f"{first} and {second} both produce {output}")
        self.output = output
        self.first = first
        self.second = second
