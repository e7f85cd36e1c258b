"""ImageMagick ``convert`` arguments for post-processing operations."""

from __future__ import annotations

from pathlib import Path

from ..workorder.models import BackgroundOp, PaddingOp, PostOperation, RoundOp

_ROUND_ARGS = (
    "-alpha", "set",
    "(", "+clone", "-distort", "DePolar", "0",
    "-virtual-pixel", "HorizontalTile",
    "-background", "None",
    "-distort", "Polar", "0", ")",
    "-compose", "Dst_In", "-composite",
    "-trim", "+repage",
)  # fmt: skip


def operation_args(operation: PostOperation) -> list[str]:
    if isinstance(operation, PaddingOp):
        return ["-background", "none", "-gravity", "center", "-extent", f"{operation.width}x{operation.height}"]
    if isinstance(operation, BackgroundOp):
        return ["-background", operation.color, "-flatten"]
    if isinstance(operation, RoundOp):
        return list(_ROUND_ARGS)
    raise TypeError(f"Unsupported post-processing operation: {operation!r}")


def convert_command(executable: str, path: Path, operation: PostOperation) -> list[str]:
    """Build a command editing ``path`` in place."""
    target = str(path.resolve())
    return [executable, target, *operation_args(operation), target]
