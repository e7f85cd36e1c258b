"""Pillow implementations of the post-processing operations."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw

from ..errors import ExecutorError
from ..workorder.models import BackgroundOp, PaddingOp, PostOperation, RoundOp

logger = logging.getLogger(__name__)


def apply_operation(path: Path, operation: PostOperation) -> None:
    """Apply ``operation`` to the PNG at ``path`` and overwrite it."""
    try:
        with Image.open(path) as source:
            image = source.convert("RGBA")
    except OSError as exc:
        raise ExecutorError(f"Cannot open {path} for post-processing: {exc}") from exc

    if isinstance(operation, PaddingOp):
        image = pad(image, operation.width, operation.height)
    elif isinstance(operation, BackgroundOp):
        image = flatten(image, operation.rrggbb, operation.alpha)
    elif isinstance(operation, RoundOp):
        image = round_crop(image)
    else:
        raise TypeError(f"Unsupported post-processing operation: {operation!r}")

    logger.debug("%s: applied %s -> %dx%d", path, operation.kind, image.width, image.height)
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise ExecutorError(f"Cannot write {path} after post-processing: {exc}") from exc


def pad(image: Image.Image, width: int, height: int) -> Image.Image:
    """Center ``image`` on a transparent canvas, cropping when it is larger."""
    canvas = Image.new("RGBA", (max(1, width), max(1, height)), (0, 0, 0, 0))
    left = (canvas.width - image.width) // 2
    top = (canvas.height - image.height) // 2
    canvas.paste(image, (left, top))
    return canvas


def flatten(image: Image.Image, rrggbb: str, alpha: str = "") -> Image.Image:
    """Composite ``image`` over a solid fill."""
    fill = parse_color(rrggbb, alpha)
    base = Image.new("RGBA", image.size, fill)
    return Image.alpha_composite(base, image)


def round_crop(image: Image.Image) -> Image.Image:
    """Mask ``image`` with its inscribed circle and trim the transparent border."""
    mask = Image.new("L", image.size, 0)
    ImageDraw.Draw(mask).ellipse((0, 0, image.width - 1, image.height - 1), fill=255)

    alpha = image.getchannel("A")
    combined = Image.composite(alpha, mask, mask)
    result = image.copy()
    result.putalpha(combined)

    bbox = result.getchannel("A").getbbox()
    if bbox is None:
        return result
    return result.crop(bbox)


def parse_color(rrggbb: str, alpha: str = "") -> tuple[int, int, int, int]:
    red = int(rrggbb[0:2], 16)
    green = int(rrggbb[2:4], 16)
    blue = int(rrggbb[4:6], 16)
    opacity = int(alpha, 16) if alpha else 255
    return (red, green, blue, opacity)
