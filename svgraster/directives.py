"""Decoding of the ``~`` separated directives embedded in SVG file names.

Recognized tokens::

    tw<dp>          target width, aspect ratio preserved
    th<dp>          target height, aspect ratio preserved
    pad<w>x<h>      center on a transparent canvas of w x h dp
    bg_<rrggbb>     flatten onto an opaque colour
    bg_<aarrggbb>   flatten onto a semi-transparent colour
    round           crop to a circle
    mipmap          write into mipmap-* instead of drawable-*

Unknown tokens decode to ``None`` and are ignored by callers.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass
from typing import Iterable, Union

from .errors import InvalidDirectiveError

logger = logging.getLogger(__name__)

_UINT = re.compile(r"^[0-9]+$")
_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True, slots=True)
class TargetWidth:
    dp: int


@dataclass(frozen=True, slots=True)
class TargetHeight:
    dp: int


@dataclass(frozen=True, slots=True)
class Pad:
    width_dp: int
    height_dp: int


@dataclass(frozen=True, slots=True)
class Background:
    """Flatten colour; ``alpha`` is an empty string for opaque fills."""

    rrggbb: str
    alpha: str = ""

    @property
    def color(self) -> str:
        return f"#{self.rrggbb}{self.alpha}"


@dataclass(frozen=True, slots=True)
class Round:
    pass


@dataclass(frozen=True, slots=True)
class Mipmap:
    pass


Directive = Union[TargetWidth, TargetHeight, Pad, Background, Round, Mipmap]
SizeDirective = Union[TargetWidth, TargetHeight]


def decode(token: str) -> Directive | None:
    """Decode a single raw token.

    Raises:
        InvalidDirectiveError: When the token uses a known prefix with a malformed body.
    """
    if token.startswith("pad"):
        parts = token[len("pad") :].split("x")
        if len(parts) != 2:
            raise InvalidDirectiveError(token, "padding must look like pad<width>x<height>")
        width, height = (_parse_uint(token, part) for part in parts)
        return Pad(width_dp=width, height_dp=height)

    if token.startswith("tw"):
        return TargetWidth(dp=_parse_uint(token, token[len("tw") :]))

    if token.startswith("th"):
        return TargetHeight(dp=_parse_uint(token, token[len("th") :]))

    if token.startswith("bg_"):
        return _decode_background(token, token[len("bg_") :])

    if token == "round":
        return Round()

    if token == "mipmap":
        return Mipmap()

    logger.debug("Ignoring unrecognized directive %r", token)
    return None


def decode_all(tokens: Iterable[str], *, source: str | None = None) -> list[Directive]:
    """Decode tokens in order, dropping the unrecognized ones."""
    directives: list[Directive] = []
    for token in tokens:
        try:
            directive = decode(token)
        except InvalidDirectiveError as exc:
            if source is None:
                raise
            raise exc.for_source(source) from None
        if directive is not None:
            directives.append(directive)
    return directives


def _parse_uint(token: str, text: str) -> int:
    if not _UINT.match(text):
        raise InvalidDirectiveError(token, f"{text!r} is not a non-negative integer")
    return int(text)


def _decode_background(token: str, value: str) -> Background:
    if len(value) not in {6, 8}:
        raise InvalidDirectiveError(token, "background colour must be rrggbb or aarrggbb")
    if not all(char in _HEX_DIGITS for char in value):
        raise InvalidDirectiveError(token, f"{value!r} is not a hexadecimal colour")
    if len(value) == 8:
        return Background(rrggbb=value[2:], alpha=value[:2])
    return Background(rrggbb=value, alpha="")
