"""Android density tiers and dp to pixel conversion."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .errors import UnknownDensityTierError

BASELINE_DPI = 160

DENSITIES: Mapping[str, int] = MappingProxyType(
    {
        "ldpi": 120,
        "mdpi": 160,
        "hdpi": 240,
        "xhdpi": 320,
        "xxhdpi": 480,
        "xxxhdpi": 640,
    }
)

DEFAULT_DENSITIES: tuple[str, ...] = ("hdpi", "xhdpi", "xxhdpi", "xxxhdpi")


@dataclass(frozen=True, slots=True)
class DensityTier:
    """A named density bucket and its dots-per-inch scale."""

    name: str
    scale: int

    def px(self, dp: int) -> int:
        return px(dp, self.scale)


def px(dp: int, scale: int) -> int:
    """Convert device-independent pixels to pixels, truncating toward zero."""
    return int(dp * scale / float(BASELINE_DPI))


def get_tier(name: str) -> DensityTier:
    try:
        return DensityTier(name=name, scale=DENSITIES[name])
    except KeyError:
        raise UnknownDensityTierError(name) from None


def resolve_tiers(names: Iterable[str]) -> tuple[DensityTier, ...]:
    """Map density names to tiers, failing on the first unknown name.

    Duplicate names are collapsed while keeping the first occurrence.
    """
    tiers: list[DensityTier] = []
    seen: set[str] = set()
    for name in names:
        tier = get_tier(name)
        if name in seen:
            continue
        seen.add(name)
        tiers.append(tier)
    return tuple(tiers)
