"""Pixel/millimetre conversion and named page presets.

All conversions assume a 96 px/inch display, so one millimetre is 96/25.4 px.
Both directions round to the nearest integer, which makes px -> mm -> px lossy:
a round trip may land up to PX_PER_MM / 2 + 0.5 px (about 2.39 px) away from the
starting value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Tuple

MM_PER_INCH = 25.4
CSS_DPI = 96
PX_PER_MM = CSS_DPI / MM_PER_INCH

PX = "px"
MM = "mm"

_UNIT_ALIASES: Dict[str, str] = {
    "px": PX,
    "pixel": PX,
    "pixels": PX,
    "mm": MM,
    "millimeter": MM,
    "millimeters": MM,
    "millimetre": MM,
    "millimetres": MM,
}

# Physical sizes in millimetres; anything else resolves to the custom fallback.
PRESETS_MM: Dict[str, Tuple[int, int]] = {
    "A4": (210, 297),
    "Letter": (216, 279),
}
CUSTOM_FALLBACK_PX: Tuple[int, int] = (600, 800)


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float


def normalize_unit(unit: str) -> str:
    key = (unit or "").strip().lower()
    if key not in _UNIT_ALIASES:
        raise ValueError(f"Unsupported unit: {unit!r} (expected 'px' or 'mm')")
    return _UNIT_ALIASES[key]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def convert(value: float, from_unit: str, to_unit: str) -> float:
    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)
    if src == dst:
        return value
    if src == MM:
        return _round_half_up(value * PX_PER_MM)
    return _round_half_up(value / PX_PER_MM)


def preset_names() -> list[str]:
    return list(PRESETS_MM) + ["Custom"]


def resolve_preset(name: str, unit: str) -> Dimensions:
    """Concrete page size for a preset in the requested unit.

    Unknown names (including "Custom") yield the 600x800 fallback whatever the unit.
    """
    target = normalize_unit(unit)
    size = PRESETS_MM.get(name)
    if size is None:
        return Dimensions(*CUSTOM_FALLBACK_PX)
    width_mm, height_mm = size
    if target == MM:
        return Dimensions(width_mm, height_mm)
    return Dimensions(convert(width_mm, MM, PX), convert(height_mm, MM, PX))


@dataclass
class SizeConfig:
    preset: str = "A4"
    width: float = 600
    height: float = 800
    unit: str = PX

    def __post_init__(self) -> None:
        self.unit = normalize_unit(self.unit)
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")

    @classmethod
    def from_preset(cls, preset: str, unit: str = PX) -> "SizeConfig":
        dims = resolve_preset(preset, unit)
        return cls(preset=preset, width=dims.width, height=dims.height, unit=unit)

    def to(self, unit: str) -> "SizeConfig":
        target = normalize_unit(unit)
        return SizeConfig(
            preset=self.preset,
            width=convert(self.width, self.unit, target),
            height=convert(self.height, self.unit, target),
            unit=target,
        )

    def pixels(self) -> Tuple[int, int]:
        px = self.to(PX)
        return int(px.width), int(px.height)
