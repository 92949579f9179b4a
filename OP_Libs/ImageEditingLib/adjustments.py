"""
Adjustment settings for the editing pipeline.

Classes:
    Adjustments: Immutable set of knob values for one render pass

Functions:
    clamp_knob: Clamp a single knob value into its documented range
    normalize_rotation: Wrap an angle into [-180, 180]
"""

import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict

from OP_Libs.constants import (
    ADJUSTMENT_RANGES,
    NAMED_FILTER_NONE,
    NAMED_FILTERS,
)

logger = logging.getLogger(__name__)


def normalize_rotation(degrees: float) -> float:
    """Wrap an angle into [-180, 180] (270 -> -90, -270 -> 90)."""
    if -180.0 <= degrees <= 180.0:
        return float(degrees)
    return ((float(degrees) + 180.0) % 360.0) - 180.0


def clamp_knob(name: str, value: Any) -> float:
    """
    Clamp a knob value into its documented range.

    Out-of-range values are pulled to the nearest bound. Values that are not
    numbers (None, NaN, strings that do not parse) become the neutral value.

    Args:
        name: Knob name from ADJUSTMENT_RANGES
        value: Requested value

    Returns:
        A float inside the knob's range

    Raises:
        KeyError: If name is not a known knob
    """
    minimum, maximum, neutral = ADJUSTMENT_RANGES[name]
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric value {value!r} for {name}, using {neutral}")
        return neutral

    if math.isnan(number):
        return neutral

    if name == "rotation" and math.isfinite(number):
        number = normalize_rotation(number)

    return max(minimum, min(maximum, number))


@dataclass(frozen=True)
class Adjustments:
    """Knob values for one render pass.

    Attributes:
        brightness, contrast, saturation: Basic adjustments (-100 to 100)
        named_filter: Colour preset ('none', 'grayscale', 'sepia', 'vintage')
        rotation: Degrees, clockwise (-180 to 180)
        flip_horizontal, flip_vertical: Mirror toggles
        temperature, exposure, shadows, highlights, clarity, vibrance: -100 to 100
        hue: Hue rotation in degrees (0 to 360)
        sharpness, noise, vignette: 0 to 100
        blur: 0 to 50
    """
    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    named_filter: str = NAMED_FILTER_NONE
    rotation: float = 0.0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    temperature: float = 0.0
    hue: float = 0.0
    exposure: float = 0.0
    shadows: float = 0.0
    highlights: float = 0.0
    clarity: float = 0.0
    vibrance: float = 0.0
    sharpness: float = 0.0
    blur: float = 0.0
    noise: float = 0.0
    vignette: float = 0.0

    def clamped(self) -> "Adjustments":
        """Return a copy with every value forced into its range."""
        changes: Dict[str, Any] = {
            name: clamp_knob(name, getattr(self, name)) for name in ADJUSTMENT_RANGES
        }

        named = str(self.named_filter or NAMED_FILTER_NONE).lower()
        if named not in NAMED_FILTERS:
            logger.warning(f"Unknown named filter {self.named_filter!r}, using '{NAMED_FILTER_NONE}'")
            named = NAMED_FILTER_NONE
        changes["named_filter"] = named
        changes["flip_horizontal"] = bool(self.flip_horizontal)
        changes["flip_vertical"] = bool(self.flip_vertical)

        return replace(self, **changes)

    def with_changes(self, **values: Any) -> "Adjustments":
        """Return a clamped copy with the given fields replaced; unknown names are ignored."""
        known = {f.name for f in fields(self)}
        unknown = sorted(k for k in values if k not in known)
        if unknown:
            logger.warning(f"Ignoring unknown adjustments: {', '.join(unknown)}")
        return replace(self, **{k: v for k, v in values.items() if k in known}).clamped()

    @property
    def has_geometry(self) -> bool:
        return self.rotation != 0 or self.flip_horizontal or self.flip_vertical

    def is_neutral(self) -> bool:
        return self == Adjustments()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Adjustments":
        """Create from dictionary (clamped, unknown keys dropped)."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered).clamped()
