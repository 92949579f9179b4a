"""
Per-layer drawing surfaces.

Every layer is drawn onto its own transparent overlay the size of the
target, then rotated about the layer centre, faded by the layer opacity
and alpha-composited onto the target. Rotation and opacity therefore
never leak from one layer to the next.
"""

import logging
from typing import Any, Tuple

from PIL import Image, ImageColor

from OP_Libs.ImageEditingLib.raster_models import RgbaColor

logger = logging.getLogger(__name__)

FALLBACK_COLOR: RgbaColor = (0, 0, 0, 255)


def parse_color(value: str, fallback: RgbaColor = FALLBACK_COLOR) -> RgbaColor:
    """
    Parse a CSS-style colour ('#ff0000', 'rgb(255,0,0)', 'red') to RGBA.

    Unparseable colours log a warning and return fallback.
    """
    try:
        color = ImageColor.getcolor(str(value), "RGBA")
    except ValueError:
        logger.warning(f"Invalid colour {value!r}, using {fallback}")
        return fallback
    return tuple(color)


def new_overlay(size: Tuple[int, int], color: Tuple[int, int, int] = (0, 0, 0)) -> Any:
    """Fully transparent RGBA surface; color sets the RGB of its empty pixels."""
    return Image.new("RGBA", size, tuple(color) + (0,))


def composite_overlay(
    surface: Any,
    overlay: Any,
    center: Tuple[float, float],
    rotation: float,
    opacity: float,
) -> None:
    """
    Rotate overlay about center, fade it and composite it onto surface in place.

    Args:
        surface: Target RGBA PIL Image
        overlay: RGBA PIL Image of the same size as surface
        center: Rotation origin in surface pixels
        rotation: Degrees clockwise
        opacity: 0.0 to 1.0
    """
    if opacity <= 0:
        return

    if rotation % 360 != 0:
        # PIL rotates counter-clockwise
        overlay = overlay.rotate(
            -rotation,
            resample=Image.Resampling.BICUBIC,
            center=center,
            fillcolor=(0, 0, 0, 0),
        )

    if opacity < 1:
        table = [int(round(a * opacity)) for a in range(256)]
        overlay.putalpha(overlay.getchannel("A").point(table))

    surface.alpha_composite(overlay)
