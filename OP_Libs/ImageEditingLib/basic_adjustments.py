"""
Named colour presets and the basic brightness/contrast/saturation pass.

Functions:
    apply_named_filter: Fixed colour-matrix preset (grayscale, sepia, vintage)
    contrast_factor: Classic 8-bit contrast factor for a -100..100 knob
    apply_basic_adjustments: Saturation, brightness and contrast in one pass
"""

import logging

import numpy as np

from OP_Libs.constants import (
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    NAMED_FILTER_GRAYSCALE,
    NAMED_FILTER_NONE,
    NAMED_FILTER_SEPIA,
    NAMED_FILTER_VINTAGE,
)
from OP_Libs.ImageEditingLib.adjustments import clamp_knob
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer, write_channels

logger = logging.getLogger(__name__)

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])
VINTAGE_SCALE = np.array([0.8, 0.8, 0.6])


def apply_named_filter(buffer: RasterBuffer, name: str) -> None:
    """
    Apply a colour preset in place.

    Args:
        buffer: Buffer to modify
        name: 'none', 'grayscale', 'sepia' or 'vintage'; anything else is
              treated as 'none'
    """
    name = str(name or NAMED_FILTER_NONE).lower()
    if name == NAMED_FILTER_NONE:
        return

    rgb = buffer.rgb.astype(np.float64)

    if name == NAMED_FILTER_GRAYSCALE:
        gray = LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]
        result = np.repeat(gray[..., np.newaxis], 3, axis=-1)
    elif name == NAMED_FILTER_SEPIA:
        result = rgb @ SEPIA_MATRIX.T
    elif name == NAMED_FILTER_VINTAGE:
        result = (rgb @ SEPIA_MATRIX.T) * VINTAGE_SCALE
    else:
        logger.warning(f"Unknown named filter {name!r}, leaving image unchanged")
        return

    write_channels(buffer.rgb, result)


def contrast_factor(contrast: float) -> float:
    """
    Contrast multiplier for a knob in -100..100.

    The knob is scaled to the 8-bit range C = contrast/100 * 255 and fed to
    259 * (C + 255) / (255 * (259 - C)).
    """
    scaled = contrast / 100.0 * 255.0
    return (259.0 * (scaled + 255.0)) / (255.0 * (259.0 - scaled))


def apply_basic_adjustments(
    buffer: RasterBuffer,
    brightness: float = 0.0,
    contrast: float = 0.0,
    saturation: float = 0.0,
    named_filter: str = NAMED_FILTER_NONE,
) -> None:
    """
    Saturation, then brightness, then contrast, clamped once at the end.

    - Saturation pulls channels towards or away from the pixel's luma:
      gray + (c - gray) * (1 + saturation/100). It is skipped while a named
      filter is active so colour is not shifted twice.
    - Brightness multiplies by 1 + brightness/100.
    - Contrast applies factor * (c - 128) + 128.

    Args:
        buffer: Buffer to modify in place
        brightness: -100 to 100
        contrast: -100 to 100
        saturation: -100 to 100
        named_filter: Active preset name
    """
    brightness = clamp_knob("brightness", brightness)
    contrast = clamp_knob("contrast", contrast)
    saturation = clamp_knob("saturation", saturation)
    preset_active = str(named_filter or NAMED_FILTER_NONE).lower() != NAMED_FILTER_NONE

    apply_saturation = saturation != 0 and not preset_active
    if not apply_saturation and brightness == 0 and contrast == 0:
        return

    rgb = buffer.rgb.astype(np.float64)

    if apply_saturation:
        gray = LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]
        gray = gray[..., np.newaxis]
        rgb = gray + (rgb - gray) * (1.0 + saturation / 100.0)

    if brightness != 0:
        rgb = rgb * (1.0 + brightness / 100.0)

    if contrast != 0:
        rgb = contrast_factor(contrast) * (rgb - 128.0) + 128.0

    write_channels(buffer.rgb, rgb)
