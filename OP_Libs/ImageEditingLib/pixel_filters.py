"""
Per-pixel adjustment filters.

Every filter mutates a RasterBuffer in place, reads and writes only the
colour channels (alpha is a compositing concern), clamps its knob into the
documented range and returns immediately when the knob is neutral.

Example:
    >>> buffer = RasterBuffer.new(100, 100, (255, 0, 0, 255))
    >>> apply_temperature(buffer, -100)
    >>> buffer.pixels[0, 0].tolist()
    [225, 0, 30, 255]
"""

import logging
from typing import Optional

import numpy as np

from OP_Libs.constants import (
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    NOISE_STRENGTH,
    TEMPERATURE_SHIFT,
    TONAL_PIVOT,
    TONAL_STRENGTH,
)
from OP_Libs.ImageEditingLib.adjustments import clamp_knob
from OP_Libs.ImageEditingLib.color_space import hsl_to_rgb, rgb_to_hsl
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer, write_channels

logger = logging.getLogger(__name__)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """BT.601 luma of an (..., 3) array."""
    rgb = rgb.astype(np.float64)
    return LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]


def apply_temperature(buffer: RasterBuffer, value: float) -> None:
    """
    Warm (positive) or cool (negative) the image.

    Adds value/100 * 30 to red and subtracts the same amount from blue.
    Green is untouched.
    """
    value = clamp_knob("temperature", value)
    if value == 0:
        return

    shift = value / 100.0 * TEMPERATURE_SHIFT
    pixels = buffer.pixels
    write_channels(pixels[:, :, 0], pixels[:, :, 0].astype(np.float64) + shift)
    write_channels(pixels[:, :, 2], pixels[:, :, 2].astype(np.float64) - shift)


def apply_hue(buffer: RasterBuffer, value: float) -> None:
    """Rotate hue by value degrees through an HSL round trip."""
    value = clamp_knob("hue", value)
    if value == 0:
        return

    shift = value / 360.0
    rgb = buffer.rgb
    h, s, l = rgb_to_hsl(rgb[..., 0], rgb[..., 1], rgb[..., 2])
    h = np.mod(h + shift, 1.0)

    r, g, b = hsl_to_rgb(h, s, l)
    write_channels(buffer.rgb, np.stack((r, g, b), axis=-1))


def apply_exposure(buffer: RasterBuffer, value: float) -> None:
    """Scale all colour channels by 1 + value/100."""
    value = clamp_knob("exposure", value)
    if value == 0:
        return

    factor = 1.0 + value / 100.0
    write_channels(buffer.rgb, buffer.rgb.astype(np.float64) * factor)


def _apply_tonal(buffer: RasterBuffer, value: float, shadows: bool) -> None:
    factor = value / 100.0
    rgb = buffer.rgb.astype(np.float64)
    luma = luminance(rgb)

    if shadows:
        selected = luma < TONAL_PIVOT
        weight = (TONAL_PIVOT - luma) / TONAL_PIVOT
    else:
        selected = luma > TONAL_PIVOT
        weight = (luma - TONAL_PIVOT) / (255.0 - TONAL_PIVOT)

    adjustment = np.where(selected, factor * weight * TONAL_STRENGTH, 0.0)
    write_channels(buffer.rgb, rgb + adjustment[..., np.newaxis])


def apply_shadows(buffer: RasterBuffer, value: float) -> None:
    """
    Lift or crush dark pixels.

    Only pixels with luma below 128 change; darker pixels move more, by up
    to 50 levels at full strength.
    """
    value = clamp_knob("shadows", value)
    if value == 0:
        return
    _apply_tonal(buffer, value, shadows=True)


def apply_highlights(buffer: RasterBuffer, value: float) -> None:
    """Brighten or recover pixels with luma above 128 (mirror of apply_shadows)."""
    value = clamp_knob("highlights", value)
    if value == 0:
        return
    _apply_tonal(buffer, value, shadows=False)


def apply_vibrance(buffer: RasterBuffer, value: float) -> None:
    """
    Saturation boost weighted towards muted colours.

    Saturation grows by (1 - S) * value/100, so already vivid pixels move
    least. S is clamped to [0, 1].
    """
    value = clamp_knob("vibrance", value)
    if value == 0:
        return

    factor = value / 100.0
    rgb = buffer.rgb
    h, s, l = rgb_to_hsl(rgb[..., 0], rgb[..., 1], rgb[..., 2])
    s = np.clip(s + (1.0 - s) * factor, 0.0, 1.0)

    r, g, b = hsl_to_rgb(h, s, l)
    write_channels(buffer.rgb, np.stack((r, g, b), axis=-1))


def apply_noise(
    buffer: RasterBuffer,
    value: float,
    rng: Optional[np.random.Generator] = None,
) -> None:
    """
    Add film grain.

    Each colour channel of each pixel gets an independent uniform sample in
    [-intensity/2, intensity/2] where intensity = value/100 * 50.

    Args:
        buffer: Buffer to modify in place
        value: Noise amount (0-100)
        rng: Random source; a fresh unseeded generator when omitted
    """
    value = clamp_knob("noise", value)
    if value == 0:
        return

    if rng is None:
        rng = np.random.default_rng()

    intensity = value / 100.0 * NOISE_STRENGTH
    noise = (rng.random((buffer.height, buffer.width, 3)) - 0.5) * intensity
    write_channels(buffer.rgb, buffer.rgb.astype(np.float64) + noise)


def apply_vignette(buffer: RasterBuffer, value: float) -> None:
    """
    Darken towards the corners.

    The distance of each pixel from the image centre is normalised by the
    centre-to-corner distance; channels are scaled by 1 - ratio**2 * value/100.
    """
    value = clamp_knob("vignette", value)
    if value == 0:
        return

    width, height = buffer.width, buffer.height
    center_x = width / 2.0
    center_y = height / 2.0
    max_distance = float(np.hypot(center_x, center_y))
    if max_distance == 0:
        return

    ys, xs = np.ogrid[0:height, 0:width]
    distance = np.hypot(xs - center_x, ys - center_y)
    darkening = 1.0 - (distance / max_distance) ** 2 * (value / 100.0)

    write_channels(buffer.rgb, buffer.rgb.astype(np.float64) * darkening[..., np.newaxis])
