"""
Adjustment Pipeline

Renders an Adjustments value over the untouched source image. Every call
starts again from the original, so changing a knob never compounds on an
earlier render.

Stages run in a fixed order because the operations do not commute:

    0. fit to working size
    1. named filter
    2. basic (saturation, brightness, contrast)
    3. colour group    (temperature, hue, vibrance)
    4. tonal group     (exposure, shadows, highlights)
    5. spatial group   (clarity, sharpness, blur)
    6. noise
    7. vignette
    8. geometry        (rotation, flips)

Example:
    >>> source = Image.open("photo.jpg")
    >>> result = render(source, Adjustments(temperature=-40, blur=12))
    >>> result.to_image().save("out.png")
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from OP_Libs.ImageEditingLib.adjustments import Adjustments
from OP_Libs.ImageEditingLib.basic_adjustments import apply_basic_adjustments, apply_named_filter
from OP_Libs.ImageEditingLib.geometry import apply_geometry, fit_to_working_size
from OP_Libs.ImageEditingLib.pixel_filters import (
    apply_exposure,
    apply_highlights,
    apply_hue,
    apply_noise,
    apply_shadows,
    apply_temperature,
    apply_vibrance,
    apply_vignette,
)
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer
from OP_Libs.ImageEditingLib.spatial_filters import apply_blur, apply_clarity, apply_sharpness

logger = logging.getLogger(__name__)

# Knob name -> filter function, in pipeline order. Noise takes a random
# source and is dispatched separately.
FILTER_FUNCTIONS: Dict[str, Callable[[RasterBuffer, float], None]] = {
    "temperature": apply_temperature,
    "hue": apply_hue,
    "vibrance": apply_vibrance,
    "exposure": apply_exposure,
    "shadows": apply_shadows,
    "highlights": apply_highlights,
    "clarity": apply_clarity,
    "sharpness": apply_sharpness,
    "blur": apply_blur,
}

FILTER_GROUPS: List[Tuple[str, Tuple[str, ...]]] = [
    ("color", ("temperature", "hue", "vibrance")),
    ("tonal", ("exposure", "shadows", "highlights")),
    ("spatial", ("clarity", "sharpness", "blur")),
]


def apply_adjustments(
    buffer: RasterBuffer,
    adjustments: Adjustments,
    rng: Optional[np.random.Generator] = None,
) -> None:
    """
    Run the pixel stages (1-7) over a buffer in place.

    Geometry is not applied here; see render().

    Args:
        buffer: Working buffer to modify
        adjustments: Knob values (clamped before use)
        rng: Random source for the noise stage
    """
    adjustments = adjustments.clamped()

    apply_named_filter(buffer, adjustments.named_filter)
    apply_basic_adjustments(
        buffer,
        brightness=adjustments.brightness,
        contrast=adjustments.contrast,
        saturation=adjustments.saturation,
        named_filter=adjustments.named_filter,
    )

    for group_name, knobs in FILTER_GROUPS:
        for knob in knobs:
            value = getattr(adjustments, knob)
            if value == 0:
                continue
            started = time.perf_counter()
            FILTER_FUNCTIONS[knob](buffer, value)
            logger.debug(
                f"{group_name}/{knob}={value} took {time.perf_counter() - started:.3f}s"
            )

    apply_noise(buffer, adjustments.noise, rng=rng)
    apply_vignette(buffer, adjustments.vignette)


def render(
    original: Any,
    adjustments: Adjustments,
    working_size: Optional[Tuple[int, int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RasterBuffer:
    """
    Render adjustments over the original image.

    Args:
        original: Decoded source as a PIL Image (never modified)
        adjustments: Knob values; out-of-range values are clamped
        working_size: (max_width, max_height) bound for the working canvas,
                      or None to render at full resolution
        rng: Random source for the noise stage

    Returns:
        A new RasterBuffer holding the adjusted, rotated and flipped result

    Raises:
        TypeError: If original is not a PIL Image
    """
    if not hasattr(original, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(original)}")

    started = time.perf_counter()
    adjustments = adjustments.clamped()

    buffer = RasterBuffer.from_image(fit_to_working_size(original, working_size))
    apply_adjustments(buffer, adjustments, rng=rng)
    result = apply_geometry(
        buffer,
        rotation=adjustments.rotation,
        flip_horizontal=adjustments.flip_horizontal,
        flip_vertical=adjustments.flip_vertical,
    )

    logger.debug(
        f"Rendered {original.size} -> {result.size} in {time.perf_counter() - started:.3f}s"
    )
    return result
