"""
Neighbourhood (spatial) filters.

Provides the three filters whose output depends on neighbouring pixels:
- Clarity: local contrast against the 3x3 mean
- Sharpness: 3x3 sharpening kernel blended with the original
- Blur: box blur whose window is clipped to the image

Each filter reads from a snapshot taken when the filter starts, so no
output pixel feeds into another within the same pass. Neighbourhood sums
are computed with scipy.ndimage on integer arrays, which keeps them exact.
Alpha is never modified.

Example:
    >>> buffer = RasterBuffer.from_image(Image.open("photo.jpg"))
    >>> apply_clarity(buffer, 40)
    >>> apply_blur(buffer, 25)   # radius floor(25 / 10) + 1 = 3
"""

import logging
import time

import numpy as np
from scipy import ndimage

from OP_Libs.constants import BLUR_RADIUS_STEP, SHARPEN_KERNEL
from OP_Libs.ImageEditingLib.adjustments import clamp_knob
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer, write_channels

logger = logging.getLogger(__name__)

_BOX_3X3 = np.ones((3, 3, 1), dtype=np.int64)
_SHARPEN_3X3 = np.array(SHARPEN_KERNEL, dtype=np.int64)[:, :, np.newaxis]


def _rgb_snapshot(buffer: RasterBuffer) -> np.ndarray:
    return buffer.snapshot()[:, :, :3].astype(np.int64)


# ============================================================================
# Clarity
# ============================================================================

def apply_clarity(buffer: RasterBuffer, value: float) -> None:
    """
    Local contrast enhancement (an unsharp mask against the 3x3 mean).

    For every pixel not on the 1px border: out = c + (c - mean3x3) * value/100 * 2.
    Border pixels are left unchanged.

    Args:
        buffer: Buffer to modify in place
        value: Clarity amount (-100 to 100, negative softens)
    """
    value = clamp_knob("clarity", value)
    if value == 0 or buffer.width < 3 or buffer.height < 3:
        return

    started = time.perf_counter()
    factor = value / 100.0
    original = _rgb_snapshot(buffer)

    sums = ndimage.correlate(original, _BOX_3X3, mode="constant", cval=0)
    center = original[1:-1, 1:-1].astype(np.float64)
    average = sums[1:-1, 1:-1] / 9.0

    write_channels(
        buffer.pixels[1:-1, 1:-1, :3],
        center + (center - average) * factor * 2.0,
    )
    logger.debug(f"Clarity {value} on {buffer.size} took {time.perf_counter() - started:.3f}s")


# ============================================================================
# Sharpness
# ============================================================================

def apply_sharpness(buffer: RasterBuffer, value: float) -> None:
    """
    Sharpen with the kernel [[0,-1,0],[-1,5,-1],[0,-1,0]].

    The convolved value is blended with the original by value/100 for
    every pixel not on the 1px border; border pixels are left unchanged.

    Args:
        buffer: Buffer to modify in place
        value: Sharpness amount (0-100)
    """
    value = clamp_knob("sharpness", value)
    if value == 0 or buffer.width < 3 or buffer.height < 3:
        return

    started = time.perf_counter()
    factor = value / 100.0
    original = _rgb_snapshot(buffer)

    convolved = ndimage.correlate(original, _SHARPEN_3X3, mode="constant", cval=0)
    center = original[1:-1, 1:-1].astype(np.float64)
    sharpened = convolved[1:-1, 1:-1].astype(np.float64)

    write_channels(
        buffer.pixels[1:-1, 1:-1, :3],
        center * (1.0 - factor) + sharpened * factor,
    )
    logger.debug(f"Sharpness {value} on {buffer.size} took {time.perf_counter() - started:.3f}s")


# ============================================================================
# Blur
# ============================================================================

def blur_radius(value: float) -> int:
    """Box radius for a blur knob value: floor(value / 10) + 1."""
    return int(value // BLUR_RADIUS_STEP) + 1


def apply_blur(buffer: RasterBuffer, value: float) -> None:
    """
    Box blur with radius floor(value/10) + 1.

    Each pixel becomes the mean of the square window around it, restricted
    to pixels inside the image, so edge pixels average fewer samples.

    Args:
        buffer: Buffer to modify in place
        value: Blur amount (0-50)
    """
    value = clamp_knob("blur", value)
    if value == 0 or buffer.width == 0 or buffer.height == 0:
        return

    started = time.perf_counter()
    radius = blur_radius(value)
    window = np.ones(2 * radius + 1, dtype=np.int64)
    original = _rgb_snapshot(buffer)

    sums = ndimage.correlate1d(original, window, axis=0, mode="constant", cval=0)
    sums = ndimage.correlate1d(sums, window, axis=1, mode="constant", cval=0)

    inside = np.ones((buffer.height, buffer.width), dtype=np.int64)
    counts = ndimage.correlate1d(inside, window, axis=0, mode="constant", cval=0)
    counts = ndimage.correlate1d(counts, window, axis=1, mode="constant", cval=0)

    write_channels(buffer.rgb, sums / counts[:, :, np.newaxis])
    logger.debug(
        f"Blur {value} (radius {radius}) on {buffer.size} took {time.perf_counter() - started:.3f}s"
    )
