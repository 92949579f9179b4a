"""
Geometry operations for Open Photo.

Provides rotation/flip composition, working-size fitting and cropping.

Rotation and flips compose like a canvas transform: translate to the output
centre, scale by the flips, rotate, then draw the source centred. Flips
therefore act in output space, after the rotation. Positive angles turn
clockwise.

Classes:
    CropRect: Crop rectangle in canvas coordinates

Functions:
    rotated_size: Output canvas size for a rotation
    transform_image: Rotate and flip a PIL Image
    apply_geometry: Rotate and flip a RasterBuffer
    working_size_for: Size of an image fitted inside the working bounds
    fit_to_working_size: Downscale a PIL Image to the working bounds
    crop_image: Extract a clamped rectangle from a PIL Image
    default_crop_rect: Initial crop rectangle (10% inset)
    fit_aspect_ratio: Reshape a crop rectangle to a preset aspect ratio
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from PIL import Image

from OP_Libs.constants import CROP_ASPECT_RATIOS, CROP_DEFAULT_INSET
from OP_Libs.ImageEditingLib.adjustments import normalize_rotation
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)

# Clockwise quarter turns expressed as PIL transposes
_QUARTER_TURNS = {
    1: Image.Transpose.ROTATE_270,
    2: Image.Transpose.ROTATE_180,
    3: Image.Transpose.ROTATE_90,
}


def _quarter_turns(rotation: float) -> Optional[int]:
    """Number of clockwise quarter turns, or None for a non-right angle."""
    turns = rotation / 90.0
    if turns != math.floor(turns):
        return None
    return int(turns) % 4


def rotated_size(width: int, height: int, rotation: float) -> Tuple[int, int]:
    """
    Output canvas size after rotation.

    Width and height swap for odd quarter turns (90, -90, 270 ...). Every
    other angle keeps the input size; corners that rotate out are clipped.
    """
    turns = _quarter_turns(normalize_rotation(rotation))
    if turns is not None and turns % 2 == 1:
        return height, width
    return width, height


def transform_image(
    image: Any,
    rotation: float = 0.0,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
) -> Any:
    """
    Rotate and flip an image.

    Right angles and flips are exact pixel permutations; other angles are
    resampled bicubically onto a transparent canvas of the input size.

    Args:
        image: PIL Image (converted to RGBA)
        rotation: Degrees clockwise
        flip_horizontal: Mirror left/right in output space
        flip_vertical: Mirror top/bottom in output space

    Returns:
        New RGBA PIL Image

    Raises:
        TypeError: If image is not a PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    img = image.convert("RGBA")
    rotation = normalize_rotation(rotation)
    turns = _quarter_turns(rotation)

    if turns is not None:
        if turns:
            img = img.transpose(_QUARTER_TURNS[turns])
        if flip_horizontal:
            img = img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if flip_vertical:
            img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return img

    return _affine_transform(img, rotation, flip_horizontal, flip_vertical)


def _affine_transform(img: Any, rotation: float, flip_horizontal: bool, flip_vertical: bool) -> Any:
    width, height = img.size
    out_width, out_height = rotated_size(width, height, rotation)

    theta = math.radians(rotation)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    scale_x = -1.0 if flip_horizontal else 1.0
    scale_y = -1.0 if flip_vertical else 1.0

    in_cx, in_cy = width / 2.0, height / 2.0
    out_cx, out_cy = out_width / 2.0, out_height / 2.0

    # PIL wants the inverse mapping: source = R^-1 * S * (dest - out_centre) + in_centre
    a = cos_t * scale_x
    b = sin_t * scale_y
    c = in_cx - a * out_cx - b * out_cy
    d = -sin_t * scale_x
    e = cos_t * scale_y
    f = in_cy - d * out_cx - e * out_cy

    return img.transform(
        (out_width, out_height),
        Image.Transform.AFFINE,
        (a, b, c, d, e, f),
        resample=Image.Resampling.BICUBIC,
        fillcolor=TRANSPARENT,
    )


def apply_geometry(
    buffer: RasterBuffer,
    rotation: float = 0.0,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
) -> RasterBuffer:
    """Rotate and flip a buffer, returning a new buffer (the input is untouched)."""
    if normalize_rotation(rotation) == 0 and not flip_horizontal and not flip_vertical:
        return buffer
    return RasterBuffer.from_image(
        transform_image(buffer.to_image(), rotation, flip_horizontal, flip_vertical)
    )


def working_size_for(width: int, height: int, bounds: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """
    Size of an image fitted inside bounds, preserving aspect ratio.

    Images are only ever scaled down. None means no bound.
    """
    if bounds is None or width == 0 or height == 0:
        return width, height

    max_width, max_height = bounds
    scale = min(max_width / width, max_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))


def fit_to_working_size(image: Any, bounds: Optional[Tuple[int, int]]) -> Any:
    """Return an RGBA copy of image scaled down to fit bounds."""
    img = image.convert("RGBA")
    target = working_size_for(img.width, img.height, bounds)
    if target != img.size:
        logger.debug(f"Fitting {img.size} into working size {target}")
        img = img.resize(target, Image.Resampling.LANCZOS)
    return img


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in canvas coordinates.

    Attributes:
        x: Left edge
        y: Top edge
        width: Rectangle width
        height: Rectangle height
    """
    x: float
    y: float
    width: float
    height: float

    def clamped(self, image_width: int, image_height: int) -> "CropRect":
        """
        Integer rectangle clamped to the image bounds.

        A rectangle that falls entirely outside the image, or has no area,
        still yields a 1x1 region at the nearest edge.
        """
        left = int(math.floor(max(0.0, min(float(self.x), image_width - 1))))
        top = int(math.floor(max(0.0, min(float(self.y), image_height - 1))))
        right = int(math.ceil(min(float(self.x) + float(self.width), image_width)))
        bottom = int(math.ceil(min(float(self.y) + float(self.height), image_height)))
        right = max(right, left + 1)
        bottom = max(bottom, top + 1)
        return CropRect(left, top, right - left, bottom - top)

    def scaled(self, scale_x: float, scale_y: float) -> "CropRect":
        return CropRect(self.x * scale_x, self.y * scale_y, self.width * scale_x, self.height * scale_y)

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) for PIL Image.crop()."""
        return (
            int(self.x),
            int(self.y),
            int(self.x + self.width),
            int(self.y + self.height),
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CropRect":
        return cls(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
        )


def crop_image(image: Any, rect: CropRect) -> Any:
    """
    Extract rect from image, clamping it to the image first.

    Args:
        image: PIL Image
        rect: Requested rectangle (may extend past the image)

    Returns:
        New PIL Image of the clamped region
    """
    if image.width == 0 or image.height == 0:
        raise ValueError("Cannot crop an empty image")

    clamped = rect.clamped(image.width, image.height)
    if clamped != rect:
        logger.debug(f"Crop {rect} clamped to {clamped} for image {image.size}")
    return image.crop(clamped.box)


def default_crop_rect(image_width: int, image_height: int) -> CropRect:
    """Initial crop rectangle: the image inset by 10% on every side."""
    return CropRect(
        x=image_width * CROP_DEFAULT_INSET,
        y=image_height * CROP_DEFAULT_INSET,
        width=image_width * (1 - 2 * CROP_DEFAULT_INSET),
        height=image_height * (1 - 2 * CROP_DEFAULT_INSET),
    )


def fit_aspect_ratio(rect: CropRect, aspect: str, image_width: int, image_height: int) -> CropRect:
    """
    Reshape a crop rectangle to an aspect-ratio preset around its centre.

    The width is kept and the height derived from it; if that overflows the
    image, the size is rebuilt from 80% of the limiting dimension. The
    result is then shifted back inside the image.

    Args:
        rect: Current crop rectangle
        aspect: Key of CROP_ASPECT_RATIOS ('free', '1:1', '4:3', '16:9', '9:16')
        image_width: Canvas width
        image_height: Canvas height

    Returns:
        The reshaped rectangle ('free' returns rect unchanged)

    Raises:
        ValueError: If aspect is not a known preset
    """
    if aspect not in CROP_ASPECT_RATIOS:
        raise ValueError(
            f"Unknown aspect ratio: {aspect}. "
            f"Valid ratios: {', '.join(CROP_ASPECT_RATIOS)}"
        )

    ratio = CROP_ASPECT_RATIOS[aspect]
    if ratio is None:
        return rect

    center_x = rect.x + rect.width / 2
    center_y = rect.y + rect.height / 2

    new_width = rect.width
    new_height = rect.width / ratio

    if new_height > image_height:
        new_height = image_height * (1 - 2 * CROP_DEFAULT_INSET)
        new_width = new_height * ratio

    if new_width > image_width:
        new_width = image_width * (1 - 2 * CROP_DEFAULT_INSET)
        new_height = new_width / ratio

    new_x = max(0.0, min(center_x - new_width / 2, image_width - new_width))
    new_y = max(0.0, min(center_y - new_height / 2, image_height - new_height))

    return CropRect(new_x, new_y, new_width, new_height)
