"""
ImageEditingLib - Core image editing functionality

This module provides the raster buffer, the per-pixel and spatial filters,
the adjustment pipeline and geometry operations for the Open Photo project.
"""

from OP_Libs.ImageEditingLib.raster_models import RasterBuffer, RgbaColor, decode_image
from OP_Libs.ImageEditingLib.adjustments import Adjustments, clamp_knob, normalize_rotation
from OP_Libs.ImageEditingLib.pixel_filters import (
    apply_temperature,
    apply_hue,
    apply_exposure,
    apply_shadows,
    apply_highlights,
    apply_vibrance,
    apply_noise,
    apply_vignette,
)
from OP_Libs.ImageEditingLib.spatial_filters import apply_clarity, apply_sharpness, apply_blur
from OP_Libs.ImageEditingLib.basic_adjustments import apply_named_filter, apply_basic_adjustments
from OP_Libs.ImageEditingLib.geometry import (
    CropRect,
    rotated_size,
    transform_image,
    apply_geometry,
    fit_to_working_size,
    crop_image,
    default_crop_rect,
    fit_aspect_ratio,
)
from OP_Libs.ImageEditingLib.adjustment_pipeline import render, apply_adjustments

__all__ = [
    "RasterBuffer",
    "RgbaColor",
    "decode_image",
    "Adjustments",
    "clamp_knob",
    "normalize_rotation",
    "apply_temperature",
    "apply_hue",
    "apply_exposure",
    "apply_shadows",
    "apply_highlights",
    "apply_vibrance",
    "apply_noise",
    "apply_vignette",
    "apply_clarity",
    "apply_sharpness",
    "apply_blur",
    "apply_named_filter",
    "apply_basic_adjustments",
    "CropRect",
    "rotated_size",
    "transform_image",
    "apply_geometry",
    "fit_to_working_size",
    "crop_image",
    "default_crop_rect",
    "fit_aspect_ratio",
    "render",
    "apply_adjustments",
]
