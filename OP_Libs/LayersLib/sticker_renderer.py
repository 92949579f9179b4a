"""
Sticker layer rendering.

The sticker image is scaled into the layer box, rotated about the box
centre and faded by the layer opacity.
"""

import logging
from typing import Any

from PIL import Image

from OP_Libs.LayersLib.layer_models import StickerLayer
from OP_Libs.LayersLib.layer_surface import composite_overlay

logger = logging.getLogger(__name__)


def draw_sticker_layer(surface: Any, layer: StickerLayer, image: Any) -> None:
    """
    Draw a sticker layer onto surface in place.

    Args:
        surface: RGBA PIL Image
        layer: Layer to draw
        image: Decoded sticker image (any mode, left unmodified)
    """
    width = int(round(layer.width))
    height = int(round(layer.height))
    if width < 1 or height < 1 or layer.opacity <= 0:
        logger.debug(f"Sticker {layer.id} has nothing to draw")
        return

    sticker = image.convert("RGBA")
    if sticker.size != (width, height):
        sticker = sticker.resize((width, height), Image.Resampling.LANCZOS)

    # Inverse mapping from surface pixels into the resized sticker; keeps
    # fractional positions and sizes, and copies pixels exactly when both
    # are whole numbers
    scale_x = width / layer.width
    scale_y = height / layer.height
    overlay = sticker.transform(
        surface.size,
        Image.Transform.AFFINE,
        (scale_x, 0.0, -layer.x * scale_x, 0.0, scale_y, -layer.y * scale_y),
        resample=Image.Resampling.BICUBIC,
        fillcolor=(0, 0, 0, 0),
    )

    composite_overlay(surface, overlay, layer.center, layer.rotation, layer.opacity)
