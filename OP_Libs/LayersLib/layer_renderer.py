"""
Layer renderer.

Draws a layer sequence onto an RGBA surface in order (index 0 first, at
the bottom). Hidden layers are skipped. A layer whose font or sticker
image cannot be loaded is skipped with a warning and the remaining
layers still render.
"""

import logging
from typing import Any, Iterable, List, Optional

from OP_Libs.errors import ResourceLoadFailure
from OP_Libs.LayersLib.layer_models import Layer, StickerLayer, TextLayer
from OP_Libs.LayersLib.resource_loader import ResourceLoader
from OP_Libs.LayersLib.sticker_renderer import draw_sticker_layer
from OP_Libs.LayersLib.text_renderer import draw_text_layer

logger = logging.getLogger(__name__)


def render_layer(surface: Any, layer: Layer, loader: ResourceLoader) -> None:
    """
    Draw a single layer.

    Raises:
        ResourceLoadFailure: If the layer's font or image cannot be loaded
        TypeError: If layer is not a TextLayer or StickerLayer
    """
    if isinstance(layer, TextLayer):
        font = loader.load_font(layer.font_family, layer.font_size, layer.bold, layer.italic)
        draw_text_layer(surface, layer, font)
    elif isinstance(layer, StickerLayer):
        draw_sticker_layer(surface, layer, loader.load_sticker(layer.src))
    else:
        raise TypeError(f"Expected TextLayer or StickerLayer, got {type(layer)}")


def render_layers(
    surface: Any,
    layers: Iterable[Layer],
    loader: Optional[ResourceLoader] = None,
) -> List[str]:
    """
    Draw layers onto surface in place, bottom first.

    Args:
        surface: RGBA PIL Image
        layers: Layers in z-order
        loader: Resource loader (a default loader when omitted)

    Returns:
        Ids of layers skipped because a resource failed to load

    Raises:
        ValueError: If surface is not an RGBA image
    """
    if getattr(surface, "mode", None) != "RGBA":
        raise ValueError(f"Layer surface must be an RGBA image, got {getattr(surface, 'mode', type(surface))}")

    if loader is None:
        loader = ResourceLoader()

    skipped: List[str] = []
    for layer in layers:
        if not layer.visible:
            continue
        try:
            render_layer(surface, layer, loader)
        except ResourceLoadFailure as e:
            logger.warning(f"Skipping layer {layer.id}: {e.message}")
            skipped.append(layer.id)
    return skipped
