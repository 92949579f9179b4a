"""
LayersLib - Text and sticker overlay layers

This module provides the layer model, the ordered layer stack, resource
loading for fonts and sticker images, and the layer renderers.
"""

from OP_Libs.LayersLib.layer_models import (
    Layer,
    TextLayer,
    StickerLayer,
    new_layer_id,
    layer_from_dict,
)
from OP_Libs.LayersLib.layer_stack import LayerStack
from OP_Libs.LayersLib.resource_loader import ResourceLoader
from OP_Libs.LayersLib.text_renderer import TextAnchor, text_anchor, draw_text_layer
from OP_Libs.LayersLib.sticker_renderer import draw_sticker_layer
from OP_Libs.LayersLib.layer_renderer import render_layer, render_layers

__all__ = [
    "Layer",
    "TextLayer",
    "StickerLayer",
    "new_layer_id",
    "layer_from_dict",
    "LayerStack",
    "ResourceLoader",
    "TextAnchor",
    "text_anchor",
    "draw_text_layer",
    "draw_sticker_layer",
    "render_layer",
    "render_layers",
]
