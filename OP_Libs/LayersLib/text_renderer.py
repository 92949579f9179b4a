"""
Text layer rendering.

Lays text out the same way the interactive text box displays it:

- 8px horizontal / 4px vertical padding inside the layer box
- left and right alignment anchor on the padded content edges, center
  anchors on the middle of the full box
- lines split on '\\n', each line top-aligned at y + 4 + index * fontSize * 1.2
- outline drawn under the fill when stroke_width > 0
- underline at line top + fontSize + 2, max(1, fontSize / 16) thick,
  spanning the measured line width
- drop shadow when any shadow parameter is non-zero

Classes:
    TextAnchor: Anchor x and alignment used for drawing

Functions:
    text_anchor: Anchor for a layer
    line_tops: Top y of each line
    draw_text_layer: Draw a text layer onto an RGBA surface
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Tuple

from PIL import ImageDraw, ImageFilter

from OP_Libs.constants import (
    TEXT_LINE_HEIGHT,
    TEXT_PADDING_X,
    TEXT_PADDING_Y,
    UNDERLINE_GAP,
    UNDERLINE_THICKNESS_DIVISOR,
)
from OP_Libs.LayersLib.layer_models import TextLayer
from OP_Libs.LayersLib.layer_surface import composite_overlay, new_overlay, parse_color

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextAnchor:
    """Horizontal anchor of a text layer.

    Attributes:
        x: Anchor x in canvas pixels
        align: 'left' (x is the line start), 'center' or 'right' (x is the line end)
    """
    x: float
    align: str

    def line_left(self, line_width: float) -> float:
        """Left edge of a line of the given measured width."""
        if self.align == "center":
            return self.x - line_width / 2
        if self.align == "right":
            return self.x - line_width
        return self.x


def text_anchor(layer: TextLayer) -> TextAnchor:
    """Anchor x for the layer's alignment; independent of the font."""
    if layer.align == "center":
        return TextAnchor(layer.x + layer.width / 2, "center")
    if layer.align == "right":
        return TextAnchor(layer.x + layer.width - TEXT_PADDING_X, "right")
    return TextAnchor(layer.x + TEXT_PADDING_X, "left")


def line_tops(layer: TextLayer) -> List[float]:
    """Top y of each line of content."""
    line_height = layer.font_size * TEXT_LINE_HEIGHT
    return [
        layer.y + TEXT_PADDING_Y + index * line_height
        for index in range(len(layer.content.split("\n")))
    ]


def underline_thickness(font_size: float) -> int:
    return max(1, int(round(font_size / UNDERLINE_THICKNESS_DIVISOR)))


def _stroke_extent(stroke_width: float) -> int:
    # PIL strokes outward only, so its width is half the centred canvas line
    if stroke_width <= 0:
        return 0
    return max(1, int(round(stroke_width)))


def _draw_lines(
    draw: Any,
    layer: TextLayer,
    font: Any,
    fill: Tuple[int, ...],
    stroke_fill: Tuple[int, ...],
    offset: Tuple[float, float] = (0.0, 0.0),
) -> None:
    anchor = text_anchor(layer)
    stroke_width = _stroke_extent(layer.stroke_width)
    offset_x, offset_y = offset

    for line, top in zip(layer.content.split("\n"), line_tops(layer)):
        line_width = draw.textlength(line, font=font)
        left = anchor.line_left(line_width) + offset_x
        top += offset_y

        if line:
            draw.text(
                (left, top),
                line,
                font=font,
                fill=fill,
                stroke_width=stroke_width,
                stroke_fill=stroke_fill,
            )

        if layer.underline and line_width > 0:
            underline_y = top + layer.font_size + UNDERLINE_GAP
            draw.line(
                [(left, underline_y), (left + line_width, underline_y)],
                fill=fill,
                width=underline_thickness(layer.font_size),
            )


def draw_text_layer(surface: Any, layer: TextLayer, font: Any) -> None:
    """
    Draw a text layer onto surface in place.

    Args:
        surface: RGBA PIL Image
        layer: Layer to draw
        font: Pillow font resolved for the layer's family, size and style
    """
    if not layer.content or layer.opacity <= 0:
        return

    fill = parse_color(layer.color)
    stroke_fill = parse_color(layer.stroke_color)
    overlay = new_overlay(surface.size, fill[:3])

    if layer.has_shadow:
        shadow_color = parse_color(layer.shadow_color)
        shadow = new_overlay(surface.size, shadow_color[:3])
        _draw_lines(
            ImageDraw.Draw(shadow),
            layer,
            font,
            shadow_color,
            shadow_color,
            offset=(layer.shadow_x, layer.shadow_y),
        )
        if layer.shadow_blur > 0:
            shadow = shadow.filter(ImageFilter.GaussianBlur(layer.shadow_blur / 2))
        overlay.alpha_composite(shadow)

    glyphs = new_overlay(surface.size, fill[:3])
    _draw_lines(ImageDraw.Draw(glyphs), layer, font, fill, stroke_fill)
    overlay.alpha_composite(glyphs)

    composite_overlay(surface, overlay, layer.center, layer.rotation, layer.opacity)
