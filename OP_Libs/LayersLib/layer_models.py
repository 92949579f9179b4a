"""
Layer data models for Open Photo.

Layers are overlays composited above the adjusted base image. They are
plain data: the renderer and the editor session decide what to do with
them.

Classes:
    TextLayer: Text overlay with font, stroke, shadow and alignment settings
    StickerLayer: Image overlay referenced by URL, path or data URL

Functions:
    new_layer_id: Generate a unique layer id for a layer kind
    layer_from_dict: Build the right layer class from a dictionary
"""

import logging
import math
import re
import uuid
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Tuple, Union

from OP_Libs.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_SHADOW_COLOR,
    DEFAULT_STICKER_HEIGHT,
    DEFAULT_STICKER_WIDTH,
    DEFAULT_STICKER_X,
    DEFAULT_STICKER_Y,
    DEFAULT_STROKE_COLOR,
    DEFAULT_TEXT_ALIGN,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_CONTENT,
    DEFAULT_TEXT_HEIGHT,
    DEFAULT_TEXT_WIDTH,
    DEFAULT_TEXT_X,
    DEFAULT_TEXT_Y,
    LAYER_KIND_STICKER,
    LAYER_KIND_TEXT,
    TEXT_ALIGNMENTS,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def new_layer_id(kind: str) -> str:
    """Generate an id such as 'text-3f2a9c0d41be'."""
    return f"{kind}-{uuid.uuid4().hex[:12]}"


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _finite(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass
class TextLayer:
    """Text overlay.

    Attributes:
        id: Unique id, stable for the lifetime of the layer
        content: Text; '\\n' starts a new line
        x, y, width, height: Bounding box in canvas pixels
        rotation: Degrees clockwise about the box centre
        opacity: 0.0 (invisible) to 1.0
        visible: Hidden layers are neither rendered nor exported
        font_size: Pixel size
        font_family: Family name resolved by the ResourceLoader
        color: Fill colour (any CSS-style colour string)
        bold, italic, underline: Formatting flags
        align: 'left', 'center' or 'right'
        stroke_color, stroke_width: Outline colour and width (0 = none)
        shadow_x, shadow_y, shadow_blur, shadow_color: Drop shadow
    """
    id: str
    content: str = DEFAULT_TEXT_CONTENT
    x: float = DEFAULT_TEXT_X
    y: float = DEFAULT_TEXT_Y
    width: float = DEFAULT_TEXT_WIDTH
    height: float = DEFAULT_TEXT_HEIGHT
    rotation: float = 0.0
    opacity: float = 1.0
    visible: bool = True
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    color: str = DEFAULT_TEXT_COLOR
    bold: bool = False
    italic: bool = False
    underline: bool = False
    align: str = DEFAULT_TEXT_ALIGN
    stroke_color: str = DEFAULT_STROKE_COLOR
    stroke_width: float = 0.0
    shadow_x: float = 0.0
    shadow_y: float = 0.0
    shadow_blur: float = 0.0
    shadow_color: str = DEFAULT_SHADOW_COLOR
    kind: str = field(default=LAYER_KIND_TEXT, init=False)

    def __post_init__(self):
        self.content = "" if self.content is None else str(self.content)
        self.x = _finite(self.x, DEFAULT_TEXT_X)
        self.y = _finite(self.y, DEFAULT_TEXT_Y)
        self.width = max(0.0, _finite(self.width, DEFAULT_TEXT_WIDTH))
        self.height = max(0.0, _finite(self.height, DEFAULT_TEXT_HEIGHT))
        self.rotation = _finite(self.rotation, 0.0)
        self.opacity = max(0.0, min(1.0, _finite(self.opacity, 1.0)))
        self.font_size = max(1.0, _finite(self.font_size, DEFAULT_FONT_SIZE))
        self.stroke_width = max(0.0, _finite(self.stroke_width, 0.0))
        self.shadow_x = _finite(self.shadow_x, 0.0)
        self.shadow_y = _finite(self.shadow_y, 0.0)
        self.shadow_blur = max(0.0, _finite(self.shadow_blur, 0.0))

        align = str(self.align).lower()
        if align not in TEXT_ALIGNMENTS:
            logger.warning(f"Unknown text alignment {self.align!r}, using '{DEFAULT_TEXT_ALIGN}'")
            align = DEFAULT_TEXT_ALIGN
        self.align = align

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def has_shadow(self) -> bool:
        return self.shadow_blur > 0 or self.shadow_x != 0 or self.shadow_y != 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextLayer":
        """Create from dictionary (camelCase keys accepted, unknown keys dropped)."""
        return cls(**_init_kwargs(cls, data))


@dataclass
class StickerLayer:
    """Image overlay.

    Attributes:
        id: Unique id, stable for the lifetime of the layer
        src: Image reference (http(s) URL, data URL or file path)
        x, y, width, height: Box the image is scaled into
        rotation: Degrees clockwise about the box centre
        opacity: 0.0 (invisible) to 1.0
        visible: Hidden layers are neither rendered nor exported
    """
    id: str
    src: str
    x: float = DEFAULT_STICKER_X
    y: float = DEFAULT_STICKER_Y
    width: float = DEFAULT_STICKER_WIDTH
    height: float = DEFAULT_STICKER_HEIGHT
    rotation: float = 0.0
    opacity: float = 1.0
    visible: bool = True
    kind: str = field(default=LAYER_KIND_STICKER, init=False)

    def __post_init__(self):
        if not self.src:
            raise ValueError("StickerLayer requires a src")
        self.src = str(self.src)
        self.x = _finite(self.x, DEFAULT_STICKER_X)
        self.y = _finite(self.y, DEFAULT_STICKER_Y)
        self.width = max(0.0, _finite(self.width, DEFAULT_STICKER_WIDTH))
        self.height = max(0.0, _finite(self.height, DEFAULT_STICKER_HEIGHT))
        self.rotation = _finite(self.rotation, 0.0)
        self.opacity = max(0.0, min(1.0, _finite(self.opacity, 1.0)))

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StickerLayer":
        """Create from dictionary (camelCase keys accepted, unknown keys dropped)."""
        return cls(**_init_kwargs(cls, data))


Layer = Union[TextLayer, StickerLayer]

LAYER_CLASSES = {
    LAYER_KIND_TEXT: TextLayer,
    LAYER_KIND_STICKER: StickerLayer,
}


def _init_kwargs(cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    init_fields = {f.name for f in fields(cls) if f.init}
    kwargs = {}
    for key, value in data.items():
        name = _snake_case(str(key))
        if name in init_fields:
            kwargs[name] = value
    return kwargs


def layer_from_dict(data: Dict[str, Any]) -> Layer:
    """
    Build a layer from a dictionary.

    The kind is read from 'kind' (or 'type'). A missing id gets a fresh one.

    Raises:
        ValueError: If the kind is unknown or a sticker has no src
    """
    kind = str(data.get("kind") or data.get("type") or "").lower()
    if kind not in LAYER_CLASSES:
        raise ValueError(
            f"Unknown layer kind: {kind!r}. "
            f"Valid kinds: {', '.join(LAYER_CLASSES)}"
        )

    payload = dict(data)
    if not payload.get("id"):
        payload["id"] = new_layer_id(kind)
    return LAYER_CLASSES[kind].from_dict(payload)
