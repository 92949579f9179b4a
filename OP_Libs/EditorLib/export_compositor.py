"""
Export Compositor for Open Photo.

Flattens the adjusted base raster and every visible layer into one image
and encodes it for upload.

Transparent areas (for example the corners left by a free rotation) are
flattened onto black for formats without alpha, as a canvas blob export
does.

Classes:
    ExportedImage: Encoded result with its mime type and dimensions

Functions:
    composite: Base raster + layers -> flattened RGBA image
    encode_image: RGBA image -> encoded bytes
    export_image: composite + encode
    export_image_async: preload layer resources, then export
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from PIL import Image

from OP_Libs.constants import (
    DEFAULT_EXPORT_FORMAT,
    DEFAULT_EXPORT_QUALITY,
    EXPORT_JPEG_BACKGROUND,
    EXPORT_MIME_TYPES,
)
from OP_Libs.errors import ExportFailure
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer
from OP_Libs.LayersLib.layer_models import Layer
from OP_Libs.LayersLib.layer_renderer import render_layers
from OP_Libs.LayersLib.resource_loader import ResourceLoader

logger = logging.getLogger(__name__)

_ALPHA_FORMATS = {"PNG", "WEBP"}


@dataclass(frozen=True)
class ExportedImage:
    """Encoded export ready for the photo store.

    Attributes:
        data: Encoded image bytes
        mime_type: e.g. 'image/jpeg'
        width: Pixel width
        height: Pixel height
    """
    data: bytes
    mime_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


def normalize_format(export_format: str) -> str:
    """
    Canonical Pillow format name ('jpg' -> 'JPEG').

    Raises:
        ExportFailure: If the format is not supported for export
    """
    save_format = str(export_format).upper()
    if save_format == "JPG":
        save_format = "JPEG"
    if save_format not in EXPORT_MIME_TYPES:
        raise ExportFailure(
            f"Unsupported export format: {export_format}. "
            f"Supported formats: {', '.join(EXPORT_MIME_TYPES)}",
            details={"format": export_format},
        )
    return save_format


def composite(
    base: Any,
    layers: Iterable[Layer],
    loader: Optional[ResourceLoader] = None,
) -> Any:
    """
    Draw the base raster, then the layers on top.

    Args:
        base: Adjusted base as a RasterBuffer or PIL Image (not modified)
        layers: Layers in z-order
        loader: Resource loader for fonts and stickers

    Returns:
        New RGBA PIL Image

    Raises:
        ExportFailure: If the base has no pixels
    """
    width, height = base.size
    if width == 0 or height == 0:
        raise ExportFailure(
            f"Cannot export an empty canvas ({width}x{height})",
            details={"width": width, "height": height},
        )

    surface = base.to_image() if isinstance(base, RasterBuffer) else base.convert("RGBA")
    if surface is base:
        surface = surface.copy()
    skipped = render_layers(surface, layers, loader)
    if skipped:
        logger.warning(f"Exported without {len(skipped)} layer(s): {', '.join(skipped)}")
    return surface


def encode_image(
    image: Any,
    export_format: str = DEFAULT_EXPORT_FORMAT,
    quality: int = DEFAULT_EXPORT_QUALITY,
) -> bytes:
    """
    Encode an RGBA image.

    Raises:
        ExportFailure: If the image is empty or the encoder fails
    """
    save_format = normalize_format(export_format)
    if image.width == 0 or image.height == 0:
        raise ExportFailure(f"Cannot encode an empty image ({image.width}x{image.height})")

    kwargs: Dict[str, Any] = {"format": save_format}
    if save_format in ("JPEG", "WEBP"):
        kwargs["quality"] = max(1, min(100, int(quality)))

    if save_format not in _ALPHA_FORMATS and image.mode == "RGBA":
        flattened = Image.new("RGB", image.size, EXPORT_JPEG_BACKGROUND)
        flattened.paste(image, mask=image.getchannel("A"))
        image = flattened

    buffer = io.BytesIO()
    try:
        image.save(buffer, **kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise ExportFailure(f"Failed to encode {save_format}: {e}", details={"format": save_format}) from e
    return buffer.getvalue()


def export_image(
    base: Any,
    layers: Iterable[Layer],
    loader: Optional[ResourceLoader] = None,
    export_format: str = DEFAULT_EXPORT_FORMAT,
    quality: int = DEFAULT_EXPORT_QUALITY,
) -> ExportedImage:
    """
    Composite and encode.

    Args:
        base: Adjusted (post-geometry) base raster
        layers: Layers in z-order
        loader: Resource loader for fonts and stickers
        export_format: JPEG, PNG or WEBP
        quality: Lossy encoder quality 1-100

    Returns:
        ExportedImage

    Raises:
        ExportFailure: On an empty canvas, unsupported format or encoder error
    """
    save_format = normalize_format(export_format)
    flattened = composite(base, layers, loader)
    data = encode_image(flattened, save_format, quality)
    logger.info(f"Exported {flattened.width}x{flattened.height} {save_format} ({len(data)} bytes)")
    return ExportedImage(
        data=data,
        mime_type=EXPORT_MIME_TYPES[save_format],
        width=flattened.width,
        height=flattened.height,
    )


async def export_image_async(
    base: Any,
    layers: Iterable[Layer],
    loader: Optional[ResourceLoader] = None,
    export_format: str = DEFAULT_EXPORT_FORMAT,
    quality: int = DEFAULT_EXPORT_QUALITY,
) -> ExportedImage:
    """Wait for every layer resource, then export in a worker thread."""
    layers = list(layers)
    if loader is None:
        loader = ResourceLoader()
    await loader.preload(layers)
    return await asyncio.to_thread(export_image, base, layers, loader, export_format, quality)
