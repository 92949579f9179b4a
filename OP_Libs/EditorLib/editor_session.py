"""
Editor session for Open Photo.

An EditorSession owns everything one open photo needs: the decoded
original, the pre-crop original kept for Reset, the current Adjustments,
the layer stack and the resource loader. Every preview and export is
re-derived from the original, so adjustments never accumulate.

Example:
    >>> session = EditorSession.from_file("beach.jpg")
    >>> session.set_temperature(-40)
    >>> session.layers.create("text", content="Summer", font_size=48)
    >>> preview = session.render_preview()
    >>> exported = session.export_final()
"""

import asyncio
import logging
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Optional, Tuple

import numpy as np

from OP_Libs.config import EditorConfig
from OP_Libs.constants import DEFAULT_PHOTO_TITLE
from OP_Libs.EditorLib.export_compositor import ExportedImage, composite, export_image
from OP_Libs.ImageEditingLib.adjustment_pipeline import render
from OP_Libs.ImageEditingLib.adjustments import Adjustments, normalize_rotation
from OP_Libs.ImageEditingLib.geometry import (
    CropRect,
    crop_image,
    rotated_size,
    transform_image,
    working_size_for,
)
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer, decode_image
from OP_Libs.LayersLib.layer_models import Layer
from OP_Libs.LayersLib.layer_stack import LayerStack
from OP_Libs.LayersLib.resource_loader import ResourceLoader
from OP_Libs.PhotoStoreLib.photo_store import Photo, PhotoStore

logger = logging.getLogger(__name__)


class EditorSession:
    """One photo being edited."""

    def __init__(
        self,
        original: Any,
        config: Optional[EditorConfig] = None,
        loader: Optional[ResourceLoader] = None,
        layers: Optional[LayerStack] = None,
    ):
        """
        Args:
            original: Decoded source as a PIL Image
            config: Editor configuration (defaults when omitted)
            loader: Resource loader (built from config when omitted)
            layers: Initial layer stack
        """
        if not hasattr(original, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(original)}")

        self.config = config or EditorConfig()
        self._pre_crop_original = original.convert("RGBA")
        self._original = self._pre_crop_original
        self.adjustments = Adjustments()
        self.layers = layers or LayerStack()
        self.loader = loader or ResourceLoader(
            font_dirs=self.config.font_dirs,
            timeout=self.config.resource_timeout,
            http_timeout=self.config.http_timeout,
        )
        self.noise_seed = (
            self.config.noise_seed if self.config.noise_seed is not None else secrets.randbits(63)
        )
        self.photo_id: Optional[int] = None
        self.title: str = DEFAULT_PHOTO_TITLE

        self._lock = threading.Lock()
        self._generation = 0
        self._executor: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, content: bytes, config: Optional[EditorConfig] = None, **kwargs: Any) -> "EditorSession":
        """Decode encoded image bytes. Raises ImageDecodeError."""
        return cls(decode_image(content), config=config, **kwargs)

    @classmethod
    def from_file(cls, path: Path, config: Optional[EditorConfig] = None, **kwargs: Any) -> "EditorSession":
        return cls.from_bytes(Path(path).read_bytes(), config=config, **kwargs)

    @classmethod
    def open_photo(
        cls,
        store: PhotoStore,
        photo_id: int,
        config: Optional[EditorConfig] = None,
        **kwargs: Any,
    ) -> "EditorSession":
        """
        Open a photo from a store.

        Raises:
            PhotoNotFoundError: If the store has no such photo
            PhotoStoreError: If the store cannot be reached
            ImageDecodeError: If the stored bytes do not decode
        """
        photo = store.fetch(photo_id)
        session = cls.from_bytes(photo.content, config=config, **kwargs)
        session.photo_id = photo.id
        session.title = photo.title or DEFAULT_PHOTO_TITLE
        logger.info(f"Opened photo {photo.id} ({session.original.width}x{session.original.height})")
        return session

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def original(self) -> Any:
        """Current base image (the crop result once cropped)."""
        return self._original

    @property
    def pre_crop_original(self) -> Any:
        return self._pre_crop_original

    @property
    def working_size(self) -> Tuple[int, int]:
        """Size of the working canvas before rotation."""
        return working_size_for(self._original.width, self._original.height, self.config.working_size)

    @property
    def canvas_size(self) -> Tuple[int, int]:
        """Size of the rendered canvas (rotation applied)."""
        width, height = self.working_size
        return rotated_size(width, height, self.adjustments.rotation)

    def _set(self, **values: Any) -> Adjustments:
        with self._lock:
            self.adjustments = self.adjustments.with_changes(**values)
            return self.adjustments

    def set_adjustments(self, adjustments: Adjustments) -> Adjustments:
        with self._lock:
            self.adjustments = adjustments.clamped()
            return self.adjustments

    def update_adjustments(self, **values: Any) -> Adjustments:
        """Set several knobs at once (unknown names are ignored)."""
        return self._set(**values)

    def reset_adjustments(self) -> Adjustments:
        return self.set_adjustments(Adjustments())

    def set_brightness(self, value: float) -> Adjustments:
        return self._set(brightness=value)

    def set_contrast(self, value: float) -> Adjustments:
        return self._set(contrast=value)

    def set_saturation(self, value: float) -> Adjustments:
        return self._set(saturation=value)

    def set_named_filter(self, name: str) -> Adjustments:
        return self._set(named_filter=name)

    def set_rotation(self, degrees: float) -> Adjustments:
        return self._set(rotation=degrees)

    def set_flip_horizontal(self, flipped: bool) -> Adjustments:
        return self._set(flip_horizontal=flipped)

    def set_flip_vertical(self, flipped: bool) -> Adjustments:
        return self._set(flip_vertical=flipped)

    def set_temperature(self, value: float) -> Adjustments:
        return self._set(temperature=value)

    def set_hue(self, value: float) -> Adjustments:
        return self._set(hue=value)

    def set_exposure(self, value: float) -> Adjustments:
        return self._set(exposure=value)

    def set_shadows(self, value: float) -> Adjustments:
        return self._set(shadows=value)

    def set_highlights(self, value: float) -> Adjustments:
        return self._set(highlights=value)

    def set_clarity(self, value: float) -> Adjustments:
        return self._set(clarity=value)

    def set_vibrance(self, value: float) -> Adjustments:
        return self._set(vibrance=value)

    def set_sharpness(self, value: float) -> Adjustments:
        return self._set(sharpness=value)

    def set_blur(self, value: float) -> Adjustments:
        return self._set(blur=value)

    def set_noise(self, value: float) -> Adjustments:
        return self._set(noise=value)

    def set_vignette(self, value: float) -> Adjustments:
        return self._set(vignette=value)

    def rotate_left(self) -> Adjustments:
        """Rotate 90 degrees counter-clockwise."""
        return self._set(rotation=normalize_rotation(self.adjustments.rotation - 90))

    def rotate_right(self) -> Adjustments:
        """Rotate 90 degrees clockwise."""
        return self._set(rotation=normalize_rotation(self.adjustments.rotation + 90))

    def toggle_flip_horizontal(self) -> Adjustments:
        return self._set(flip_horizontal=not self.adjustments.flip_horizontal)

    def toggle_flip_vertical(self) -> Adjustments:
        return self._set(flip_vertical=not self.adjustments.flip_vertical)

    # ------------------------------------------------------------------
    # Crop / reset
    # ------------------------------------------------------------------

    def crop(self, rect: CropRect) -> Any:
        """
        Crop the current canvas and make the result the new base image.

        rect is in canvas coordinates (the rendered preview, rotation and
        flips included). It is mapped onto the full-resolution source so
        no resolution is lost, and clamped to the canvas. Rotation and
        flips are folded into the new base and reset; pixel adjustments
        stay as they are.

        Returns:
            The new base image
        """
        with self._lock:
            adjustments = self.adjustments
            transformed = transform_image(
                self._original,
                adjustments.rotation,
                adjustments.flip_horizontal,
                adjustments.flip_vertical,
            )
            canvas_width, canvas_height = rotated_size(
                *working_size_for(self._original.width, self._original.height, self.config.working_size),
                adjustments.rotation,
            )
            canvas_rect = rect.clamped(canvas_width, canvas_height)
            scaled = canvas_rect.scaled(
                transformed.width / canvas_width,
                transformed.height / canvas_height,
            )

            self._original = crop_image(transformed, scaled)
            self.adjustments = Adjustments(
                **{
                    **adjustments.to_dict(),
                    "rotation": 0.0,
                    "flip_horizontal": False,
                    "flip_vertical": False,
                }
            )

        logger.info(f"Cropped to {self._original.width}x{self._original.height}")
        return self._original

    def reset(self) -> None:
        """Restore the pre-crop original and neutral adjustments. Layers are kept."""
        with self._lock:
            self._original = self._pre_crop_original
            self.adjustments = Adjustments()
            self._generation += 1
        logger.debug("Session reset")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _rng(self) -> np.random.Generator:
        return np.random.default_rng(self.noise_seed)

    def _render_snapshot(
        self,
        original: Any,
        adjustments: Adjustments,
        layers: Optional[List[Layer]],
        generation: Optional[int] = None,
    ) -> Optional[Any]:
        if generation is not None and generation != self._generation:
            logger.debug(f"Skipping superseded render {generation}")
            return None

        base = render(original, adjustments, self.config.working_size, rng=self._rng())
        if layers is None:
            return base.to_image()
        return composite(base, layers, self.loader)

    def render_base(self) -> RasterBuffer:
        """Adjusted, rotated and flipped base raster (no layers)."""
        return render(self._original, self.adjustments, self.config.working_size, rng=self._rng())

    def render_preview(self, include_layers: bool = True) -> Any:
        """
        Render the current state.

        Args:
            include_layers: Draw visible layers over the base

        Returns:
            RGBA PIL Image
        """
        with self._lock:
            original, adjustments = self._original, self.adjustments
            layers = self.layers.layers if include_layers else None
        return self._render_snapshot(original, adjustments, layers)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="open-photo-render")
        return self._executor

    async def render_preview_async(self, include_layers: bool = True) -> Optional[Any]:
        """
        Render the current state off the event loop.

        Each call supersedes earlier ones: a render whose request is no
        longer the latest returns None instead of its image.

        Returns:
            RGBA PIL Image, or None if a newer request superseded this one
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            original, adjustments = self._original, self.adjustments
            layers = self.layers.layers if include_layers else None

        if layers:
            await self.loader.preload(layers)

        if self.config.background_render:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                self._get_executor(),
                self._render_snapshot,
                original,
                adjustments,
                layers,
                generation,
            )
        else:
            result = self._render_snapshot(original, adjustments, layers, generation)

        if generation != self._generation:
            logger.debug(f"Discarding render {generation}; latest is {self._generation}")
            return None
        return result

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_final(self, export_format: Optional[str] = None, quality: Optional[int] = None) -> ExportedImage:
        """
        Flatten base and layers and encode them.

        Raises:
            ExportFailure: On an empty canvas, unsupported format or encoder error
        """
        with self._lock:
            original, adjustments = self._original, self.adjustments
            layers = self.layers.layers

        base = render(original, adjustments, self.config.working_size, rng=self._rng())
        return export_image(
            base,
            layers,
            self.loader,
            export_format=export_format or self.config.export_format,
            quality=quality if quality is not None else self.config.export_quality,
        )

    async def export_final_async(
        self,
        export_format: Optional[str] = None,
        quality: Optional[int] = None,
    ) -> ExportedImage:
        """Wait for fonts and sticker images, then export off the event loop."""
        await self.loader.preload(self.layers.layers)
        return await asyncio.to_thread(self.export_final, export_format, quality)

    def save_to_store(self, store: PhotoStore, title: Optional[str] = None) -> Photo:
        """
        Export and upload as a new photo (the source photo is never overwritten).

        Raises:
            ExportFailure: If encoding fails
            PhotoStoreError: If the upload fails
        """
        exported = self.export_final()
        photo = store.upload(exported.data, exported.mime_type, title or f"{self.title}_edited")
        logger.info(f"Saved edit as photo {photo.id}")
        return photo

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
