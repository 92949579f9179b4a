"""
Font and sticker image loading.

The ResourceLoader resolves everything a layer needs before it can be
drawn: a font for text layers and a decoded image for sticker layers.
Loaded resources are cached, and so are failures, so a layer that failed
during preload is skipped immediately at render time instead of blocking
on the same source again.

Blocking work (file reads, HTTP requests, decoding) runs in a worker
thread via asyncio.to_thread and is bounded by a timeout.

Example:
    >>> loader = ResourceLoader(font_dirs=["assets/fonts"])
    >>> failures = asyncio.run(loader.preload(stack.layers))
    >>> font = loader.load_font("Roboto", 24, bold=True)
"""

import asyncio
import base64
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import ImageFont

from OP_Libs.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    FONT_FILE_EXTENSIONS,
    LAYER_KIND_STICKER,
    LAYER_KIND_TEXT,
)
from OP_Libs.errors import ImageDecodeError, ResourceLoadFailure
from OP_Libs.ImageEditingLib.raster_models import decode_image

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*?),(?P<payload>.*)$", re.DOTALL)

# Filename suffixes tried for each (bold, italic) style, most specific first
_STYLE_SUFFIXES = {
    (False, False): ("", "regular"),
    (True, False): ("bold",),
    (False, True): ("italic", "oblique"),
    (True, True): ("bolditalic", "boldoblique", "italicbold"),
}

FontKey = Tuple[str, int, bool, bool]


def _normalize_name(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower())


def describe_source(src: str, limit: int = 48) -> str:
    """Short printable form of a sticker source (data URLs get long)."""
    return src if len(src) <= limit else f"{src[:limit]}..."


def decode_data_url(src: str) -> bytes:
    """
    Decode the payload of a data: URL.

    Raises:
        ValueError: If src is not a well-formed data URL
    """
    match = _DATA_URL.match(src)
    if match is None:
        raise ValueError("malformed data URL")

    payload = match.group("payload")
    if ";base64" in match.group("params").lower():
        try:
            return base64.b64decode(payload, validate=False)
        except ValueError as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
    return unquote_to_bytes(payload)


class ResourceLoader:
    """Loads and caches fonts and sticker images."""

    def __init__(
        self,
        font_dirs: Optional[Iterable[str]] = None,
        timeout: float = DEFAULT_RESOURCE_TIMEOUT,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            font_dirs: Directories searched (recursively) for font files
            timeout: Seconds an async load may take before it fails
            http_timeout: Seconds for the underlying HTTP request
            session: Optional requests session for remote stickers
        """
        self.font_dirs = [Path(d) for d in (font_dirs or [])]
        self.timeout = timeout
        self.http_timeout = http_timeout
        self._session = session
        self._font_index: Optional[Dict[str, Path]] = None
        self._fonts: Dict[FontKey, Any] = {}
        self._font_failures: Dict[FontKey, ResourceLoadFailure] = {}
        self._stickers: Dict[str, Any] = {}
        self._sticker_failures: Dict[str, ResourceLoadFailure] = {}

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------

    def _build_font_index(self) -> Dict[str, Path]:
        index: Dict[str, Path] = {}
        for font_dir in self.font_dirs:
            if not font_dir.is_dir():
                logger.warning(f"Font directory not found: {font_dir}")
                continue
            for path in sorted(font_dir.rglob("*")):
                if path.suffix.lower() in FONT_FILE_EXTENSIONS:
                    index.setdefault(_normalize_name(path.stem), path)
        logger.debug(f"Indexed {len(index)} font files")
        return index

    def find_font_file(self, family: str, bold: bool = False, italic: bool = False) -> Optional[Path]:
        """
        Find the font file for a family and style.

        Falls back to the regular face when the styled face is missing.

        Returns:
            Path to the font file, or None if the family is not installed
        """
        if self._font_index is None:
            self._font_index = self._build_font_index()

        base = _normalize_name(family)
        if not base:
            return None

        candidates = list(_STYLE_SUFFIXES[(bool(bold), bool(italic))])
        candidates.extend(_STYLE_SUFFIXES[(False, False)])
        for suffix in candidates:
            path = self._font_index.get(base + suffix)
            if path is not None:
                return path
        return None

    def load_font(self, family: str, size: float, bold: bool = False, italic: bool = False) -> Any:
        """
        Load a font, falling back to Pillow's default font for unknown families.

        Args:
            family: Font family name
            size: Pixel size
            bold: Prefer a bold face
            italic: Prefer an italic face

        Returns:
            A Pillow font object

        Raises:
            ResourceLoadFailure: If a matching font file exists but cannot be read
        """
        key: FontKey = (family, max(1, int(round(size))), bool(bold), bool(italic))
        if key in self._fonts:
            return self._fonts[key]
        if key in self._font_failures:
            raise self._font_failures[key]

        path = self.find_font_file(family, bold, italic)
        if path is None:
            logger.warning(f"Font family {family!r} not found, using default font")
            font = ImageFont.load_default(size=key[1])
        else:
            try:
                font = ImageFont.truetype(str(path), size=key[1])
            except OSError as e:
                failure = ResourceLoadFailure(f"font:{family}", f"{path}: {e}")
                self._font_failures[key] = failure
                raise failure from e

        self._fonts[key] = font
        return font

    async def ensure_font(self, family: str, size: float, bold: bool = False, italic: bool = False) -> Any:
        """Async load_font bounded by the loader timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.load_font, family, size, bold, italic),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            failure = ResourceLoadFailure(f"font:{family}", f"timed out after {self.timeout}s")
            self._font_failures[(family, max(1, int(round(size))), bool(bold), bool(italic))] = failure
            raise failure from e

    # ------------------------------------------------------------------
    # Stickers
    # ------------------------------------------------------------------

    def _fetch_bytes(self, src: str) -> bytes:
        if src.startswith("data:"):
            return decode_data_url(src)

        scheme = urlparse(src).scheme.lower()
        if scheme in ("http", "https"):
            getter = self._session.get if self._session is not None else requests.get
            response = getter(src, timeout=self.http_timeout)
            response.raise_for_status()
            return response.content

        if scheme == "file":
            return Path(unquote_to_bytes(urlparse(src).path).decode("utf-8")).read_bytes()
        return Path(src).read_bytes()

    def load_sticker(self, src: str) -> Any:
        """
        Load and decode a sticker image.

        Args:
            src: http(s) URL, data URL, file:// URL or local path

        Returns:
            RGBA PIL Image (shared from the cache; copy before modifying)

        Raises:
            ResourceLoadFailure: If the source cannot be fetched or decoded
        """
        if src in self._stickers:
            return self._stickers[src]
        if src in self._sticker_failures:
            raise self._sticker_failures[src]

        label = describe_source(src)
        try:
            image = decode_image(self._fetch_bytes(src))
        except (OSError, ValueError, requests.RequestException, ImageDecodeError) as e:
            failure = ResourceLoadFailure(label, str(e))
            self._sticker_failures[src] = failure
            raise failure from e

        logger.debug(f"Loaded sticker {label} ({image.width}x{image.height})")
        self._stickers[src] = image
        return image

    async def ensure_sticker(self, src: str) -> Any:
        """Async load_sticker bounded by the loader timeout."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.load_sticker, src), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            failure = ResourceLoadFailure(describe_source(src), f"timed out after {self.timeout}s")
            self._sticker_failures[src] = failure
            raise failure from e

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    async def ensure_layer(self, layer: Any) -> Any:
        """Load whatever resource a layer needs."""
        if layer.kind == LAYER_KIND_TEXT:
            return await self.ensure_font(layer.font_family, layer.font_size, layer.bold, layer.italic)
        if layer.kind == LAYER_KIND_STICKER:
            return await self.ensure_sticker(layer.src)
        raise ValueError(f"Unknown layer kind: {layer.kind!r}")

    async def preload(self, layers: Iterable[Any]) -> Dict[str, ResourceLoadFailure]:
        """
        Load the resources of every visible layer concurrently.

        Returns:
            Failures keyed by layer id (empty when everything loaded)
        """
        pending: List[Any] = [layer for layer in layers if layer.visible]
        results = await asyncio.gather(
            *(self.ensure_layer(layer) for layer in pending),
            return_exceptions=True,
        )

        failures: Dict[str, ResourceLoadFailure] = {}
        for layer, result in zip(pending, results):
            if isinstance(result, ResourceLoadFailure):
                logger.warning(f"Layer {layer.id}: {result.message}")
                failures[layer.id] = result
            elif isinstance(result, BaseException):
                raise result
        return failures

    def clear_cache(self) -> None:
        self._fonts.clear()
        self._font_failures.clear()
        self._stickers.clear()
        self._sticker_failures.clear()
        self._font_index = None
