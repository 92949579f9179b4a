"""
Raster data models for Open Photo.

This module defines the pixel buffer passed between pipeline stages.

Classes:
    RasterBuffer: RGBA pixel grid backed by a (height, width, 4) uint8 array

Functions:
    write_channels: Store float channel values with clamped-byte semantics

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

import io
from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from OP_Libs.errors import ImageDecodeError

RgbaColor = Tuple[int, int, int, int]


def write_channels(target: np.ndarray, values: np.ndarray) -> None:
    """
    Write float values into a uint8 view the way a clamped byte array does.

    Values are rounded to nearest (ties to even), clamped to [0, 255],
    and NaN is written as 0.

    Args:
        target: uint8 array view to overwrite in place
        values: Float array broadcastable to target
    """
    values = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=255.0, neginf=0.0)
    np.clip(np.rint(values), 0, 255, out=values)
    target[...] = values.astype(np.uint8)


@dataclass
class RasterBuffer:
    """RGBA pixel grid.

    Attributes:
        pixels: C-contiguous uint8 array of shape (height, width, 4)
    """
    pixels: np.ndarray

    def __post_init__(self):
        if not isinstance(self.pixels, np.ndarray):
            raise TypeError(f"Expected numpy array, got {type(self.pixels)}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"pixels must have shape (height, width, 4), got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            self.pixels = self.pixels.astype(np.uint8)
        self.pixels = np.ascontiguousarray(self.pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def data(self) -> np.ndarray:
        """Flat R,G,B,A byte view (writes go through to the buffer)."""
        return self.pixels.reshape(-1)

    @property
    def rgb(self) -> np.ndarray:
        """View of the colour channels; alpha is left out."""
        return self.pixels[:, :, :3]

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.pixels.copy())

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the current pixels."""
        frozen = self.pixels.copy()
        frozen.setflags(write=False)
        return frozen

    def to_image(self) -> Any:
        """Convert to a PIL Image in RGBA mode."""
        return Image.fromarray(self.pixels)

    @classmethod
    def new(cls, width: int, height: int, color: RgbaColor = (0, 0, 0, 0)) -> "RasterBuffer":
        """Create a buffer filled with a single colour."""
        pixels = np.empty((int(height), int(width), 4), dtype=np.uint8)
        pixels[...] = np.array(color, dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_image(cls, image: Any) -> "RasterBuffer":
        """
        Create a buffer from a PIL Image.

        Args:
            image: PIL Image in any mode (converted to RGBA)

        Returns:
            New RasterBuffer owning a copy of the pixels

        Raises:
            TypeError: If image is not a PIL Image
        """
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, content: bytes) -> "RasterBuffer":
        """
        Decode an encoded image (PNG, JPEG, ...) into a buffer.

        Raises:
            ImageDecodeError: If the bytes are not a decodable image
        """
        return cls.from_image(decode_image(content))


def decode_image(content: bytes) -> Any:
    """
    Decode encoded image bytes into an RGBA PIL Image.

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
