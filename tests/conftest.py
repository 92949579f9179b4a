"""
Pytest configuration and shared fixtures for Open Photo tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import base64
import io
import struct
import zlib

import numpy as np
import pytest
from PIL import Image

from OP_Libs.config import EditorConfig
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer


def encode_png(image) -> bytes:
    """Encode a PIL image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_url(image) -> str:
    """Base64 data URL for a PIL image."""
    return "data:image/png;base64," + base64.b64encode(encode_png(image)).decode("ascii")


def oversized_png(width: int = 100000, height: int = 100000) -> bytes:
    """PNG bytes whose header claims width x height pixels, past the decoder's size limit."""
    data = bytearray(encode_png(Image.new("RGBA", (1, 1))))
    # IHDR payload sits at bytes 16-29, its CRC (over type and payload) at 29-33
    data[16:24] = struct.pack(">II", width, height)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)


@pytest.fixture
def temp_project_dir(tmp_path):
    """
    Provide a temporary directory for photo stores and output files.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]


@pytest.fixture
def random_buffer():
    """A 16x12 buffer of seeded random colours with varied alpha."""
    rng = np.random.default_rng(1234)
    return RasterBuffer(rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8))


@pytest.fixture
def red_image():
    """100x100 opaque red PIL image."""
    return Image.new("RGBA", (100, 100), (255, 0, 0, 255))


@pytest.fixture
def red_png_bytes(red_image):
    return encode_png(red_image)


@pytest.fixture
def seeded_config():
    """Editor config with a fixed noise seed."""
    return EditorConfig(noise_seed=42)
