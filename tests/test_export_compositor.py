"""
Unit tests for export_compositor module.

Tests flattening of base and layers, encoding to each supported format
and the export failure cases.
"""

import base64
import io
import unittest
from unittest.mock import patch

import numpy as np
from PIL import Image

from conftest import oversized_png, png_data_url
from OP_Libs.EditorLib.export_compositor import (
    ExportedImage,
    composite,
    encode_image,
    export_image,
    export_image_async,
    normalize_format,
)
from OP_Libs.errors import ExportFailure
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer
from OP_Libs.LayersLib.layer_models import StickerLayer
from OP_Libs.LayersLib.resource_loader import ResourceLoader


def decode(data):
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert("RGBA")


class TestNormalizeFormat(unittest.TestCase):
    """Test cases for normalize_format."""

    def test_aliases(self):
        self.assertEqual(normalize_format("jpg"), "JPEG")
        self.assertEqual(normalize_format("png"), "PNG")
        self.assertEqual(normalize_format("WebP"), "WEBP")

    def test_unsupported(self):
        with self.assertRaises(ExportFailure):
            normalize_format("bmp")


class TestExportImage(unittest.TestCase):
    """Test cases for composite and export_image."""

    def setUp(self):
        """Set up a red base buffer and a loader."""
        self.base = RasterBuffer.new(40, 30, (255, 0, 0, 255))
        self.loader = ResourceLoader()

    def test_default_export_is_jpeg(self):
        exported = export_image(self.base, [], self.loader)

        self.assertIsInstance(exported, ExportedImage)
        self.assertEqual(exported.mime_type, "image/jpeg")
        self.assertTrue(exported.data.startswith(b"\xff\xd8"))
        self.assertEqual((exported.width, exported.height), (40, 30))
        self.assertEqual(exported.size, len(exported.data))

    def test_png_keeps_exact_pixels(self):
        exported = export_image(self.base, [], self.loader, export_format="PNG")
        self.assertEqual(exported.mime_type, "image/png")
        self.assertEqual(decode(exported.data).getpixel((5, 5)), (255, 0, 0, 255))

    def test_png_keeps_transparency(self):
        base = RasterBuffer.new(10, 10, (0, 0, 0, 0))
        exported = export_image(base, [], self.loader, export_format="PNG")
        self.assertEqual(decode(exported.data).getpixel((5, 5))[3], 0)

    def test_jpeg_flattens_onto_black(self):
        base = RasterBuffer.new(16, 16, (255, 255, 255, 0))
        exported = export_image(base, [], self.loader, export_format="JPEG")
        r, g, b, a = decode(exported.data).getpixel((8, 8))
        self.assertLess(max(r, g, b), 5)
        self.assertEqual(a, 255)

    def test_layers_are_drawn_over_base(self):
        sticker = png_data_url(Image.new("RGBA", (2, 2), (0, 0, 255, 255)))
        layer = StickerLayer(id="s", src=sticker, x=0, y=0, width=10, height=10)

        exported = export_image(self.base, [layer], self.loader, export_format="PNG")
        image = decode(exported.data)

        self.assertEqual(image.getpixel((5, 5)), (0, 0, 255, 255))
        self.assertEqual(image.getpixel((30, 20)), (255, 0, 0, 255))

    def test_missing_layer_resource_still_exports(self):
        layer = StickerLayer(id="gone", src="/not/a/real/file.png")
        with self.assertLogs("OP_Libs.EditorLib.export_compositor", level="WARNING"):
            exported = export_image(self.base, [layer], self.loader, export_format="PNG")
        self.assertEqual(decode(exported.data).getpixel((5, 5)), (255, 0, 0, 255))

    def test_oversized_sticker_is_skipped(self):
        """A sticker too large to decode is dropped, the rest of the export goes ahead."""
        src = "data:image/png;base64," + base64.b64encode(oversized_png()).decode("ascii")
        layer = StickerLayer(id="huge", src=src, x=0, y=0, width=10, height=10)

        with self.assertLogs("OP_Libs.EditorLib.export_compositor", level="WARNING"):
            exported = export_image(self.base, [layer], self.loader, export_format="PNG")

        self.assertEqual(decode(exported.data).getpixel((5, 5)), (255, 0, 0, 255))

    def test_composite_does_not_modify_base(self):
        image = Image.new("RGBA", (20, 20), (255, 0, 0, 255))
        sticker = png_data_url(Image.new("RGBA", (2, 2), (0, 0, 255, 255)))
        layer = StickerLayer(id="s", src=sticker, x=0, y=0, width=10, height=10)

        result = composite(image, [layer], self.loader)

        self.assertIsNot(result, image)
        self.assertEqual(image.getpixel((5, 5)), (255, 0, 0, 255))
        self.assertEqual(result.getpixel((5, 5)), (0, 0, 255, 255))

    def test_zero_size_canvas_fails(self):
        with self.assertRaises(ExportFailure):
            export_image(RasterBuffer.new(0, 10), [], self.loader)

    def test_unsupported_format_fails(self):
        with self.assertRaises(ExportFailure):
            export_image(self.base, [], self.loader, export_format="TIFF")

    def test_encoder_error_is_export_failure(self):
        with patch.object(Image.Image, "save", side_effect=OSError("disk full")):
            with self.assertRaises(ExportFailure):
                encode_image(self.base.to_image(), "PNG")

    def test_quality_is_clamped(self):
        data = encode_image(self.base.to_image(), "jpg", quality=500)
        self.assertTrue(data.startswith(b"\xff\xd8"))

    def test_quality_changes_jpeg_size(self):
        rng = np.random.default_rng(8)
        noisy = RasterBuffer(rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8))
        noisy.pixels[:, :, 3] = 255

        high = export_image(noisy, [], self.loader, quality=95)
        low = export_image(noisy, [], self.loader, quality=10)

        self.assertGreater(high.size, low.size)


class TestExportImageAsync(unittest.IsolatedAsyncioTestCase):
    """Test cases for export_image_async."""

    async def test_exports_after_preload(self):
        sticker = png_data_url(Image.new("RGBA", (2, 2), (0, 255, 0, 255)))
        layer = StickerLayer(id="s", src=sticker, x=0, y=0, width=8, height=8)
        base = RasterBuffer.new(20, 20, (0, 0, 0, 255))

        exported = await export_image_async(base, [layer], ResourceLoader(), export_format="PNG")

        self.assertEqual(decode(exported.data).getpixel((4, 4)), (0, 255, 0, 255))


if __name__ == "__main__":
    unittest.main()
