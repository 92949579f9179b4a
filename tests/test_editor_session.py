"""
Unit tests for editor_session module.

Tests adjustment setters, crop and reset, preview rendering, the
last-write-wins async preview, export and the photo store round trip.
"""

import asyncio
import io
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import numpy as np
from PIL import Image

from conftest import encode_png
from OP_Libs.config import EditorConfig
from OP_Libs.EditorLib.editor_session import EditorSession
from OP_Libs.errors import ImageDecodeError, PhotoNotFoundError
from OP_Libs.ImageEditingLib.geometry import CropRect
from OP_Libs.PhotoStoreLib.photo_store import LocalPhotoStore


def decode(data):
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert("RGBA")


class TestSessionAdjustments(unittest.TestCase):
    """Test cases for the adjustment setters."""

    def setUp(self):
        self.session = EditorSession(Image.new("RGBA", (40, 20), (100, 100, 100, 255)))

    def tearDown(self):
        self.session.close()

    def test_setters_clamp(self):
        self.assertEqual(self.session.set_brightness(500).brightness, 100)
        self.assertEqual(self.session.set_blur(-3).blur, 0)
        self.assertEqual(self.session.adjustments.brightness, 100)

    def test_update_adjustments(self):
        adjustments = self.session.update_adjustments(hue=30, vignette=20, bogus=1)
        self.assertEqual((adjustments.hue, adjustments.vignette), (30, 20))

    def test_rotate_steps_and_wraps(self):
        self.assertEqual(self.session.rotate_left().rotation, -90)
        self.session.reset_adjustments()
        self.session.rotate_right()
        self.assertEqual(self.session.rotate_right().rotation, 180)
        self.assertEqual(self.session.rotate_right().rotation, -90)

    def test_toggle_flips(self):
        self.assertTrue(self.session.toggle_flip_horizontal().flip_horizontal)
        self.assertFalse(self.session.toggle_flip_horizontal().flip_horizontal)
        self.assertTrue(self.session.toggle_flip_vertical().flip_vertical)

    def test_canvas_size_follows_rotation(self):
        self.assertEqual(self.session.canvas_size, (40, 20))
        self.session.set_rotation(90)
        self.assertEqual(self.session.canvas_size, (20, 40))

    def test_named_filter(self):
        self.assertEqual(self.session.set_named_filter("sepia").named_filter, "sepia")
        self.assertEqual(self.session.set_named_filter("bogus").named_filter, "none")


class TestSessionRendering(unittest.TestCase):
    """Test cases for render_preview and export_final."""

    def setUp(self):
        self.red = Image.new("RGBA", (100, 100), (255, 0, 0, 255))
        self.session = EditorSession(self.red, config=EditorConfig(noise_seed=42))

    def tearDown(self):
        self.session.close()

    def test_preview_without_changes_matches_original(self):
        preview = self.session.render_preview()
        self.assertEqual(preview.tobytes(), self.red.tobytes())

    def test_adjustments_never_accumulate(self):
        self.session.set_brightness(50)
        self.session.render_preview()
        self.session.set_brightness(0)
        self.assertEqual(self.session.render_preview().tobytes(), self.red.tobytes())

    def test_temperature_export(self):
        """Cooling red by 100 lowers red by 30 and raises blue by 30."""
        self.session.set_temperature(-100)

        png = self.session.export_final(export_format="PNG")
        self.assertEqual(png.mime_type, "image/png")
        self.assertEqual(decode(png.data).getpixel((50, 50)), (225, 0, 30, 255))

        jpeg = decode(self.session.export_final().data).getpixel((50, 50))
        self.assertLessEqual(abs(jpeg[0] - 225), 4)
        self.assertLessEqual(abs(jpeg[2] - 30), 4)
        self.assertEqual(jpeg[3], 255)

    def test_noise_is_stable_between_preview_and_export(self):
        self.session.set_noise(60)
        first = self.session.render_preview()
        second = self.session.render_preview()
        exported = decode(self.session.export_final(export_format="PNG").data)

        self.assertEqual(first.tobytes(), second.tobytes())
        self.assertEqual(first.tobytes(), exported.tobytes())

    def test_preview_includes_layers(self):
        self.session.layers.create("text", content="Hi", x=0, y=0, color="#00ff00", font_size=40)

        with_layers = np.array(self.session.render_preview())
        without = np.array(self.session.render_preview(include_layers=False))

        self.assertTrue((with_layers != without).any())
        self.assertEqual(without.tobytes(), self.red.tobytes())

    def test_hidden_layers_not_exported(self):
        layer = self.session.layers.create("text", content="Hi", x=0, y=0, font_size=40)
        self.session.layers.update(layer.id, visible=False)
        exported = decode(self.session.export_final(export_format="PNG").data)
        self.assertEqual(exported.tobytes(), self.red.tobytes())

    def test_render_base(self):
        self.session.set_rotation(90)
        base = self.session.render_base()
        self.assertEqual(base.size, (100, 100))

    def test_working_size_limits_render(self):
        session = EditorSession(Image.new("RGB", (1600, 1200), (1, 2, 3)))
        self.assertEqual(session.working_size, (800, 600))
        self.assertEqual(session.render_preview().size, (800, 600))
        self.assertEqual(session.export_final().width, 800)


class TestSessionCrop(unittest.TestCase):
    """Test cases for crop and reset."""

    def test_crop_then_reset(self):
        """Cropping 200 -> 100 and resetting restores the 200x200 original."""
        session = EditorSession(Image.new("RGBA", (200, 200), (0, 128, 0, 255)))

        cropped = session.crop(CropRect(50, 50, 100, 100))
        self.assertEqual(cropped.size, (100, 100))
        self.assertEqual(session.render_preview().size, (100, 100))

        session.reset()
        self.assertEqual(session.original.size, (200, 200))
        self.assertEqual(session.render_preview().size, (200, 200))
        self.assertTrue(session.adjustments.is_neutral())

    def test_crop_is_clamped(self):
        session = EditorSession(Image.new("RGBA", (200, 200)))
        self.assertEqual(session.crop(CropRect(150, 150, 500, 500)).size, (50, 50))

    def test_crop_maps_to_full_resolution(self):
        session = EditorSession(Image.new("RGBA", (1600, 1200)))
        cropped = session.crop(CropRect(0, 0, 400, 300))
        self.assertEqual(cropped.size, (800, 600))

    def test_crop_folds_in_rotation(self):
        source = Image.new("RGBA", (200, 100), (255, 0, 0, 255))
        source.paste((0, 0, 255, 255), (0, 0, 100, 100))
        session = EditorSession(source)
        session.set_rotation(90)
        session.set_brightness(10)

        cropped = session.crop(CropRect(0, 0, 100, 100))

        self.assertEqual(cropped.size, (100, 100))
        self.assertEqual(cropped.getpixel((50, 50)), (0, 0, 255, 255))
        self.assertEqual(session.adjustments.rotation, 0)
        self.assertEqual(session.adjustments.brightness, 10)

    def test_reset_keeps_layers(self):
        session = EditorSession(Image.new("RGBA", (50, 50)))
        session.layers.create("text", content="keep me")
        session.crop(CropRect(0, 0, 10, 10))
        session.reset()
        self.assertEqual(len(session.layers), 1)


class TestSessionAsync(unittest.IsolatedAsyncioTestCase):
    """Test cases for async preview and export."""

    async def asyncSetUp(self):
        self.session = EditorSession(Image.new("RGBA", (64, 64), (10, 20, 30, 255)))

    async def asyncTearDown(self):
        self.session.close()

    async def test_last_write_wins(self):
        """Only the newest preview request delivers an image."""
        self.session.set_brightness(10)
        first = asyncio.create_task(self.session.render_preview_async())
        await asyncio.sleep(0)
        self.session.set_brightness(40)
        second = asyncio.create_task(self.session.render_preview_async())

        stale, latest = await asyncio.gather(first, second)

        self.assertIsNone(stale)
        self.assertIsNotNone(latest)
        self.assertEqual(latest.getpixel((32, 32)), (14, 28, 42, 255))

    async def test_reset_supersedes_pending_preview(self):
        pending = asyncio.create_task(self.session.render_preview_async())
        await asyncio.sleep(0)
        self.session.reset()
        self.assertIsNone(await pending)

    async def test_foreground_render(self):
        session = EditorSession(Image.new("RGBA", (8, 8)), config=EditorConfig(background_render=False))
        self.assertEqual((await session.render_preview_async()).size, (8, 8))

    async def test_export_final_async(self):
        self.session.layers.create("text", content="Hello", x=0, y=0)
        exported = await self.session.export_final_async(export_format="PNG")
        self.assertEqual((exported.width, exported.height), (64, 64))


class TestSessionStore(unittest.TestCase):
    """Test cases for construction and the photo store round trip."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)
        self.store = LocalPhotoStore(self.temp_path)
        self.source = encode_png(Image.new("RGBA", (30, 20), (200, 10, 10, 255)))

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_from_file(self):
        path = self.temp_path / "in.png"
        path.write_bytes(self.source)
        session = EditorSession.from_file(path)
        self.assertEqual(session.original.size, (30, 20))

    def test_from_bytes_rejects_garbage(self):
        with self.assertRaises(ImageDecodeError):
            EditorSession.from_bytes(b"garbage")

    def test_open_and_save_creates_new_photo(self):
        photo = self.store.upload(self.source, "image/png", "beach")

        session = EditorSession.open_photo(self.store, photo.id)
        self.assertEqual(session.photo_id, photo.id)
        self.assertEqual(session.title, "beach")

        session.set_exposure(20)
        saved = session.save_to_store(self.store)

        self.assertNotEqual(saved.id, photo.id)
        self.assertEqual(saved.title, "beach_edited")
        self.assertEqual(saved.mime_type, "image/jpeg")
        self.assertEqual(self.store.fetch(photo.id).content, self.source)
        self.assertEqual(len(self.store.list()), 2)

    def test_open_missing_photo(self):
        with self.assertRaises(PhotoNotFoundError):
            EditorSession.open_photo(self.store, 99)

    def test_rejects_non_images(self):
        with self.assertRaises(TypeError):
            EditorSession(b"raw bytes")


if __name__ == "__main__":
    unittest.main()
