"""
Unit tests for pixel_filters and color_space modules.

Tests each per-pixel filter against hand-computed values, the neutral
no-op behaviour and the untouched alpha channel.
"""

import numpy as np
import pytest

from OP_Libs.ImageEditingLib.color_space import hsl_to_rgb, rgb_to_hsl
from OP_Libs.ImageEditingLib.pixel_filters import (
    apply_exposure,
    apply_highlights,
    apply_hue,
    apply_noise,
    apply_shadows,
    apply_temperature,
    apply_vibrance,
    apply_vignette,
    luminance,
)
from OP_Libs.ImageEditingLib.raster_models import RasterBuffer

VALUE_FILTERS = [
    (apply_temperature, 60),
    (apply_hue, 90),
    (apply_exposure, 40),
    (apply_shadows, 70),
    (apply_highlights, -70),
    (apply_vibrance, 50),
    (apply_vignette, 80),
]


def solid(color, width=4, height=4):
    return RasterBuffer.new(width, height, color)


class TestColorSpace:
    """Tests for the HSL conversion helpers."""

    def test_red_to_hsl(self):
        h, s, l = rgb_to_hsl(np.array([255]), np.array([0]), np.array([0]))
        assert h[0] == pytest.approx(0.0)
        assert s[0] == pytest.approx(1.0)
        assert l[0] == pytest.approx(0.5)

    def test_gray_has_no_saturation(self):
        h, s, l = rgb_to_hsl(np.array([128]), np.array([128]), np.array([128]))
        assert s[0] == 0
        assert l[0] == pytest.approx(128 / 255)

    def test_round_trip(self, random_buffer):
        rgb = random_buffer.rgb.astype(np.float64)
        r, g, b = hsl_to_rgb(*rgb_to_hsl(rgb[..., 0], rgb[..., 1], rgb[..., 2]))
        restored = np.stack((r, g, b), axis=-1)
        assert np.abs(restored - rgb).max() < 1e-6


class TestNeutralValues:
    """Every filter must be a no-op at its neutral value."""

    @pytest.mark.parametrize("apply_filter", [f for f, _ in VALUE_FILTERS] + [apply_noise])
    def test_zero_is_noop(self, apply_filter, random_buffer):
        before = random_buffer.snapshot()
        apply_filter(random_buffer, 0)
        assert np.array_equal(random_buffer.pixels, before)

    @pytest.mark.parametrize("apply_filter,value", VALUE_FILTERS)
    def test_alpha_is_untouched(self, apply_filter, value, random_buffer):
        alpha = random_buffer.pixels[:, :, 3].copy()
        apply_filter(random_buffer, value)
        assert np.array_equal(random_buffer.pixels[:, :, 3], alpha)

    @pytest.mark.parametrize("apply_filter,value", VALUE_FILTERS)
    def test_out_of_range_values_match_bounds(self, apply_filter, value, random_buffer):
        """An absurd knob value should behave exactly like the range bound."""
        extreme = random_buffer.copy()
        bounded = random_buffer.copy()
        sign = 1 if value > 0 else -1

        apply_filter(extreme, sign * 1e9)
        apply_filter(bounded, sign * (360 if apply_filter is apply_hue else 100))

        assert np.array_equal(extreme.pixels, bounded.pixels)


class TestTemperature:
    """Tests for apply_temperature."""

    def test_cool_red(self):
        """Red at -100 should lose 30 red and gain 30 blue."""
        buffer = solid((255, 0, 0, 255))
        apply_temperature(buffer, -100)
        assert buffer.pixels[0, 0].tolist() == [225, 0, 30, 255]

    def test_warm_gray(self):
        buffer = solid((100, 100, 100, 255))
        apply_temperature(buffer, 50)
        assert buffer.pixels[0, 0].tolist() == [115, 100, 85, 255]

    def test_clamps_at_channel_limits(self):
        buffer = solid((250, 10, 5, 255))
        apply_temperature(buffer, 100)
        assert buffer.pixels[0, 0].tolist() == [255, 10, 0, 255]


class TestHue:
    """Tests for apply_hue."""

    def test_full_turn_is_identity(self, random_buffer):
        before = random_buffer.snapshot().astype(int)
        apply_hue(random_buffer, 360)
        assert np.abs(random_buffer.pixels.astype(int) - before).max() <= 1

    def test_red_shifted_to_green(self):
        buffer = solid((255, 0, 0, 255))
        apply_hue(buffer, 120)
        assert buffer.pixels[0, 0].tolist() == [0, 255, 0, 255]

    def test_gray_unaffected(self):
        buffer = solid((90, 90, 90, 255))
        apply_hue(buffer, 200)
        assert buffer.pixels[0, 0].tolist() == [90, 90, 90, 255]


class TestExposure:
    """Tests for apply_exposure."""

    def test_scales_channels(self):
        buffer = solid((100, 50, 20, 255))
        apply_exposure(buffer, 50)
        assert buffer.pixels[0, 0].tolist() == [150, 75, 30, 255]

    def test_full_negative_is_black(self):
        buffer = solid((100, 50, 20, 255))
        apply_exposure(buffer, -100)
        assert buffer.pixels[0, 0].tolist() == [0, 0, 0, 255]


class TestTonal:
    """Tests for apply_shadows and apply_highlights."""

    def test_shadows_lift_black(self):
        buffer = solid((0, 0, 0, 255))
        apply_shadows(buffer, 100)
        assert buffer.pixels[0, 0].tolist() == [50, 50, 50, 255]

    def test_shadows_skip_bright_pixels(self):
        buffer = solid((200, 200, 200, 255))
        apply_shadows(buffer, 100)
        assert buffer.pixels[0, 0].tolist() == [200, 200, 200, 255]

    def test_shadows_skip_pivot(self):
        buffer = solid((128, 128, 128, 255))
        apply_shadows(buffer, -100)
        assert buffer.pixels[0, 0].tolist() == [128, 128, 128, 255]

    def test_highlights_recover_white(self):
        buffer = solid((255, 255, 255, 255))
        apply_highlights(buffer, -100)
        assert buffer.pixels[0, 0].tolist() == [205, 205, 205, 255]

    def test_highlights_skip_dark_pixels(self):
        buffer = solid((40, 40, 40, 255))
        apply_highlights(buffer, 100)
        assert buffer.pixels[0, 0].tolist() == [40, 40, 40, 255]


class TestVibrance:
    """Tests for apply_vibrance."""

    def test_boosts_muted_colours(self):
        buffer = solid((150, 100, 100, 255))
        apply_vibrance(buffer, 100)
        r, g, b, _ = buffer.pixels[0, 0].tolist()
        assert r - g > 50
        assert g == b

    def test_vivid_colours_unchanged(self):
        buffer = solid((255, 0, 0, 255))
        apply_vibrance(buffer, 100)
        assert buffer.pixels[0, 0].tolist() == [255, 0, 0, 255]

    def test_negative_desaturates(self):
        buffer = solid((200, 100, 100, 255))
        apply_vibrance(buffer, -100)
        r, g, b, _ = buffer.pixels[0, 0].tolist()
        assert r == g == b


class TestNoise:
    """Tests for apply_noise."""

    def test_seeded_noise_is_deterministic(self):
        first = solid((128, 128, 128, 255), 8, 8)
        second = solid((128, 128, 128, 255), 8, 8)

        apply_noise(first, 60, rng=np.random.default_rng(7))
        apply_noise(second, 60, rng=np.random.default_rng(7))

        assert np.array_equal(first.pixels, second.pixels)

    def test_noise_is_bounded(self):
        """Full noise moves each channel by at most 25 levels."""
        buffer = solid((128, 128, 128, 255), 32, 32)
        apply_noise(buffer, 100, rng=np.random.default_rng(3))

        rgb = buffer.rgb.astype(int)
        assert rgb.min() >= 103
        assert rgb.max() <= 153
        assert (rgb != 128).any()

    def test_channels_vary_independently(self):
        buffer = solid((128, 128, 128, 255), 32, 32)
        apply_noise(buffer, 100, rng=np.random.default_rng(5))
        assert not np.array_equal(buffer.pixels[:, :, 0], buffer.pixels[:, :, 1])

    def test_alpha_is_untouched(self, random_buffer):
        alpha = random_buffer.pixels[:, :, 3].copy()
        apply_noise(random_buffer, 100, rng=np.random.default_rng(0))
        assert np.array_equal(random_buffer.pixels[:, :, 3], alpha)


class TestVignette:
    """Tests for apply_vignette."""

    def test_corner_goes_black_centre_stays_bright(self):
        buffer = solid((255, 255, 255, 255), 5, 5)
        apply_vignette(buffer, 100)

        assert buffer.pixels[0, 0, :3].tolist() == [0, 0, 0]
        assert buffer.pixels[2, 2, 0] >= 240
        assert buffer.pixels[0, 0, 3] == 255

    def test_partial_strength(self):
        buffer = solid((200, 200, 200, 255), 5, 5)
        apply_vignette(buffer, 50)
        assert buffer.pixels[0, 0, :3].tolist() == [100, 100, 100]


def test_luminance_weights():
    assert luminance(np.array([255, 0, 0])) == pytest.approx(76.245)
    assert luminance(np.array([255, 255, 255])) == pytest.approx(255.0)
