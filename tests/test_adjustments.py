"""
Unit tests for adjustments module.

Tests knob clamping, rotation wrapping and the Adjustments value type.
"""

import math

import pytest

from OP_Libs.ImageEditingLib.adjustments import Adjustments, clamp_knob, normalize_rotation


class TestNormalizeRotation:
    """Tests for normalize_rotation function."""

    def test_in_range_values_unchanged(self):
        assert normalize_rotation(0) == 0
        assert normalize_rotation(90) == 90
        assert normalize_rotation(-180) == -180
        assert normalize_rotation(180) == 180

    def test_wraps_out_of_range(self):
        assert normalize_rotation(270) == -90
        assert normalize_rotation(-270) == 90
        assert normalize_rotation(450) == 90
        assert normalize_rotation(360) == 0


class TestClampKnob:
    """Tests for clamp_knob function."""

    def test_clamps_to_range(self):
        assert clamp_knob("brightness", 150) == 100
        assert clamp_knob("brightness", -150) == -100
        assert clamp_knob("blur", 80) == 50
        assert clamp_knob("sharpness", -5) == 0
        assert clamp_knob("hue", 400) == 360

    def test_rotation_wraps_before_clamping(self):
        assert clamp_knob("rotation", 270) == -90

    def test_non_numbers_become_neutral(self):
        assert clamp_knob("contrast", float("nan")) == 0
        assert clamp_knob("contrast", None) == 0
        assert clamp_knob("contrast", "lots") == 0

    def test_numeric_strings_parse(self):
        assert clamp_knob("exposure", "25") == 25

    def test_infinity_clamps(self):
        assert clamp_knob("noise", math.inf) == 100
        assert clamp_knob("rotation", -math.inf) == -180

    def test_unknown_knob_raises(self):
        with pytest.raises(KeyError):
            clamp_knob("sparkle", 10)


class TestAdjustments:
    """Tests for the Adjustments dataclass."""

    def test_defaults_are_neutral(self):
        adjustments = Adjustments()
        assert adjustments.is_neutral()
        assert not adjustments.has_geometry
        assert adjustments.named_filter == "none"

    def test_with_changes_clamps(self):
        adjustments = Adjustments().with_changes(brightness=500, blur=99)
        assert adjustments.brightness == 100
        assert adjustments.blur == 50

    def test_with_changes_ignores_unknown_names(self):
        adjustments = Adjustments().with_changes(sparkle=10, contrast=5)
        assert adjustments.contrast == 5
        assert not hasattr(adjustments, "sparkle")

    def test_with_changes_returns_new_value(self):
        """The original Adjustments must not change."""
        base = Adjustments()
        changed = base.with_changes(hue=90)
        assert base.hue == 0
        assert changed.hue == 90

    def test_unknown_named_filter_becomes_none(self):
        adjustments = Adjustments(named_filter="polaroid").clamped()
        assert adjustments.named_filter == "none"

    def test_named_filter_is_case_insensitive(self):
        assert Adjustments(named_filter="Sepia").clamped().named_filter == "sepia"

    def test_has_geometry(self):
        assert Adjustments(rotation=90).has_geometry
        assert Adjustments(flip_horizontal=True).has_geometry
        assert Adjustments(flip_vertical=True).has_geometry

    def test_is_frozen(self):
        adjustments = Adjustments()
        with pytest.raises(AttributeError):
            adjustments.brightness = 10

    def test_dict_round_trip(self):
        adjustments = Adjustments(brightness=10, named_filter="vintage", rotation=-90, flip_vertical=True)
        assert Adjustments.from_dict(adjustments.to_dict()) == adjustments

    def test_from_dict_drops_unknown_keys_and_clamps(self):
        adjustments = Adjustments.from_dict({"saturation": -400, "bogus": 1})
        assert adjustments.saturation == -100
