"""Tests for appearance.py - enums and the raw-signal mapping table."""

from __future__ import annotations

import pytest

from auto_dark.appearance import (
    Appearance,
    DetectionMethod,
    from_portal_value,
    from_registry_value,
    from_script_result,
)
from auto_dark.errors import ConfigError, DetectionError


class TestScriptResult:
    """Tests for from_script_result()."""

    def test_true_is_dark(self):
        assert from_script_result("true") is Appearance.DARK

    def test_false_is_light(self):
        assert from_script_result("false") is Appearance.LIGHT

    def test_whitespace_trimmed(self):
        assert from_script_result("  true\n") is Appearance.DARK

    @pytest.mark.parametrize("text", ["", "yes", "1", "TRUE ish", "Dark"])
    def test_malformed_raises(self, text):
        with pytest.raises(DetectionError):
            from_script_result(text)


class TestPortalValue:
    """Tests for from_portal_value()."""

    def test_prefer_dark(self):
        assert from_portal_value(1) is Appearance.DARK

    def test_no_preference_is_light(self):
        assert from_portal_value(0) is Appearance.LIGHT

    def test_prefer_light(self):
        assert from_portal_value(2) is Appearance.LIGHT

    @pytest.mark.parametrize("value", [3, -1, 42])
    def test_out_of_range_raises(self, value):
        with pytest.raises(DetectionError):
            from_portal_value(value)


class TestRegistryValue:
    """Tests for from_registry_value() - note the inverted polarity."""

    def test_zero_string_is_dark(self):
        assert from_registry_value("0") is Appearance.DARK

    def test_zero_int_is_dark(self):
        assert from_registry_value(0) is Appearance.DARK

    def test_hex_zero_is_dark(self):
        assert from_registry_value("0x0") is Appearance.DARK

    @pytest.mark.parametrize("raw", ["1", "0x1", 1, 7])
    def test_nonzero_is_light(self, raw):
        assert from_registry_value(raw) is Appearance.LIGHT

    @pytest.mark.parametrize("raw", ["", "light", "0xZZ", True])
    def test_unparseable_raises(self, raw):
        with pytest.raises(DetectionError):
            from_registry_value(raw)


class TestDetectionMethod:
    """Tests for DetectionMethod.parse()."""

    def test_parse_by_value(self):
        assert DetectionMethod.parse("dbus") is DetectionMethod.PORTAL

    def test_parse_by_member_name(self):
        assert DetectionMethod.parse("registry") is DetectionMethod.REGISTRY

    def test_parse_is_case_insensitive(self):
        assert DetectionMethod.parse(" OSAScript ") is DetectionMethod.EXTERNAL_PROCESS

    def test_unknown_raises_config_error(self):
        with pytest.raises(ConfigError, match="applescript"):
            DetectionMethod.parse("termux")


def test_appearance_str_and_is_dark():
    assert str(Appearance.DARK) == "dark"
    assert Appearance.DARK.is_dark
    assert not Appearance.LIGHT.is_dark
