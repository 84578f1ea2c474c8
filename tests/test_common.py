"""Tests for klippod.common utilities."""

import pytest

from klippod.common import (
    format_timestamp,
    parse_timestamp,
    probe_duration,
    resolve_path_vars,
    safe_name,
)
from klippod.errors import ClipValidationError


class TestParseTimestamp:
    def test_whole_seconds(self):
        assert parse_timestamp("00:01:30") == 90

    def test_hours(self):
        assert parse_timestamp("02:00:05") == 7205

    def test_fractional_seconds(self):
        assert parse_timestamp("00:00:01.5") == pytest.approx(1.5)

    def test_surrounding_whitespace(self):
        assert parse_timestamp(" 00:00:10 ") == 10

    @pytest.mark.parametrize("bad", ["1:30", "00:60:00", "00:00:60", "abc", "", "-00:00:01"])
    def test_invalid_raises(self, bad):
        with pytest.raises(ClipValidationError, match="Invalid timestamp"):
            parse_timestamp(bad)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_timestamp("nope")


class TestFormatTimestamp:
    def test_basic(self):
        assert format_timestamp(90) == "00:01:30.00"

    def test_hours_and_fraction(self):
        assert format_timestamp(3725.25) == "01:02:05.25"

    def test_negative_clamped(self):
        assert format_timestamp(-3) == "00:00:00.00"

    def test_parses_back(self):
        assert parse_timestamp(format_timestamp(5400)) == 5400


class TestResolvePathVars:
    def test_single_var(self):
        result = resolve_path_vars("${vods}/stream.mp4", {"vods": "/data/vods"})
        assert result == "/data/vods/stream.mp4"

    def test_multiple_vars(self):
        paths = {"vods": "/data/vods", "brand": "/data/brand"}
        result = resolve_path_vars("${vods}/a and ${brand}/b", paths)
        assert result == "/data/vods/a and /data/brand/b"

    def test_no_vars(self):
        assert resolve_path_vars("/plain/path", {}) == "/plain/path"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/x", {})


class TestSafeName:
    def test_spaces_become_underscores(self):
        assert safe_name("Big  play here") == "Big_play_here"

    def test_separators_dropped(self):
        assert safe_name("../../etc/passwd") == "etcpasswd"

    def test_reserved_characters_dropped(self):
        assert safe_name('a:b*c?"d<e>f|g') == "abcdefg"

    def test_empty_falls_back(self):
        assert safe_name("  ") == "clip"
        assert safe_name("...") == "clip"


class TestProbeDuration:
    def test_source_duration(self, source_video):
        assert 4.5 < probe_duration(source_video) < 5.5

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            probe_duration(tmp_path / "missing.mp4")


class TestLoadFont:
    def test_skips_unreadable_font(self, tmp_path):
        from unittest.mock import patch

        from PIL import ImageFont

        from klippod.common import load_font

        broken = tmp_path / "broken.ttf"
        broken.write_bytes(b"not a font")
        with patch("klippod.common.FONT_PATHS", [tmp_path / "missing.ttf", broken]):
            font = load_font(24)
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))

    def test_builtin_font_when_none_found(self, tmp_path):
        from unittest.mock import patch

        from klippod.common import load_font

        with patch("klippod.common.FONT_PATHS", [tmp_path / "missing.ttf"]):
            font = load_font(24)
        assert font.getbbox("@channel")[2] > 0
