"""Tests for clip and region settings validation."""

import pytest

from klippod.errors import ClipValidationError, GeometryError
from klippod.models import Clip, RegionSettings


class TestClip:
    def test_valid_clip(self):
        clip = Clip(id="c1", name="Intro", start="00:00:05", end="00:00:20")
        assert clip.start_seconds == 5
        assert clip.end_seconds == 20
        assert clip.duration == 15

    def test_end_before_start_rejected(self):
        with pytest.raises(ClipValidationError, match="must be after start") as exc_info:
            Clip(id="c1", name="Backwards", start="00:00:05", end="00:00:00")
        assert exc_info.value.clip_id == "c1"
        assert exc_info.value.clip_name == "Backwards"

    def test_zero_length_rejected(self):
        with pytest.raises(ClipValidationError):
            Clip(id="c1", name="Empty", start="00:00:05", end="00:00:05")

    def test_malformed_timestamp_names_clip(self):
        with pytest.raises(ClipValidationError, match="Clip 'Bad'") as exc_info:
            Clip(id="c9", name="Bad", start="5s", end="00:00:10")
        assert exc_info.value.clip_id == "c9"


class TestClipFromDict:
    def test_wire_keys(self):
        clip = Clip.from_dict(
            {"id": "a", "name": "A", "startTime": "00:00:01", "endTime": "00:00:02"}, 0,
        )
        assert (clip.id, clip.name, clip.start, clip.end) == ("a", "A", "00:00:01", "00:00:02")

    def test_manifest_keys(self):
        clip = Clip.from_dict({"id": "a", "start": "00:00:01", "end": "00:00:02"}, 0)
        assert clip.start == "00:00:01"

    def test_defaults_for_id_and_name(self):
        clip = Clip.from_dict({"startTime": "00:00:01", "endTime": "00:00:02"}, 2)
        assert clip.id == "2"
        assert clip.name == "Clip 3"

    def test_numeric_times_are_seconds(self):
        clip = Clip.from_dict({"id": "a", "start": 90, "end": 5400}, 0)
        assert clip.start_seconds == 90
        assert clip.end_seconds == 5400

    def test_missing_end(self):
        with pytest.raises(ClipValidationError, match="missing end time"):
            Clip.from_dict({"id": "a", "startTime": "00:00:01"}, 0)

    def test_not_a_mapping(self):
        with pytest.raises(ClipValidationError, match="expected a mapping"):
            Clip.from_dict(["00:00:01", "00:00:02"], 0)


class TestRegionSettings:
    def test_defaults(self):
        r = RegionSettings(height=40)
        assert (r.zoom, r.pan_x, r.pan_y) == (100, 0, 0)

    def test_numeric_strings_coerced(self):
        r = RegionSettings(height="40", zoom="150")
        assert r.height == 40.0
        assert r.zoom == 150.0

    @pytest.mark.parametrize("height", [0, -5, 100.5])
    def test_height_out_of_range(self, height):
        with pytest.raises(GeometryError, match="height"):
            RegionSettings(height=height, name="facecam")

    @pytest.mark.parametrize("zoom", [0, -10])
    def test_zoom_must_be_positive(self, zoom):
        with pytest.raises(GeometryError, match="zoom"):
            RegionSettings(height=40, zoom=zoom)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "wide"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(GeometryError):
            RegionSettings(height=40, pan_x=value)

    def test_from_dict_wire_keys(self):
        r = RegionSettings.from_dict({"height": 35, "zoom": 120, "panX": -20, "panY": 10}, "facecam", 40)
        assert (r.height, r.zoom, r.pan_x, r.pan_y, r.name) == (35, 120, -20, 10, "facecam")

    def test_from_dict_manifest_keys(self):
        r = RegionSettings.from_dict({"pan_x": 5, "pan_y": -5}, "gameplay", 60)
        assert (r.height, r.pan_x, r.pan_y) == (60, 5, -5)

    def test_from_dict_none_uses_default_height(self):
        assert RegionSettings.from_dict(None, "gameplay", 60).height == 60

    def test_from_dict_not_a_mapping(self):
        with pytest.raises(GeometryError, match="must be a mapping"):
            RegionSettings.from_dict(40, "facecam", 40)
