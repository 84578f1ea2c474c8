"""Tests for the per-clip ffmpeg runner.

Uses the shared source_video fixture from conftest.py for the real
render, and small shell scripts standing in for ffmpeg elsewhere.
Uses moviepy for probing (imageio_ffmpeg does NOT bundle ffprobe).
"""

from types import SimpleNamespace

import pytest
from moviepy import VideoFileClip

from klippod.errors import ClipValidationError, ProcessExitError, ProcessSpawnError
from klippod.filtergraph import compile_filter_graph
from klippod.geometry import resolve_layout
from klippod.models import Clip, RegionSettings
from klippod.transcode import (
    build_transcode_command,
    clip_progress,
    parse_progress_time,
    run_transcode,
)


def _graph(**kwargs):
    layout = resolve_layout(RegionSettings(height=40), RegionSettings(height=60))
    return compile_filter_graph(layout, **kwargs)


def _clip(start="00:00:01", end="00:00:03"):
    return Clip(id="c1", name="Test clip", start=start, end=end)


class TestParseProgressTime:
    def test_status_line(self):
        line = "frame=   15 fps=0.0 q=28.0 size=       0kB time=00:00:01.50 bitrate=N/A speed=2.9x"
        assert parse_progress_time(line) == (pytest.approx(1.5), "time=00:00:01.50")

    def test_hours(self):
        seconds, _ = parse_progress_time("time=01:02:03.00")
        assert seconds == 3723

    def test_not_available(self):
        assert parse_progress_time("frame=0 time=N/A bitrate=N/A") is None

    def test_plain_log_line(self):
        assert parse_progress_time("Stream #0:0: Video: h264") is None


class TestClipProgress:
    def test_fraction(self):
        assert clip_progress(1, 4) == 25

    def test_capped(self):
        assert clip_progress(5, 4) == 100
        assert clip_progress(-1, 4) == 0


class TestBuildTranscodeCommand:
    def test_argument_order(self, tmp_path):
        graph = _graph()
        cmd = build_transcode_command("in.mp4", _clip(), graph, tmp_path / "out.mp4", ffmpeg="ffmpeg")
        assert cmd[:5] == ["ffmpeg", "-y", "-hide_banner", "-i", "in.mp4"]
        assert cmd[5:9] == ["-ss", "00:00:01", "-to", "00:00:03"]
        assert cmd[9:11] == ["-filter_complex", graph.serialize()]
        assert cmd[11:15] == ["-map", "[video_out]", "-map", "0:a?"]
        assert cmd[-1] == str(tmp_path / "out.mp4")
        assert "+faststart" in cmd

    def test_logo_is_second_input(self):
        graph = _graph(logo="logo.png")
        cmd = build_transcode_command("in.mp4", _clip(), graph, "out.mp4", ffmpeg="ffmpeg")
        assert cmd[3:7] == ["-i", "in.mp4", "-i", "logo.png"]
        assert cmd[cmd.index("-map") + 1] == "[video_logo]"

    def test_watermark_before_logo(self):
        graph = _graph(watermark_image="wm.png", logo="logo.png")
        cmd = build_transcode_command("in.mp4", _clip(), graph, "out.mp4", ffmpeg="ffmpeg")
        assert cmd[3:9] == ["-i", "in.mp4", "-i", "wm.png", "-i", "logo.png"]

    def test_default_binary_from_imageio(self):
        import imageio_ffmpeg

        cmd = build_transcode_command("in.mp4", _clip(), _graph(), "out.mp4")
        assert cmd[0] == imageio_ffmpeg.get_ffmpeg_exe()


class TestRunTranscodeContract:
    def test_zero_duration_fails_before_spawn(self, tmp_path):
        clip = SimpleNamespace(id="z", name="Zero", start="00:00:05", end="00:00:05", duration=0)
        with pytest.raises(ClipValidationError, match="non-positive duration"):
            run_transcode(
                "in.mp4", clip, _graph(), tmp_path / "out.mp4",
                ffmpeg=str(tmp_path / "never-started"),
            )

    def test_progress_from_status_lines(self, make_script, tmp_path):
        script = make_script(
            "fake-ffmpeg",
            "printf 'frame=1 time=00:00:00.50 bitrate\\rframe=2 time=00:00:01.00 bitrate\\r' >&2\n"
            "printf 'frame=3 time=00:00:02.00 bitrate\\n' >&2\n",
        )
        progress, markers, logs = [], [], []

        def on_progress(pct, marker):
            progress.append(pct)
            markers.append(marker)

        out = run_transcode(
            "in.mp4", _clip(), _graph(), tmp_path / "nested" / "out.mp4",
            on_progress=on_progress, on_log=logs.append, ffmpeg=str(script),
        )
        assert out == str(tmp_path / "nested" / "out.mp4")
        assert (tmp_path / "nested").is_dir()
        assert progress == [25, 50, 100]
        assert markers == ["time=00:00:00.50", "time=00:00:01.00", "time=00:00:02.00"]
        assert len(logs) == 3

    def test_exit_status_reported(self, make_script, tmp_path):
        script = make_script("fake-ffmpeg", "echo 'Invalid argument' >&2\nexit 1\n")
        with pytest.raises(ProcessExitError) as exc_info:
            run_transcode("in.mp4", _clip(), _graph(), tmp_path / "out.mp4", ffmpeg=str(script))
        assert exc_info.value.returncode == 1

    def test_missing_binary(self, tmp_path):
        with pytest.raises(ProcessSpawnError, match="Failed to start no-such-ffmpeg"):
            run_transcode(
                "in.mp4", _clip(), _graph(), tmp_path / "out.mp4",
                ffmpeg=str(tmp_path / "no-such-ffmpeg"),
            )


class TestRunTranscodeRender:
    def test_renders_vertical_clip(self, source_video, tmp_path):
        out = tmp_path / "clip.mp4"
        progress = []
        run_transcode(
            str(source_video), _clip(), _graph(), out,
            on_progress=lambda pct, marker: progress.append(pct),
        )
        assert out.exists()
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (1080, 1920)
            assert 1.5 < clip.duration < 2.5
            assert clip.audio is not None
        assert progress
        assert all(0 <= p <= 100 for p in progress)

    def test_renders_with_logo(self, source_video, tmp_path):
        from PIL import Image

        logo = tmp_path / "logo.png"
        Image.new("RGBA", (200, 100), (255, 0, 0, 128)).save(logo)
        out = tmp_path / "clip-logo.mp4"
        run_transcode(str(source_video), _clip(), _graph(logo=str(logo)), out)
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (1080, 1920)

    def test_renders_with_watermark_and_logo(self, source_video, tmp_path):
        from PIL import Image

        from klippod.watermark import write_watermark

        mark = write_watermark("@me: 'live' \"q\" [a],b;c\\d 100% %{pts}", tmp_path / "wm.png")
        logo = tmp_path / "logo.png"
        Image.new("RGBA", (200, 100), (255, 0, 0, 128)).save(logo)
        out = tmp_path / "clip-marked.mp4"
        run_transcode(
            str(source_video), _clip(), _graph(watermark_image=str(mark), logo=str(logo)), out,
        )
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (1080, 1920)
            assert 1.5 < clip.duration < 2.5
