"""Shared test fixtures for klippod tests."""

import stat
import subprocess

import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second landscape test video (640x360, 10fps) with audio using ffmpeg.

    Shared across test_transcode.py, test_preview.py and test_render_cli.py.
    """
    out = tmp_path / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "testsrc=s=640x360:d=5:r=10",
            "-f", "lavfi", "-i", "sine=frequency=440:sample_rate=44100",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def make_script(tmp_path):
    """Write an executable /bin/sh script and return its path.

    Stands in for ffmpeg or yt-dlp where only the process contract
    (output lines, exit status) matters.
    """
    def _make(name, body):
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path
    return _make


@pytest.fixture
def settings(tmp_path):
    from klippod.config import Settings

    return Settings(
        output_dir=tmp_path / "output",
        cache_dir=tmp_path / "cache",
        ytdlp_candidates=(),
    )
