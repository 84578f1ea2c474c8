"""Transcode job runner — one ffmpeg invocation per clip.

The clip is trimmed with output-side -ss/-to, so ffmpeg's reported
time= starts at zero and runs up to the clip duration. Progress for the
clip is that elapsed time over the clip duration, capped at 100.
"""

import re
from collections.abc import Callable
from pathlib import Path

from .common import ffmpeg_exe
from .errors import ClipValidationError
from .filtergraph import DEFAULT_ENCODING, EncodingParams, FilterGraph
from .models import Clip
from .process import run_checked


_TIME_MARKER = re.compile(r"time=(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def parse_progress_time(line: str) -> tuple[float, str] | None:
    """Extract ffmpeg's elapsed time from a status line.

    Returns:
        (seconds, raw marker such as 'time=00:00:01.50'), or None when
        the line carries no time marker (or time=N/A).
    """
    m = _TIME_MARKER.search(line)
    if not m:
        return None
    seconds = int(m.group(1)) * 3600 + int(m.group(2)) * 60 + float(m.group(3))
    return seconds, m.group(0)


def clip_progress(elapsed: float, duration: float) -> float:
    """Percent of the clip encoded so far, capped to [0, 100]."""
    return max(0.0, min(100.0, elapsed / duration * 100))


def build_transcode_command(
    source: str | Path,
    clip: Clip,
    graph: FilterGraph,
    output_path: str | Path,
    encoding: EncodingParams = DEFAULT_ENCODING,
    ffmpeg: str | None = None,
) -> list[str]:
    """Full ffmpeg argument list for one clip."""
    cmd = [ffmpeg or ffmpeg_exe(), "-y", "-hide_banner", "-i", str(source)]
    for extra in graph.extra_inputs:
        cmd += ["-i", extra]
    cmd += [
        "-ss", clip.start,
        "-to", clip.end,
        "-filter_complex", graph.serialize(),
        "-map", f"[{graph.final_label}]",
        "-map", "0:a?",
        *encoding.to_args(),
        str(output_path),
    ]
    return cmd


def run_transcode(
    source: str | Path,
    clip: Clip,
    graph: FilterGraph,
    output_path: str | Path,
    on_progress: Callable[[float, str], None] | None = None,
    on_log: Callable[[str], None] | None = None,
    encoding: EncodingParams = DEFAULT_ENCODING,
    ffmpeg: str | None = None,
) -> str:
    """Render one clip and return its output path.

    Args:
        source: Source video path.
        clip: Time range to extract.
        graph: Compiled filter graph.
        output_path: Destination mp4.
        on_progress: Called with (clip percent, raw time marker) for
            every status line that carries a time marker.
        on_log: Called with every raw output line.
        encoding: Output codec parameters.
        ffmpeg: Override the ffmpeg binary.

    Raises:
        ClipValidationError: Non-positive clip duration (before spawning).
        ProcessSpawnError: ffmpeg could not be started.
        ProcessExitError: ffmpeg exited non-zero.
    """
    duration = clip.duration
    if duration <= 0:
        raise ClipValidationError(
            f"Clip '{clip.name}' has non-positive duration {duration}",
            clip_id=clip.id, clip_name=clip.name,
        )

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    cmd = build_transcode_command(source, clip, graph, output_path, encoding, ffmpeg)

    def _on_line(line: str) -> None:
        if on_progress is not None:
            parsed = parse_progress_time(line)
            if parsed is not None:
                elapsed, marker = parsed
                on_progress(clip_progress(elapsed, duration), marker)
        if on_log is not None:
            on_log(line)

    run_checked(cmd, _on_line)
    return str(output_path)
