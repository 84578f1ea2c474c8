"""Source acquisition — fetch a remote video with yt-dlp.

Picks the best mp4 video + m4a audio (falling back to the best single
file) and merges to mp4 in the cache directory. yt-dlp prints its
progress as "[download]  42.0% of ..."; the first percentage on a line
is reported as-is.
"""

import re
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from . import events
from .errors import InputError, PipelineError
from .models import JobState
from .process import run_checked


YTDLP_FORMAT = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"

_PERCENT = re.compile(r"(\d+(?:\.\d+)?)%")


def find_ytdlp(candidates: Sequence[str | Path] = ()) -> str:
    """First existing candidate path, else plain 'yt-dlp' for a PATH lookup."""
    for candidate in candidates:
        if Path(candidate).is_file():
            print(f"Using yt-dlp from: {candidate}", flush=True)
            return str(candidate)
    return "yt-dlp"


def validate_url(url: str) -> str:
    """Accept only http(s) URLs with a host.

    Raises:
        InputError: Anything else (file://, bare paths, empty strings).
    """
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InputError(f"Invalid source URL: {url!r}")
    return url


def cache_filename(cache_dir: str | Path) -> Path:
    """A fresh, collision-free destination inside the cache directory."""
    cache_dir = Path(cache_dir)
    while True:
        candidate = cache_dir / f"source_{time.time_ns()}.mp4"
        if not candidate.exists():
            return candidate


def parse_download_progress(line: str) -> float | None:
    m = _PERCENT.search(line)
    return float(m.group(1)) if m else None


def build_download_command(ytdlp: str, url: str, output_path: str | Path) -> list[str]:
    return [
        ytdlp,
        "-f", YTDLP_FORMAT,
        "-o", str(output_path),
        "--merge-output-format", "mp4",
        "--newline",
        url,
    ]


@dataclass
class DownloadJob:
    url: str
    destination: Path
    progress: float = 0.0
    state: JobState = JobState.IDLE
    error: str | None = None


def download_source(
    job: DownloadJob,
    emit: events.Emitter = events.null_emitter,
    ytdlp: str = "yt-dlp",
) -> str:
    """Run yt-dlp for job.url and return the downloaded file path.

    Emits download-progress and log events while running.

    Raises:
        InputError: Bad URL (before spawning).
        ProcessSpawnError: yt-dlp missing or not executable.
        ProcessExitError: yt-dlp exited non-zero.
    """
    url = validate_url(job.url)
    job.destination.parent.mkdir(parents=True, exist_ok=True)
    cmd = build_download_command(ytdlp, url, job.destination)

    def _on_line(line: str) -> None:
        pct = parse_download_progress(line)
        if pct is not None:
            job.progress = pct
            emit(events.DOWNLOAD_PROGRESS, {"progress": pct})
        emit(events.LOG, line)

    job.state = JobState.RUNNING
    run_checked(cmd, _on_line)
    return str(job.destination)


def run_download(
    url: str,
    cache_dir: str | Path,
    emit: events.Emitter = events.null_emitter,
    candidates: Sequence[str | Path] = (),
    downloader: Callable[..., str] = download_source,
) -> DownloadJob:
    """Acquire a source video and report download-complete exactly once.

    Never raises pipeline errors: they end up in the returned job's
    state/error and in the download-complete event.
    """
    job = DownloadJob(url=url, destination=cache_filename(cache_dir))
    print(f"  START  download {url}", flush=True)
    try:
        path = downloader(job, emit, ytdlp=find_ytdlp(candidates))
    except PipelineError as e:
        job.state = JobState.FAILED
        job.error = str(e)
        print(f"  FAIL   download {url}: {e}", flush=True)
        emit(events.DOWNLOAD_COMPLETE, events.download_complete_payload(error=str(e)))
        return job

    job.state = JobState.COMPLETED
    print(f"  DONE   download -> {path}", flush=True)
    emit(events.DOWNLOAD_COMPLETE, events.download_complete_payload(video_path=path))
    return job
