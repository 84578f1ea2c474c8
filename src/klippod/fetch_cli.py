"""CLI for source acquisition — download a video with yt-dlp.

Usage:
    klippod fetch https://www.youtube.com/watch?v=...
    klippod fetch https://www.twitch.tv/videos/... --cache-dir /data/vods
"""

import argparse
import sys

from .config import load_settings
from .download import run_download
from .events import ConsoleEmitter
from .models import JobState


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Download a source video into the cache directory.",
    )
    parser.add_argument("url", help="http(s) URL of the video")
    parser.add_argument(
        "--cache-dir", default=None,
        help="Download directory (default: ~/.cache/klippod)",
    )
    parser.add_argument("--settings", default=None, help="Settings YAML file")
    parser.add_argument("--verbose", action="store_true", help="Print raw yt-dlp output")
    return parser.parse_args(args)


def main(args=None):
    parsed = _parse_args(args)
    settings = load_settings(parsed.settings).with_overrides(cache_dir=parsed.cache_dir)

    print(f"Fetching: {parsed.url}")
    print(f"Cache directory: {settings.cache_dir}")

    job = run_download(
        parsed.url, settings.cache_dir, ConsoleEmitter(verbose=parsed.verbose),
        candidates=settings.ytdlp_candidates,
    )
    if job.state is not JobState.COMPLETED:
        sys.exit(1)
    print(f"Output: {job.destination}")


if __name__ == "__main__":
    main()
