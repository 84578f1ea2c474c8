"""klippod.common — shared utilities for the clip pipeline.

Contains: timestamp parsing, path variable resolution, filename
sanitizing, font loading, and source probing.
"""

import re
from pathlib import Path

import imageio_ffmpeg
from moviepy import VideoFileClip
from PIL import ImageFont

from .errors import ClipValidationError


# ── Binaries ───────────────────────────────────────────────────────

def ffmpeg_exe() -> str:
    """Path to the ffmpeg binary bundled with (or found by) imageio-ffmpeg."""
    return imageio_ffmpeg.get_ffmpeg_exe()


# ── Fonts ──────────────────────────────────────────────────────────
# Used for the watermark image and the layout preview. DejaVu Sans
# ships with most Linux distributions.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
    Path("/Library/Fonts/Arial.ttf"),
    Path("C:/Windows/Fonts/arial.ttf"),
]


def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load the first usable font from FONT_PATHS at the given size.

    Falls back to Pillow's built-in font when none of them load.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    return ImageFont.load_default(size=size)


# ── Timestamps ─────────────────────────────────────────────────────

_TIMESTAMP = re.compile(r"^(\d+):([0-5]\d):([0-5]\d(?:\.\d+)?)$")


def parse_timestamp(value: str) -> float:
    """Convert 'HH:MM:SS' (optionally 'HH:MM:SS.ff') to seconds.

    Raises:
        ClipValidationError: If the string does not match the pattern.
    """
    m = _TIMESTAMP.match(str(value).strip())
    if not m:
        raise ClipValidationError(
            f"Invalid timestamp '{value}': expected HH:MM:SS"
        )
    return int(m.group(1)) * 3600 + int(m.group(2)) * 60 + float(m.group(3))


def format_timestamp(seconds: float) -> str:
    """Inverse of parse_timestamp, with two decimal places."""
    h, rem = divmod(round(max(0.0, seconds), 2), 3600)
    m, s = divmod(rem, 60)
    return f"{int(h):02d}:{int(m):02d}:{s:05.2f}"


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def safe_name(name: str) -> str:
    """Turn a clip display name into a filename stem.

    Whitespace runs become underscores; path separators and characters
    reserved on common filesystems are dropped.
    """
    s = re.sub(r'[\\/:*?"<>|\x00-\x1f]+', "", name).strip()
    s = re.sub(r"\s+", "_", s)
    s = s.lstrip(".")
    return s or "clip"


# ── Source probing ─────────────────────────────────────────────────

def probe_duration(path: str | Path) -> float:
    """Probe video duration in seconds using moviepy."""
    with VideoFileClip(str(path)) as clip:
        return float(clip.duration)
