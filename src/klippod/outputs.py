"""Output directory and upload helpers used by the HTTP handlers.

Uploaded sources and logos go to the cache directory under timestamped
names; rendered clips are listed and served from the output directory.
Requested filenames are reduced to their base name before they are
resolved, so "../../etc/passwd" can only ever mean "passwd" inside the
output directory.
"""

import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from PIL import Image, UnidentifiedImageError

from .errors import InputError


VIDEO_EXTENSIONS = {".mp4", ".mkv", ".mov", ".avi"}


def list_outputs(output_dir: str | Path) -> list[dict]:
    """Rendered mp4 files, most recently written first, with size and timestamps."""
    out_dir = Path(output_dir)
    if not out_dir.is_dir():
        return []

    videos = []
    for path in out_dir.iterdir():
        if not path.is_file() or path.suffix.lower() != ".mp4":
            continue
        st = path.stat()
        # st_birthtime exists on macOS/BSD; elsewhere fall back to ctime.
        created = getattr(st, "st_birthtime", st.st_ctime)
        videos.append({
            "filename": path.name,
            "size": st.st_size,
            "created": datetime.fromtimestamp(created, timezone.utc).isoformat(),
            "modified": datetime.fromtimestamp(st.st_mtime, timezone.utc).isoformat(),
        })
    # ISO-8601 UTC strings sort chronologically.
    videos.sort(key=lambda v: v["modified"], reverse=True)
    return videos


def resolve_output(output_dir: str | Path, filename: str) -> Path:
    """Resolve a requested name to a file inside the output directory.

    Raises:
        InputError: Empty name.
        FileNotFoundError: No such file in the output directory.
    """
    # Normalize both separators so a Windows-style path is reduced too.
    name = os.path.basename(str(filename or "").replace("\\", "/"))
    if not name or name in (".", ".."):
        raise InputError("Filename is required")
    path = Path(output_dir) / name
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {name}")
    return path


def _unique_cache_path(cache_dir: Path, prefix: str, suffix: str) -> Path:
    while True:
        candidate = cache_dir / f"{prefix}_{time.time_ns()}{suffix}"
        if not candidate.exists():
            return candidate


def save_video_upload(stream: BinaryIO, original_name: str, cache_dir: str | Path) -> Path:
    """Store an uploaded source video in the cache directory.

    Raises:
        InputError: Extension not one of mp4/mkv/mov/avi.
    """
    suffix = Path(original_name or "").suffix.lower()
    if suffix not in VIDEO_EXTENSIONS:
        raise InputError("Invalid file type. Please upload MP4, MKV, MOV, or AVI files.")
    cache = Path(cache_dir)
    cache.mkdir(parents=True, exist_ok=True)
    dest = _unique_cache_path(cache, "video", suffix)
    with open(dest, "wb") as f:
        while chunk := stream.read(1024 * 1024):
            f.write(chunk)
    return dest


def save_logo_upload(stream: BinaryIO, cache_dir: str | Path) -> Path:
    """Store an uploaded logo after checking it really is a PNG.

    Raises:
        InputError: Not a readable PNG image.
    """
    try:
        with Image.open(stream) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InputError(f"Invalid logo image: {e}") from e
    if fmt != "PNG":
        raise InputError("Invalid file type. Please upload PNG files only for logo.")

    cache = Path(cache_dir)
    cache.mkdir(parents=True, exist_ok=True)
    dest = _unique_cache_path(cache, "logo", ".png")
    stream.seek(0)
    with open(dest, "wb") as f:
        while chunk := stream.read(1024 * 1024):
            f.write(chunk)
    return dest
