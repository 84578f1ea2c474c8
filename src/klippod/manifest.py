"""Batch manifest loader — describe a render batch in YAML.

Uses the same ${var} path resolution for source and logo paths.

Batch manifest schema:
  source: "${vods}/stream.mp4"
  paths:
    vods: "/data/vods"
  watermark: "@channel"          # optional
  logo: "${vods}/logo.png"       # optional
  facecam:                       # optional, defaults shown
    height: 40
    zoom: 100
    pan_x: 0
    pan_y: 0
  gameplay:
    height: 60
  clips:
    - id: clip-001
      name: "Big play"
      start: "00:01:00"
      end: "00:01:30"
"""

from pathlib import Path

import yaml

from .batch import DEFAULT_FACECAM_HEIGHT, DEFAULT_GAMEPLAY_HEIGHT, BatchJob
from .common import resolve_path_vars
from .models import Clip, RegionSettings


_KNOWN_KEYS = {"source", "paths", "watermark", "logo", "facecam", "gameplay", "clips"}


def _resolve(value, paths: dict) -> str:
    return str(Path(resolve_path_vars(str(value), paths)).expanduser())


def load_batch_manifest(manifest_path: str | Path) -> BatchJob:
    """Load and validate a batch manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in source and logo.
      3. Validate region settings and each clip entry.
      4. Check for duplicate ids.

    Args:
        manifest_path: Path to the YAML batch manifest.

    Returns:
        An idle BatchJob.

    Raises:
        ValueError: Missing/invalid fields (InputError subclasses for
            clip and region problems).
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Batch manifest: expected a mapping at the top level")
    if "source" not in raw:
        raise ValueError("Batch manifest: missing required 'source' field")
    if "clips" not in raw:
        raise ValueError("Batch manifest: missing required 'clips' field")
    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Batch manifest: unknown key(s) {sorted(unknown)}")

    paths = raw.get("paths", {})
    source = _resolve(raw["source"], paths)
    logo = raw.get("logo")
    if logo:
        logo = _resolve(logo, paths)

    clips = []
    for i, entry in enumerate(raw["clips"] or []):
        if not isinstance(entry, dict):
            raise ValueError(f"Clip {i}: expected a mapping")
        for key in ("id", "start", "end"):
            if key not in entry:
                raise ValueError(f"Clip {i}: missing required field '{key}'")
        clip = Clip.from_dict({**entry, "id": str(entry["id"]), "name": entry.get("name") or str(entry["id"])}, i)
        clips.append(clip)

    watermark = raw.get("watermark")
    return BatchJob(
        source=source,
        clips=clips,
        facecam=RegionSettings.from_dict(raw.get("facecam"), "facecam", DEFAULT_FACECAM_HEIGHT),
        gameplay=RegionSettings.from_dict(raw.get("gameplay"), "gameplay", DEFAULT_GAMEPLAY_HEIGHT),
        watermark=str(watermark) if watermark else None,
        logo=logo or None,
    )
