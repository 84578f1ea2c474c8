"""Domain types shared across the pipeline.

Clip and RegionSettings validate on construction, so anything holding
one of them can rely on a positive duration and a usable zoom.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .common import format_timestamp, parse_timestamp
from .errors import ClipValidationError, GeometryError


@dataclass(frozen=True)
class Canvas:
    """Output frame size. Every job renders to the same 9:16 canvas."""
    width: int = 1080
    height: int = 1920


CANVAS = Canvas()


class ClipStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _finite(value, field: str, region: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise GeometryError(f"{region}: {field} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise GeometryError(f"{region}: {field} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class RegionSettings:
    """Percentage-based layout for one band (facecam or gameplay).

    height: share of the canvas height, 0 < height <= 100.
    zoom: percent, > 0. 100 is no zoom, above zooms in, below zooms out.
    pan_x / pan_y: signed offset units (PAN_SCALE pixels each).
    """
    height: float
    zoom: float = 100
    pan_x: float = 0
    pan_y: float = 0
    name: str = "region"

    def __post_init__(self):
        height = _finite(self.height, "height", self.name)
        zoom = _finite(self.zoom, "zoom", self.name)
        pan_x = _finite(self.pan_x, "pan_x", self.name)
        pan_y = _finite(self.pan_y, "pan_y", self.name)
        if not 0 < height <= 100:
            raise GeometryError(f"{self.name}: height must be in (0, 100], got {self.height!r}")
        if zoom <= 0:
            raise GeometryError(f"{self.name}: zoom must be > 0, got {self.zoom!r}")
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "zoom", zoom)
        object.__setattr__(self, "pan_x", pan_x)
        object.__setattr__(self, "pan_y", pan_y)

    @classmethod
    def from_dict(cls, data: dict | None, name: str, default_height: float) -> "RegionSettings":
        """Build from a wire payload (panX/panY) or manifest block (pan_x/pan_y)."""
        data = data or {}
        if not isinstance(data, dict):
            raise GeometryError(f"{name}: settings must be a mapping, got {type(data).__name__}")
        return cls(
            height=data.get("height", default_height),
            zoom=data.get("zoom", 100),
            pan_x=data.get("panX", data.get("pan_x", 0)),
            pan_y=data.get("panY", data.get("pan_y", 0)),
            name=name,
        )


@dataclass(frozen=True)
class Clip:
    """One time range to cut out of the source, [start, end)."""
    id: str
    name: str
    start: str
    end: str

    def __post_init__(self):
        try:
            start_s = parse_timestamp(self.start)
            end_s = parse_timestamp(self.end)
        except ClipValidationError as e:
            raise ClipValidationError(
                f"Clip '{self.name}': {e}", clip_id=self.id, clip_name=self.name,
            ) from None
        if end_s <= start_s:
            raise ClipValidationError(
                f"Clip '{self.name}': end ({self.end}) must be after start ({self.start})",
                clip_id=self.id, clip_name=self.name,
            )

    @property
    def start_seconds(self) -> float:
        return parse_timestamp(self.start)

    @property
    def end_seconds(self) -> float:
        return parse_timestamp(self.end)

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    @classmethod
    def from_dict(cls, data: dict, index: int) -> "Clip":
        """Build from a request/manifest entry. Accepts startTime or start."""
        if not isinstance(data, dict):
            raise ClipValidationError(f"Clip {index}: expected a mapping, got {type(data).__name__}")
        cid = str(data.get("id", index))
        name = str(data.get("name") or f"Clip {index + 1}")
        start = data.get("startTime", data.get("start"))
        end = data.get("endTime", data.get("end"))
        if start is None:
            raise ClipValidationError(f"Clip {index}: missing start time", clip_id=cid, clip_name=name)
        if end is None:
            raise ClipValidationError(f"Clip {index}: missing end time", clip_id=cid, clip_name=name)
        return cls(id=cid, name=name, start=_as_timestamp(start), end=_as_timestamp(end))


def _as_timestamp(value) -> str:
    # YAML turns unquoted 1:30:00 into an int (sexagesimal), and manifests
    # may give plain seconds.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_timestamp(float(value))
    return str(value)


@dataclass(frozen=True)
class CropRect:
    """Pixel window extracted from the padded source canvas."""
    width: int
    height: int
    x: int
    y: int
