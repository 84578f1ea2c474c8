"""Settings — output/cache locations and tool lookup, built once and injected.

Settings file schema (YAML, every key optional):
  output_dir: "~/Downloads/KlipPod_Output"
  cache_dir: "${home}/.cache/klippod"
  paths:
    home: "/home/me"
  ytdlp_candidates:
    - "~/.local/bin/yt-dlp"
  host: "0.0.0.0"
  port: 3002
  cors_origins: "*"
"""

from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from .common import resolve_path_vars
from .models import CANVAS, Canvas


DEFAULT_PORT = 3002


def default_ytdlp_candidates() -> tuple[Path, ...]:
    """Install locations probed, in order, before falling back to PATH."""
    return (
        Path.home() / ".local" / "bin" / "yt-dlp",
        Path("/usr/local/bin/yt-dlp"),
        Path("/usr/bin/yt-dlp"),
    )


@dataclass(frozen=True)
class Settings:
    output_dir: Path = field(default_factory=lambda: Path.home() / "Downloads" / "KlipPod_Output")
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".cache" / "klippod")
    canvas: Canvas = CANVAS
    ytdlp_candidates: tuple[Path, ...] = field(default_factory=default_ytdlp_candidates)
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_origins: str | list[str] = "*"

    def ensure_directories(self) -> list[Path]:
        """Create the output and cache directories if absent.

        Returns:
            The directories that were newly created.
        """
        created = []
        for d in (self.output_dir, self.cache_dir):
            if not d.exists():
                d.mkdir(parents=True, exist_ok=True)
                created.append(d)
        return created

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with the given fields replaced; None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in ("output_dir", "cache_dir"):
            if key in changes:
                changes[key] = Path(changes[key]).expanduser()
        return replace(self, **changes)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, or return defaults when path is None.

    Raises:
        ValueError: Unknown keys or a malformed port.
        FileNotFoundError: Missing settings file.
    """
    if path is None:
        return Settings()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    known = {"output_dir", "cache_dir", "paths", "ytdlp_candidates", "host", "port", "cors_origins"}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Settings: unknown key(s) {sorted(unknown)}")

    paths = raw.get("paths", {})

    def _path(value) -> Path:
        return Path(resolve_path_vars(str(value), paths)).expanduser()

    overrides = {}
    if "output_dir" in raw:
        overrides["output_dir"] = _path(raw["output_dir"])
    if "cache_dir" in raw:
        overrides["cache_dir"] = _path(raw["cache_dir"])
    if "ytdlp_candidates" in raw:
        overrides["ytdlp_candidates"] = tuple(_path(p) for p in raw["ytdlp_candidates"])
    if "host" in raw:
        overrides["host"] = str(raw["host"])
    if "port" in raw:
        port = raw["port"]
        if not isinstance(port, int) or not 0 < port < 65536:
            raise ValueError(f"Settings: port must be an integer in 1-65535, got {port!r}")
        overrides["port"] = port
    if "cors_origins" in raw:
        overrides["cors_origins"] = raw["cors_origins"]

    return replace(Settings(), **overrides)
