"""CLI for listing rendered clips, newest first.

Usage:
    klippod list
    klippod list --output-dir clips/
"""

import argparse

from .config import load_settings
from .outputs import list_outputs


def _human_size(size: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024


def main(args=None):
    parser = argparse.ArgumentParser(description="List rendered clips.")
    parser.add_argument("--output-dir", default=None, help="Directory of rendered clips")
    parser.add_argument("--settings", default=None, help="Settings YAML file")
    parsed = parser.parse_args(args)

    settings = load_settings(parsed.settings).with_overrides(output_dir=parsed.output_dir)
    videos = list_outputs(settings.output_dir)
    if not videos:
        print(f"No clips in {settings.output_dir}")
        return

    for v in videos:
        print(f"  {v['modified'][:19]}  {_human_size(v['size']):>9}  {v['filename']}")
    print(f"{len(videos)} clip(s) in {settings.output_dir}")


if __name__ == "__main__":
    main()
