"""CLI for layout previews — render one frame with the stacked layout.

Usage:
    klippod preview source.mp4 --at 00:01:00 --output preview.png
    klippod preview source.mp4 --facecam-height 35 --facecam-zoom 180 --facecam-pan-x 40
"""

import argparse
import sys

from .batch import DEFAULT_FACECAM_HEIGHT, DEFAULT_GAMEPLAY_HEIGHT
from .common import parse_timestamp
from .config import load_settings
from .geometry import resolve_layout
from .preview import render_layout_preview
from .render_cli import add_region_args, region_from_args
from .watermark import check_watermark_text


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render one frame of the facecam + gameplay layout to a PNG.",
    )
    parser.add_argument("source", help="Path to source video")
    parser.add_argument("--at", default="00:00:00", help="Frame time, HH:MM:SS (default: start)")
    parser.add_argument("--output", default="preview.png", help="Output PNG path")
    parser.add_argument("--watermark", default=None, help="Watermark text (bottom-right)")
    parser.add_argument("--logo", default=None, help="PNG logo (top-right)")
    parser.add_argument("--settings", default=None, help="Settings YAML file")
    add_region_args(parser, "facecam", DEFAULT_FACECAM_HEIGHT)
    add_region_args(parser, "gameplay", DEFAULT_GAMEPLAY_HEIGHT)
    parsed = parser.parse_args(args)

    settings = load_settings(parsed.settings)
    try:
        at = parse_timestamp(parsed.at)
        layout = resolve_layout(
            region_from_args(parsed, "facecam"),
            region_from_args(parsed, "gameplay"),
            settings.canvas,
        )
        if parsed.watermark:
            check_watermark_text(parsed.watermark)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    for name, region in (("facecam", layout.facecam), ("gameplay", layout.gameplay)):
        c = region.crop
        print(f"  {name:<9} crop {c.width}x{c.height}+{c.x}+{c.y} -> band {region.band_height}px")

    out = render_layout_preview(
        parsed.source, at, layout, parsed.output,
        watermark=parsed.watermark, logo=parsed.logo,
    )
    print(f"Done: {out}")


if __name__ == "__main__":
    main()
