"""CLI for rendering — single clip or batch from a YAML manifest.

Usage:
    # Single clip
    klippod render source.mp4 --start 00:01:00 --end 00:01:30 --name "Big play"
    klippod render source.mp4 --start 00:00:10 --end 00:00:40 \\
        --facecam-height 35 --facecam-zoom 150 --watermark "@channel"

    # Batch
    klippod render --manifest batch.yaml --output-dir clips/
    klippod render source.mp4 --manifest batch.yaml
"""

import argparse
import sys
from dataclasses import replace

from .batch import DEFAULT_FACECAM_HEIGHT, DEFAULT_GAMEPLAY_HEIGHT, BatchJob, run_batch
from .config import load_settings
from .events import ConsoleEmitter
from .manifest import load_batch_manifest
from .models import Clip, JobState, RegionSettings


def add_region_args(parser: argparse.ArgumentParser, name: str, default_height: float) -> None:
    group = parser.add_argument_group(f"{name} region")
    group.add_argument(
        f"--{name}-height", type=float, default=default_height,
        help=f"Band height, percent of the canvas (default: {default_height})",
    )
    group.add_argument(
        f"--{name}-zoom", type=float, default=100,
        help="Zoom percent, 100 = none (default: 100)",
    )
    group.add_argument(f"--{name}-pan-x", type=float, default=0, help="Horizontal pan units")
    group.add_argument(f"--{name}-pan-y", type=float, default=0, help="Vertical pan units")


def region_from_args(parsed, name: str) -> RegionSettings:
    return RegionSettings(
        height=getattr(parsed, f"{name}_height"),
        zoom=getattr(parsed, f"{name}_zoom"),
        pan_x=getattr(parsed, f"{name}_pan_x"),
        pan_y=getattr(parsed, f"{name}_pan_y"),
        name=name,
    )


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Render 9:16 facecam + gameplay clips from a source video.",
    )
    parser.add_argument(
        "source", nargs="?", default=None,
        help="Path to source video (optional if --manifest provides it)",
    )
    parser.add_argument("--start", default=None, help="Clip start, HH:MM:SS (single mode)")
    parser.add_argument("--end", default=None, help="Clip end, HH:MM:SS (single mode)")
    parser.add_argument("--name", default=None, help="Clip name, used for the output file")
    parser.add_argument("--manifest", default=None, help="Path to batch YAML manifest")
    parser.add_argument("--watermark", default=None, help="Watermark text (bottom-right)")
    parser.add_argument("--logo", default=None, help="PNG logo (top-right)")
    parser.add_argument("--output-dir", default=None, help="Directory for rendered clips")
    parser.add_argument("--settings", default=None, help="Settings YAML file")
    parser.add_argument("--verbose", action="store_true", help="Print raw ffmpeg output")
    add_region_args(parser, "facecam", DEFAULT_FACECAM_HEIGHT)
    add_region_args(parser, "gameplay", DEFAULT_GAMEPLAY_HEIGHT)
    return parser, parser.parse_args(args)


def main(args=None):
    parser, parsed = _parse_args(args)

    is_single = parsed.start is not None or parsed.end is not None
    if is_single and parsed.manifest is not None:
        parser.error("Cannot mix single-clip args (--start/--end) with --manifest")

    try:
        if parsed.manifest is not None:
            job = load_batch_manifest(parsed.manifest)
            # CLI args override the manifest.
            job = replace(
                job,
                source=parsed.source or job.source,
                watermark=parsed.watermark or job.watermark,
                logo=parsed.logo or job.logo,
            )
        elif is_single:
            if parsed.start is None or parsed.end is None:
                parser.error("Single clip mode requires --start and --end")
            if parsed.source is None:
                parser.error("Single clip mode requires a source video argument")
            name = parsed.name or "clip"
            job = BatchJob(
                source=parsed.source,
                clips=[Clip(id="clip-1", name=name, start=parsed.start, end=parsed.end)],
                facecam=region_from_args(parsed, "facecam"),
                gameplay=region_from_args(parsed, "gameplay"),
                watermark=parsed.watermark,
                logo=parsed.logo,
            )
        else:
            parser.error("Specify either a single clip (--start/--end) or --manifest")
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    settings = load_settings(parsed.settings).with_overrides(output_dir=parsed.output_dir)
    print(f"Output directory: {settings.output_dir}")

    job = run_batch(job, settings, ConsoleEmitter(verbose=parsed.verbose))
    if job.state is not JobState.COMPLETED:
        sys.exit(1)
    print(f"Done: {len(job.outputs)} clip(s) in {settings.output_dir}")


if __name__ == "__main__":
    main()
