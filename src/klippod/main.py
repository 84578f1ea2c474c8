"""Subcommand dispatcher for klippod.

Usage:
    klippod render   --manifest batch.yaml
    klippod render   source.mp4 --start 00:01:00 --end 00:01:30 --name "Big play"
    klippod fetch    https://www.youtube.com/watch?v=...
    klippod preview  source.mp4 --at 00:01:00 --output preview.png
    klippod list
    klippod serve    --port 3002
"""

import argparse
import sys


COMMANDS = {
    "render": "Render 9:16 stacked clips from a source video",
    "fetch": "Download a source video with yt-dlp",
    "preview": "Render one frame of the layout to a PNG",
    "list": "List rendered clips in the output directory",
    "serve": "Run the Socket.IO + HTTP processing server",
}


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="klippod",
        description="Facecam + gameplay clip rendering for vertical video.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Each subcommand delegates to its own module's main().
    for name, help_text in COMMANDS.items():
        subparsers.add_parser(name, help=help_text, add_help=False)

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "render":
        from .render_cli import main as render_main
        return render_main(remaining)
    elif parsed.command == "fetch":
        from .fetch_cli import main as fetch_main
        return fetch_main(remaining)
    elif parsed.command == "preview":
        from .preview_cli import main as preview_main
        return preview_main(remaining)
    elif parsed.command == "list":
        from .list_cli import main as list_main
        return list_main(remaining)
    elif parsed.command == "serve":
        from .server import main as serve_main
        return serve_main(remaining)


if __name__ == "__main__":
    main()
