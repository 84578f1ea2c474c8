"""Watermark text rendered to a transparent image.

The text never enters ffmpeg's filter syntax: it is drawn here with
Pillow (fill plus a semi-transparent drop shadow) and the resulting PNG
is overlaid bottom-right as an extra input. The layout preview
composites the same image, so both outputs match.
"""

from pathlib import Path

from PIL import Image, ImageDraw

from .common import load_font
from .errors import FilterGraphError


WATERMARK_MARGIN = 10
WATERMARK_FONT_SIZE = 24
WATERMARK_SHADOW_OFFSET = 2
WATERMARK_FILL = (255, 255, 255, 204)   # white@0.8
WATERMARK_SHADOW = (0, 0, 0, 128)       # black@0.5


def check_watermark_text(text: str) -> str:
    """Return text unchanged, or raise if it cannot be drawn as one line.

    Raises:
        FilterGraphError: On control characters (newline, tab, NUL, DEL...).
    """
    for ch in text:
        if ord(ch) < 32 or ord(ch) == 127:
            raise FilterGraphError(
                f"Watermark contains an unsupported control character: {ch!r}"
            )
    return text


def render_watermark(text: str, font_size: int = WATERMARK_FONT_SIZE) -> Image.Image:
    """Draw text and its shadow onto a tight RGBA image."""
    check_watermark_text(text)
    font = load_font(font_size)
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.textbbox((0, 0), text, font=font)

    off = WATERMARK_SHADOW_OFFSET
    width = max(1, right - left + off)
    height = max(1, bottom - top + off)
    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.text((off - left, off - top), text, font=font, fill=WATERMARK_SHADOW)
    draw.text((-left, -top), text, font=font, fill=WATERMARK_FILL)
    return img


def write_watermark(text: str, output_path: str | Path) -> Path:
    """Render the watermark to a PNG for use as an overlay input."""
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    render_watermark(text).save(out, format="PNG")
    return out
