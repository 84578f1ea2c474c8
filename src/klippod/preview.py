"""Layout preview — one still frame rendered with the resolved layout.

Mirrors the ffmpeg filter graph on a single numpy frame so zoom and pan
can be tuned without running a transcode:
  fit + pad to canvas, crop each region, scale to its band, stack,
  draw the watermark bottom-right, overlay the logo top-right.
"""

from pathlib import Path

import numpy as np
from PIL import Image
from moviepy import VideoFileClip

from .filtergraph import LOGO_MARGIN, LOGO_WIDTH_FRAC
from .geometry import Layout, RegionGeometry
from .models import Canvas
from .watermark import WATERMARK_MARGIN, render_watermark


def fit_to_canvas(frame: np.ndarray, canvas: Canvas) -> np.ndarray:
    """Scale a frame to fit inside the canvas and pad it, centered, with black."""
    src_h, src_w = frame.shape[:2]
    scale = min(canvas.width / src_w, canvas.height / src_h)
    new_w = max(1, int(src_w * scale))
    new_h = max(1, int(src_h * scale))
    resized = np.array(Image.fromarray(frame).resize((new_w, new_h), Image.BICUBIC))

    padded = np.zeros((canvas.height, canvas.width, 3), dtype=np.uint8)
    x = (canvas.width - new_w) // 2
    y = (canvas.height - new_h) // 2
    padded[y:y + new_h, x:x + new_w] = resized
    return padded


def render_region(padded: np.ndarray, region: RegionGeometry, width: int) -> np.ndarray:
    """Crop one region out of the padded canvas and scale it to its band."""
    c = region.crop
    cropped = padded[c.y:c.y + c.height, c.x:c.x + c.width]
    band = Image.fromarray(cropped).resize((width, region.band_height), Image.BICUBIC)
    return np.array(band)


def compose_layout(frame: np.ndarray, layout: Layout) -> np.ndarray:
    """Stack facecam over gameplay, padding one row when the height is odd."""
    padded = fit_to_canvas(frame, layout.canvas)
    w = layout.canvas.width
    stacked = np.vstack([
        render_region(padded, layout.facecam, w),
        render_region(padded, layout.gameplay, w),
    ])
    if stacked.shape[0] % 2:
        stacked = np.vstack([stacked, np.zeros((1, w, 3), dtype=np.uint8)])
    return stacked


def draw_watermark(img: Image.Image, text: str) -> Image.Image:
    """Composite the rendered watermark bottom-right, as the overlay stage does."""
    mark = render_watermark(text)
    base = img.convert("RGBA")
    base.alpha_composite(
        mark, (base.width - mark.width - WATERMARK_MARGIN, base.height - mark.height - WATERMARK_MARGIN),
    )
    return base.convert("RGB")


def overlay_logo(img: Image.Image, logo_path: str | Path) -> Image.Image:
    """Paste the logo, scaled to LOGO_WIDTH_FRAC of the width, top-right."""
    with Image.open(logo_path) as logo:
        logo = logo.convert("RGBA")
        logo_w = round(img.width * LOGO_WIDTH_FRAC)
        logo_h = max(1, round(logo.height * logo_w / logo.width))
        logo = logo.resize((logo_w, logo_h), Image.BICUBIC)
    base = img.convert("RGBA")
    base.alpha_composite(logo, (base.width - logo_w - LOGO_MARGIN, LOGO_MARGIN))
    return base.convert("RGB")


def render_layout_preview(
    source: str | Path,
    at_seconds: float,
    layout: Layout,
    output_path: str | Path,
    watermark: str | None = None,
    logo: str | Path | None = None,
) -> Path:
    """Render the layout for one source frame to a PNG.

    Args:
        source: Source video path.
        at_seconds: Frame time; clamped into the video's duration.
        layout: Output of geometry.resolve_layout().
        output_path: PNG destination (parent dirs created).
        watermark: Optional watermark text.
        logo: Optional logo image path.

    Returns:
        Path to the written PNG.
    """
    with VideoFileClip(str(source), audio=False) as clip:
        t = min(max(0.0, at_seconds), max(0.0, clip.duration - 1.0 / clip.fps))
        frame = clip.get_frame(t)

    img = Image.fromarray(compose_layout(np.asarray(frame, dtype=np.uint8), layout))
    if watermark and watermark.strip():
        img = draw_watermark(img, watermark)
    if logo:
        img = overlay_logo(img, logo)

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    img.save(out, format="PNG")
    return out
