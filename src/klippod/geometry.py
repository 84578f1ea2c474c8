"""Geometry resolver — percentage layout settings to pixel crop rectangles.

The source is first scaled to fit the canvas and padded to full canvas
size (see filtergraph.py), so every crop is expressed in canvas pixels.

For one region:
  1. band height = floor(canvas_h * height / 100)
  2. crop size   = canvas width and band height divided by zoom/100
  3. crop origin = centered in the source band, then offset by pan * PAN_SCALE
  4. clamp extents to [1, bound] first, then clamp the origin against
     the clamped extents, so the result never inverts.

The facecam region crops from the top band of the padded canvas. The
gameplay region crops from the whole canvas height.
"""

import math
from dataclasses import dataclass

from .errors import GeometryError
from .models import CANVAS, Canvas, CropRect, RegionSettings


PAN_SCALE = 5  # pixels per pan unit; +/-100 pan covers 500px either way


@dataclass(frozen=True)
class RegionGeometry:
    crop: CropRect
    band_height: int         # rows this region occupies in the output
    source_band_height: int  # rows of the padded source the crop lives in


@dataclass(frozen=True)
class Layout:
    canvas: Canvas
    facecam: RegionGeometry
    gameplay: RegionGeometry

    @property
    def output_height(self) -> int:
        return self.facecam.band_height + self.gameplay.band_height


def band_height(canvas_height: int, percent: float) -> int:
    """Rows of the output canvas given to a region."""
    rows = math.floor(canvas_height * percent / 100)
    if rows < 1:
        raise GeometryError(
            f"height {percent}% of {canvas_height}px is less than one pixel"
        )
    return rows


def resolve_region(
    settings: RegionSettings,
    canvas: Canvas = CANVAS,
    source_band_height: int | None = None,
) -> RegionGeometry:
    """Resolve one region's crop rectangle.

    Args:
        settings: The region's percentage settings.
        canvas: Output canvas size.
        source_band_height: Rows of the padded source the crop is taken
            from. Defaults to the region's own band height.

    Returns:
        RegionGeometry with a clamped CropRect.
    """
    band = band_height(canvas.height, settings.height)
    source_band = band if source_band_height is None else min(source_band_height, canvas.height)

    crop_w = math.floor(canvas.width * 100 / settings.zoom)
    crop_h = math.floor(band * 100 / settings.zoom)

    x = math.floor((canvas.width - crop_w) / 2 + settings.pan_x * PAN_SCALE)
    y = math.floor((source_band - crop_h) / 2 + settings.pan_y * PAN_SCALE)

    width = max(1, min(crop_w, canvas.width))
    height = max(1, min(crop_h, source_band))
    x = max(0, min(x, canvas.width - width))
    y = max(0, min(y, source_band - height))

    return RegionGeometry(
        crop=CropRect(width=width, height=height, x=x, y=y),
        band_height=band,
        source_band_height=source_band,
    )


def resolve_layout(
    facecam: RegionSettings,
    gameplay: RegionSettings,
    canvas: Canvas = CANVAS,
) -> Layout:
    """Resolve both regions. Heights are independent and need not sum to 100."""
    return Layout(
        canvas=canvas,
        facecam=resolve_region(facecam, canvas),
        gameplay=resolve_region(gameplay, canvas, source_band_height=canvas.height),
    )
