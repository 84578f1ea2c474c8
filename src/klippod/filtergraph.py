"""Filter graph compiler — resolved layout to an ffmpeg -filter_complex.

The graph is built as a structured list of stages and only turned into
ffmpeg's textual syntax by FilterGraph.serialize(), right before the
process is launched. No user text goes into the graph: the watermark
arrives as a pre-rendered image (see watermark.py), and every file is
passed as a separate -i argument.

Stage sequence:
  [0:v] scale (fit canvas) + pad          -> [v_full]
  [v_full] split=2                        -> [facecam_src][gameplay_src]
  [facecam_src] crop, scale, setsar       -> [facecam]
  [gameplay_src] crop, scale, setsar      -> [gameplay]
  [facecam][gameplay] vstack              -> [video_out]
  [1:v] overlay bottom-right (watermark)  -> [video_watermarked]
  [N:v] scale, overlay top-right (logo)   -> [video_logo]
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import FilterGraphError
from .geometry import Layout, RegionGeometry
from .watermark import WATERMARK_MARGIN


# ── Logo constants ───────────────────────────────────────────────

LOGO_WIDTH_FRAC = 0.15
LOGO_MARGIN = 20

_STREAM_LABEL = re.compile(r"^\d+:[vas]$")


def _format_value(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ── Graph structure ──────────────────────────────────────────────

@dataclass(frozen=True)
class Filter:
    name: str
    args: tuple = ()
    options: tuple[tuple[str, object], ...] = ()

    def serialize(self) -> str:
        parts = [_format_value(a) for a in self.args]
        parts += [f"{key}={_format_value(value)}" for key, value in self.options]
        if not parts:
            return self.name
        return f"{self.name}={':'.join(parts)}"


@dataclass(frozen=True)
class Stage:
    inputs: tuple[str, ...]
    filters: tuple[Filter, ...]
    outputs: tuple[str, ...]

    def serialize(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return ins + ",".join(f.serialize() for f in self.filters) + outs


@dataclass(frozen=True)
class FilterGraph:
    """Ordered stages; the last stage's single output feeds the encoder.

    extra_inputs lists files passed as additional -i arguments, in
    order, so that "1:v" refers to extra_inputs[0].
    """
    stages: tuple[Stage, ...]
    extra_inputs: tuple[str, ...] = field(default=())

    def __post_init__(self):
        if not self.stages:
            raise FilterGraphError("Filter graph has no stages")
        produced: set[str] = set()
        consumed: set[str] = set()
        for i, stage in enumerate(self.stages):
            for label in stage.inputs:
                if _STREAM_LABEL.match(label):
                    if int(label.split(":")[0]) > len(self.extra_inputs):
                        raise FilterGraphError(f"Stage {i}: no input stream for [{label}]")
                    continue
                if label not in produced:
                    raise FilterGraphError(f"Stage {i}: label [{label}] used before it is produced")
                if label in consumed:
                    raise FilterGraphError(f"Stage {i}: label [{label}] consumed twice")
                consumed.add(label)
            for label in stage.outputs:
                if label in produced:
                    raise FilterGraphError(f"Stage {i}: duplicate output label [{label}]")
                produced.add(label)
        if len(self.stages[-1].outputs) != 1:
            raise FilterGraphError("Final stage must have exactly one output")

    @property
    def final_label(self) -> str:
        return self.stages[-1].outputs[0]

    @property
    def labels(self) -> list[str]:
        return [label for stage in self.stages for label in stage.outputs]

    def serialize(self) -> str:
        return ";".join(stage.serialize() for stage in self.stages)


# ── Encoding parameters ──────────────────────────────────────────

@dataclass(frozen=True)
class EncodingParams:
    video_codec: str = "libx264"
    preset: str = "medium"
    crf: int = 23
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    pix_fmt: str = "yuv420p"
    movflags: str = "+faststart"

    def to_args(self) -> list[str]:
        return [
            "-c:v", self.video_codec,
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-c:a", self.audio_codec,
            "-b:a", self.audio_bitrate,
            "-pix_fmt", self.pix_fmt,
            "-movflags", self.movflags,
        ]


DEFAULT_ENCODING = EncodingParams()


# ── Compiler ─────────────────────────────────────────────────────

def _region_stage(source_label: str, region: RegionGeometry, width: int, out_label: str) -> Stage:
    crop = region.crop
    return Stage(
        inputs=(source_label,),
        filters=(
            Filter("crop", (crop.width, crop.height, crop.x, crop.y)),
            Filter("scale", (width, region.band_height)),
            Filter("setsar", (1,)),
        ),
        outputs=(out_label,),
    )


def compile_filter_graph(
    layout: Layout,
    watermark_image: str | Path | None = None,
    logo: str | Path | None = None,
) -> FilterGraph:
    """Compile a resolved layout into a FilterGraph.

    Args:
        layout: Output of geometry.resolve_layout().
        watermark_image: Optional pre-rendered watermark PNG (see
            watermark.write_watermark), overlaid bottom-right.
        logo: Optional image file overlaid top-right.

    Returns:
        FilterGraph whose final_label is the stream to map. Extra input
        files come in the order watermark, logo.
    """
    w = layout.canvas.width
    h = layout.canvas.height

    stages = [
        Stage(
            inputs=("0:v",),
            filters=(
                Filter("scale", options=(("w", w), ("h", h), ("force_original_aspect_ratio", "decrease"))),
                Filter("pad", (w, h, "(ow-iw)/2", "(oh-ih)/2")),
            ),
            outputs=("v_full",),
        ),
        Stage(("v_full",), (Filter("split", (2,)),), ("facecam_src", "gameplay_src")),
        _region_stage("facecam_src", layout.facecam, w, "facecam"),
        _region_stage("gameplay_src", layout.gameplay, w, "gameplay"),
    ]

    # yuv420p needs even dimensions; heights that don't sum to an even
    # number get one row of padding at the bottom.
    stack_filters = [Filter("vstack")]
    if layout.output_height % 2:
        stack_filters.append(Filter("pad", (w, layout.output_height + 1, 0, 0)))
    stages.append(Stage(("facecam", "gameplay"), tuple(stack_filters), ("video_out",)))
    last = "video_out"

    extra_inputs: list[str] = []

    if watermark_image:
        extra_inputs.append(str(watermark_image))
        stream = f"{len(extra_inputs)}:v"
        stages.append(Stage(
            (last, stream),
            (Filter("overlay", options=(
                ("x", f"W-w-{WATERMARK_MARGIN}"), ("y", f"H-h-{WATERMARK_MARGIN}"),
            )),),
            ("video_watermarked",),
        ))
        last = "video_watermarked"

    if logo:
        extra_inputs.append(str(logo))
        stream = f"{len(extra_inputs)}:v"
        logo_w = round(w * LOGO_WIDTH_FRAC)
        stages.append(Stage((stream,), (Filter("scale", (logo_w, -1)),), ("logo",)))
        stages.append(Stage(
            (last, "logo"),
            (Filter("overlay", options=(("x", f"W-w-{LOGO_MARGIN}"), ("y", LOGO_MARGIN))),),
            ("video_logo",),
        ))
        last = "video_logo"

    return FilterGraph(stages=tuple(stages), extra_inputs=tuple(extra_inputs))
