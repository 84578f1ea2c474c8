"""Batch orchestrator — render a list of clips one after another.

State machine per job: idle -> running -> completed | failed.

Each clip gets an equal 1/n share of the overall percentage regardless
of its length:
  while clip i runs:   overall = i/n*100 + clip_progress/n
  when clip i is done: overall = (i+1)/n*100
The first failure emits one error event for that clip and stops the
batch; later clips are never started and earlier outputs stay on disk.
process-complete is emitted exactly once per batch.
"""

import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from . import events
from .common import probe_duration, safe_name
from .config import Settings
from .errors import ClipValidationError, InputError, PipelineError
from .filtergraph import compile_filter_graph
from .geometry import resolve_layout
from .models import Clip, ClipStatus, JobState, RegionSettings
from .transcode import run_transcode
from .watermark import check_watermark_text, write_watermark


DEFAULT_FACECAM_HEIGHT = 40
DEFAULT_GAMEPLAY_HEIGHT = 60


@dataclass
class BatchJob:
    source: str
    clips: list[Clip]
    facecam: RegionSettings
    gameplay: RegionSettings
    watermark: str | None = None
    logo: str | None = None
    state: JobState = JobState.IDLE
    clip_status: dict[str, ClipStatus] = field(default_factory=dict)
    progress: float = 0.0
    outputs: list[str] = field(default_factory=list)
    error: str | None = None

    def __post_init__(self):
        if not self.clips:
            raise InputError("Batch has no clips")
        seen = set()
        for clip in self.clips:
            if clip.id in seen:
                raise ClipValidationError(
                    f"Duplicate clip id: '{clip.id}'", clip_id=clip.id, clip_name=clip.name,
                )
            seen.add(clip.id)
        for clip in self.clips:
            self.clip_status.setdefault(clip.id, ClipStatus.PENDING)

    @classmethod
    def from_request(cls, data: dict) -> "BatchJob":
        """Parse a process-video payload.

        Every clip and both region settings are validated here, before
        anything is rendered.

        Raises:
            InputError: (or a subclass) for any invalid field.
        """
        if not isinstance(data, dict):
            raise InputError("Request must be an object")
        source = data.get("videoPath") or data.get("source")
        if not source:
            raise InputError("Missing videoPath")
        raw_clips = data.get("clips")
        if not isinstance(raw_clips, list):
            raise InputError("clips must be a list")
        clips = [Clip.from_dict(c, i) for i, c in enumerate(raw_clips)]
        return cls(
            source=str(source),
            clips=clips,
            facecam=RegionSettings.from_dict(
                data.get("facecamSettings", data.get("facecam")), "facecam", DEFAULT_FACECAM_HEIGHT,
            ),
            gameplay=RegionSettings.from_dict(
                data.get("gameplaySettings", data.get("gameplay")), "gameplay", DEFAULT_GAMEPLAY_HEIGHT,
            ),
            watermark=data.get("watermark") or None,
            logo=data.get("logoPath") or data.get("logo") or None,
        )


def output_paths(clips: list[Clip], output_dir: str | Path) -> dict[str, Path]:
    """Map clip id -> output mp4 path, derived from the clip name.

    A name that repeats within the batch gets the clip id appended so
    one clip never overwrites another.
    """
    out_dir = Path(output_dir)
    taken: set[str] = set()
    paths = {}
    for clip in clips:
        stem = safe_name(clip.name)
        if stem in taken:
            stem = f"{stem}_{safe_name(clip.id)}"
        taken.add(stem)
        paths[clip.id] = out_dir / f"{stem}.mp4"
    return paths


def _check_source(job: BatchJob, probe: Callable[[str], float] | None) -> None:
    if not Path(job.source).exists():
        raise InputError(f"Source video not found: {job.source}")
    if job.logo and not Path(job.logo).exists():
        raise InputError(f"Logo image not found: {job.logo}")
    if probe is None:
        return
    try:
        duration = probe(job.source)
    except OSError as e:
        raise InputError(f"Cannot read source video {job.source}: {e}") from e
    for clip in job.clips:
        if clip.start_seconds >= duration:
            raise ClipValidationError(
                f"Clip '{clip.name}' starts at {clip.start} but the source is only "
                f"{duration:.2f}s long",
                clip_id=clip.id, clip_name=clip.name,
            )


def run_batch(
    job: BatchJob,
    settings: Settings,
    emit: events.Emitter = events.null_emitter,
    transcode: Callable[..., str] = run_transcode,
    probe: Callable[[str], float] | None = probe_duration,
) -> BatchJob:
    """Render every clip of job in order and report through emit.

    Pipeline and filesystem errors never escape: they are reported as an
    error progress event plus a failed process-complete, and recorded on
    the job.

    Args:
        job: The batch to run. Must be idle.
        settings: Output directory and canvas.
        emit: Progress channel.
        transcode: Per-clip runner (run_transcode signature).
        probe: Source duration probe; None skips the duration check.

    Returns:
        The same job, now completed or failed.
    """
    if job.state is not JobState.IDLE:
        raise RuntimeError(f"Batch already {job.state.value}")

    job.state = JobState.RUNNING
    n = len(job.clips)
    print(f"Processing {n} clip(s) from {job.source}", flush=True)

    def _fail(clip: Clip | None, error: Exception, clip_id=None, clip_name=None) -> BatchJob:
        job.state = JobState.FAILED
        job.error = str(error)
        if clip is not None:
            job.clip_status[clip.id] = ClipStatus.ERROR
        print(f"  FAIL   {clip.name if clip else clip_name or 'batch'}: {error}", flush=True)
        emit(events.PROGRESS, events.progress_payload(
            clip, job.progress, ClipStatus.ERROR, error=str(error),
            clip_id=clip_id, clip_name=clip_name,
        ))
        emit(events.PROCESS_COMPLETE, events.process_complete_payload(error=str(error)))
        return job

    has_watermark = job.watermark is not None and job.watermark.strip() != ""
    try:
        if has_watermark:
            check_watermark_text(job.watermark)
        _check_source(job, probe)
        layout = resolve_layout(job.facecam, job.gameplay, settings.canvas)
        Path(settings.output_dir).mkdir(parents=True, exist_ok=True)
        work = tempfile.TemporaryDirectory(prefix="klippod-", ignore_cleanup_errors=True)
    except ClipValidationError as e:
        clip = next((c for c in job.clips if c.id == e.clip_id), None)
        return _fail(clip, e, clip_id=e.clip_id, clip_name=e.clip_name)
    except (PipelineError, OSError) as e:
        return _fail(job.clips[0], e)

    paths = output_paths(job.clips, settings.output_dir)

    with work as work_dir:
        try:
            watermark_image = None
            if has_watermark:
                watermark_image = write_watermark(job.watermark, Path(work_dir) / "watermark.png")
            graph = compile_filter_graph(layout, watermark_image=watermark_image, logo=job.logo)
        except (PipelineError, OSError) as e:
            return _fail(job.clips[0], e)

        for i, clip in enumerate(job.clips):
            job.clip_status[clip.id] = ClipStatus.PROCESSING
            print(f"  START  [{i + 1}/{n}] {clip.name}  {clip.start} - {clip.end}", flush=True)

            def _on_progress(pct: float, marker: str, i=i, clip=clip) -> None:
                overall = min(i / n * 100 + pct / n, (i + 1) / n * 100)
                # ffmpeg can repeat a time marker; never step backwards.
                job.progress = max(job.progress, overall)
                emit(events.PROGRESS, events.progress_payload(
                    clip, job.progress, ClipStatus.PROCESSING, current_time=marker,
                ))

            def _on_log(line: str) -> None:
                emit(events.LOG, line)

            try:
                out = transcode(
                    job.source, clip, graph, paths[clip.id],
                    on_progress=_on_progress, on_log=_on_log,
                )
            except (PipelineError, OSError) as e:
                return _fail(clip, e)

            job.outputs.append(str(out))
            job.clip_status[clip.id] = ClipStatus.COMPLETED
            job.progress = (i + 1) / n * 100
            print(f"  DONE   [{i + 1}/{n}] {clip.name} -> {out}", flush=True)
            emit(events.PROGRESS, events.progress_payload(
                clip, job.progress, ClipStatus.COMPLETED, output_path=str(out),
            ))

    job.state = JobState.COMPLETED
    emit(events.PROCESS_COMPLETE, events.process_complete_payload(results=job.outputs))
    return job


def submit_batch(
    data: dict,
    settings: Settings,
    emit: events.Emitter = events.null_emitter,
    transcode: Callable[..., str] = run_transcode,
    probe: Callable[[str], float] | None = probe_duration,
) -> BatchJob | None:
    """Parse a process-video payload and run it.

    An invalid payload is reported the same way as a failing clip (one
    error progress event, one failed process-complete) and returns None.
    """
    try:
        job = BatchJob.from_request(data)
    except InputError as e:
        clip_id = getattr(e, "clip_id", None)
        clip_name = getattr(e, "clip_name", None)
        print(f"  FAIL   {clip_name or 'request'}: {e}", flush=True)
        emit(events.PROGRESS, events.progress_payload(
            None, 0.0, ClipStatus.ERROR, error=str(e), clip_id=clip_id, clip_name=clip_name,
        ))
        emit(events.PROCESS_COMPLETE, events.process_complete_payload(error=str(e)))
        return None
    return run_batch(job, settings, emit, transcode=transcode, probe=probe)
