"""Progress channel — event names, payload builders, and emitters.

An emitter is any callable taking (event_name, payload). The server
passes a function that forwards to the client's Socket.IO session; the
CLI uses ConsoleEmitter; tests use EventRecorder.

Payload keys are camelCase because they go straight onto the wire.
"""

from collections.abc import Callable

from .models import Clip, ClipStatus


PROGRESS = "progress"
LOG = "log"
PROCESS_COMPLETE = "process-complete"
DOWNLOAD_PROGRESS = "download-progress"
DOWNLOAD_COMPLETE = "download-complete"

Emitter = Callable[[str, object], None]


def progress_payload(
    clip: Clip | None,
    progress: float,
    status: ClipStatus,
    output_path: str | None = None,
    error: str | None = None,
    current_time: str | None = None,
    clip_id: str | None = None,
    clip_name: str | None = None,
) -> dict:
    payload = {
        "clipId": clip.id if clip else clip_id,
        "clipName": clip.name if clip else clip_name,
        "progress": progress,
        "status": ClipStatus(status).value,
    }
    if output_path is not None:
        payload["outputPath"] = output_path
    if error is not None:
        payload["error"] = error
    if current_time is not None:
        payload["currentTime"] = current_time
    return payload


def process_complete_payload(results: list[str] | None = None, error: str | None = None) -> dict:
    if error is not None:
        return {"success": False, "error": error}
    results = list(results or [])
    return {
        "success": True,
        "results": results,
        "message": f"Successfully processed {len(results)} clip(s)",
    }


def download_complete_payload(video_path: str | None = None, error: str | None = None) -> dict:
    if error is not None:
        return {"success": False, "error": error}
    return {
        "success": True,
        "videoPath": video_path,
        "message": "Source video downloaded successfully",
    }


def null_emitter(event: str, payload) -> None:
    pass


class EventRecorder:
    """Collects (event, payload) pairs in order."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def __call__(self, event: str, payload) -> None:
        self.events.append((event, payload))

    def of(self, event: str) -> list:
        return [payload for name, payload in self.events if name == event]

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class ConsoleEmitter:
    """Prints events for terminal use. Raw log lines only when verbose.

    Per-clip START/DONE/FAIL lines are printed by run_batch, not here.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._last_pct: dict[str, int] = {}

    def __call__(self, event: str, payload) -> None:
        if event == LOG:
            if self.verbose:
                print(f"    {payload}", flush=True)
        elif event == PROGRESS:
            if payload["status"] == ClipStatus.PROCESSING.value:
                # One line per whole percent, not per ffmpeg status line.
                pct = int(payload["progress"])
                if self._last_pct.get(payload["clipId"]) != pct:
                    self._last_pct[payload["clipId"]] = pct
                    print(f"  {pct:3d}%  {payload['clipName']}", end="\r", flush=True)
        elif event == DOWNLOAD_PROGRESS:
            print(f"  {payload['progress']:5.1f}%  downloading", end="\r", flush=True)
        elif event in (PROCESS_COMPLETE, DOWNLOAD_COMPLETE):
            if payload["success"]:
                print(f"\n{payload['message']}", flush=True)
            else:
                print(f"\nFailed: {payload['error']}", flush=True)
