"""Session server — Socket.IO progress channel plus the HTTP file handlers.

Socket events (client -> server):
  process-video    {videoPath, clips[], facecamSettings, gameplaySettings, watermark, logoPath?}
  download-source  {url}        (also accepted as download-youtube)

Server -> client: progress, log, process-complete, download-progress,
download-complete (see events.py).

Work runs in a background task so the handler returns immediately. A
session runs at most one batch and one download at a time; they may
overlap each other. A disconnect does not stop running work.

Usage:
    klippod serve --port 3002
    klippod serve --settings klippod.yaml
"""

import argparse
import threading
from collections.abc import Callable

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS
from flask_socketio import SocketIO

from . import events
from .batch import submit_batch
from .common import probe_duration
from .config import Settings, load_settings
from .download import download_source, run_download
from .errors import InputError
from .outputs import list_outputs, resolve_output, save_logo_upload, save_video_upload
from .transcode import run_transcode


class SessionRegistry:
    """Tracks which job kinds each session currently has in flight."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active: dict[str, set[str]] = {}

    def claim(self, sid: str, kind: str) -> bool:
        with self._lock:
            kinds = self._active.setdefault(sid, set())
            if kind in kinds:
                return False
            kinds.add(kind)
            return True

    def release(self, sid: str, kind: str) -> None:
        with self._lock:
            kinds = self._active.get(sid)
            if kinds is None:
                return
            kinds.discard(kind)
            if not kinds:
                del self._active[sid]

    def active(self, sid: str) -> set[str]:
        with self._lock:
            return set(self._active.get(sid, ()))


def create_app(
    settings: Settings | None = None,
    transcode: Callable[..., str] = run_transcode,
    downloader: Callable[..., str] = download_source,
    probe: Callable[[str], float] | None = probe_duration,
    spawn: Callable | None = None,
) -> tuple[Flask, SocketIO]:
    """Build the Flask app and its SocketIO server.

    Args:
        settings: Directories and server options. Defaults to Settings().
        transcode: Per-clip runner handed to the batch orchestrator.
        downloader: yt-dlp runner handed to run_download.
        probe: Source duration probe (None disables the check).
        spawn: Starts a background task, (fn, *args). Defaults to
            socketio.start_background_task.
    """
    settings = settings or Settings()
    app = Flask(__name__)
    app.config["KLIPPOD_SETTINGS"] = settings
    CORS(app, origins=settings.cors_origins)
    socketio = SocketIO(app, cors_allowed_origins=settings.cors_origins, async_mode="threading")
    sessions = SessionRegistry()
    start_task = spawn or socketio.start_background_task

    def _emitter(sid: str) -> events.Emitter:
        def _emit(event: str, payload) -> None:
            socketio.emit(event, payload, to=sid)
        return _emit

    # ── Socket.IO handlers ───────────────────────────────────────

    @socketio.on("connect")
    def on_connect():
        print(f"Client connected: {request.sid}", flush=True)

    @socketio.on("disconnect")
    def on_disconnect(*_):
        sid = request.sid
        running = sessions.active(sid)
        suffix = f" (still running: {', '.join(sorted(running))})" if running else ""
        print(f"Client disconnected: {sid}{suffix}", flush=True)

    @socketio.on("process-video")
    def on_process_video(data):
        sid = request.sid
        emit = _emitter(sid)
        if not sessions.claim(sid, "batch"):
            emit(events.PROCESS_COMPLETE, events.process_complete_payload(
                error="A batch is already running for this session",
            ))
            return
        clips = data.get("clips") if isinstance(data, dict) else None
        print(f"Processing video request received: {len(clips or [])} clip(s)", flush=True)

        def _task():
            try:
                submit_batch(data, settings, emit, transcode=transcode, probe=probe)
            finally:
                sessions.release(sid, "batch")

        start_task(_task)

    def on_download_source(data):
        sid = request.sid
        emit = _emitter(sid)
        if not sessions.claim(sid, "download"):
            emit(events.DOWNLOAD_COMPLETE, events.download_complete_payload(
                error="A download is already running for this session",
            ))
            return
        url = data.get("url") if isinstance(data, dict) else None
        print(f"Source download request received: {url}", flush=True)

        def _task():
            try:
                settings.ensure_directories()
                run_download(
                    url or "", settings.cache_dir, emit,
                    candidates=settings.ytdlp_candidates, downloader=downloader,
                )
            finally:
                sessions.release(sid, "download")

        start_task(_task)

    socketio.on_event("download-source", on_download_source)
    socketio.on_event("download-youtube", on_download_source)

    # ── HTTP handlers ────────────────────────────────────────────

    @app.post("/api/upload-video")
    def upload_video():
        file = request.files.get("video")
        if file is None:
            return jsonify({"error": "No video file provided"}), 400
        try:
            path = save_video_upload(file.stream, file.filename, settings.cache_dir)
        except InputError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({
            "success": True,
            "message": "Video uploaded successfully",
            "videoPath": str(path),
            "filename": path.name,
        })

    @app.post("/api/upload-logo")
    def upload_logo():
        file = request.files.get("logo")
        if file is None:
            return jsonify({"error": "No logo file provided"}), 400
        try:
            path = save_logo_upload(file.stream, settings.cache_dir)
        except InputError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({
            "success": True,
            "message": "Logo uploaded successfully",
            "logoPath": str(path),
            "filename": path.name,
        })

    @app.get("/api/list-videos")
    def list_videos():
        videos = list_outputs(settings.output_dir)
        for v in videos:
            v["downloadUrl"] = f"/api/download-video?filename={v['filename']}"
        return jsonify({"success": True, "videos": videos, "count": len(videos)})

    def _resolve(filename):
        try:
            return resolve_output(settings.output_dir, filename), None
        except InputError as e:
            return None, (jsonify({"error": str(e)}), 400)
        except FileNotFoundError:
            return None, (jsonify({"error": "File not found"}), 404)

    @app.get("/api/download-video")
    def download_video():
        path, err = _resolve(request.args.get("filename"))
        if err:
            return err
        return send_file(path, mimetype="video/mp4", as_attachment=True, download_name=path.name)

    @app.post("/api/download-video")
    def download_link():
        body = request.get_json(silent=True) or {}
        path, err = _resolve(body.get("filename"))
        if err:
            return err
        return jsonify({
            "success": True,
            "downloadUrl": f"/api/download-video?filename={path.name}",
            "filename": path.name,
        })

    return app, socketio


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Run the clip processing server (Socket.IO + HTTP).",
    )
    parser.add_argument("--settings", default=None, help="Settings YAML file")
    parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: 3002)")
    parser.add_argument("--output-dir", default=None, help="Directory for rendered clips")
    parser.add_argument("--cache-dir", default=None, help="Directory for uploads and downloads")
    parsed = parser.parse_args(args)

    settings = load_settings(parsed.settings).with_overrides(
        host=parsed.host, port=parsed.port,
        output_dir=parsed.output_dir, cache_dir=parsed.cache_dir,
    )
    for d in settings.ensure_directories():
        print(f"Created directory: {d}")

    app, socketio = create_app(settings)
    print(f"Video processor service running on port {settings.port}")
    print(f"Output directory: {settings.output_dir}")
    print(f"Cache directory: {settings.cache_dir}")
    socketio.run(app, host=settings.host, port=settings.port, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    main()
