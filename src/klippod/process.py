"""Run an external tool and stream its diagnostic output line by line.

Both ffmpeg and yt-dlp report progress by rewriting a status line with
carriage returns. Text mode with universal newlines splits on "\\r" as
well as "\\n", so each status update arrives as its own line.
"""

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from .errors import ProcessExitError, ProcessSpawnError


def program_name(cmd: Sequence[str]) -> str:
    return Path(cmd[0]).name


def stream_process(cmd: Sequence[str], on_line: Callable[[str], None]) -> int:
    """Run cmd to completion, calling on_line for every output line.

    stdout and stderr are merged. Blank lines are skipped.

    Returns:
        The process exit status.

    Raises:
        ProcessSpawnError: If the binary is missing or not executable.
    """
    try:
        proc = subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        raise ProcessSpawnError(program_name(cmd), e.strerror or str(e)) from e

    with proc:
        for raw in proc.stdout:
            line = raw.strip()
            if line:
                on_line(line)
    return proc.wait()


def run_checked(cmd: Sequence[str], on_line: Callable[[str], None]) -> None:
    """stream_process, raising ProcessExitError on a non-zero status."""
    code = stream_process(cmd, on_line)
    if code != 0:
        raise ProcessExitError(program_name(cmd), code)
