"""Error types for the clip pipeline.

Every failure the pipeline reports to a caller is one of these. Input
problems are ValueError subclasses so callers that only care about "bad
input" can catch the builtin.
"""


class PipelineError(Exception):
    """Base exception for all klippod failures."""


class InputError(PipelineError, ValueError):
    """Rejected before any external process is started."""


class ClipValidationError(InputError):
    """A clip has a malformed timestamp or a non-positive duration."""

    def __init__(self, message: str, clip_id: str | None = None, clip_name: str | None = None):
        self.clip_id = clip_id
        self.clip_name = clip_name
        super().__init__(message)


class GeometryError(InputError):
    """Region settings that cannot produce a valid crop."""


class FilterGraphError(PipelineError, ValueError):
    """A filter graph cannot be serialized safely (e.g. watermark text)."""


class ProcessSpawnError(PipelineError):
    """The external binary could not be started at all."""

    def __init__(self, program: str, reason: str):
        self.program = program
        self.reason = reason
        super().__init__(f"Failed to start {program}: {reason}")


class ProcessExitError(PipelineError):
    """The external binary ran and exited with a non-zero status."""

    def __init__(self, program: str, returncode: int):
        self.program = program
        self.returncode = returncode
        super().__init__(f"{program} exited with code {returncode}")
