"""Exceptions raised by the landmark guide."""


class GuideError(Exception):
    """Base error for the landmark guide."""


class PipelineError(GuideError):
    """Raised when the analysis pipeline cannot produce a result."""


class FatalStageError(PipelineError):
    """An essential pipeline stage failed and the run was aborted."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.message = message


class MalformedInputError(GuideError):
    """The submitted image could not be turned into a usable payload."""


class SessionBusyError(GuideError):
    """A guide session already has a run in flight."""
