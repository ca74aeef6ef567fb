"""
Error taxonomy for the image/audio to video workflow.

Every error carries a human-readable message, an optional secondary
description (for example the underlying parser message) and the HTTP status
the service layer reports it with. None of them is retried.
"""
from typing import Optional


class WorkflowError(Exception):
    """Base class for all workflow failures."""
    status_code = 502

    def __init__(self, message: str, description: str = ""):
        super().__init__(message)
        self.message = message
        self.description = description


class MalformedGraph(WorkflowError):
    status_code = 400


class MissingImageNode(WorkflowError):
    status_code = 400


class MissingAudioNode(WorkflowError):
    status_code = 400


class InvalidInputMedia(WorkflowError):
    status_code = 400


class UploadFailed(WorkflowError):
    pass


class SubmissionRejected(WorkflowError):
    pass


class GenerationFailed(WorkflowError):
    pass


class GenerationTimeout(WorkflowError):
    status_code = 504


class NoMediaOutputs(WorkflowError):
    pass


class NoVideoOutputs(WorkflowError):
    pass


class OutputNotFound(WorkflowError):
    pass


class ComfyUIApiError(WorkflowError):
    """
    The single error surfaced to callers of the workflow.

    Wraps whatever went wrong (a taxonomy error or a transport failure) and
    keeps the original as ``__cause__``.
    """

    def __init__(self, message: str, description: str = "", status_code: Optional[int] = None):
        super().__init__(message, description)
        if status_code is not None:
            self.status_code = status_code

    @classmethod
    def wrap(cls, error: Exception) -> "ComfyUIApiError":
        if isinstance(error, ComfyUIApiError):
            return error
        message = getattr(error, "message", None) or str(error) or error.__class__.__name__
        description = getattr(error, "description", "") or ""
        status_code = getattr(error, "status_code", None) if isinstance(error, WorkflowError) else 502
        wrapped = cls(f"ComfyUI API Error: {message}", description, status_code)
        wrapped.__cause__ = error
        return wrapped
