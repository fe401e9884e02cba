"""
Pipeline error taxonomy.

Every error surfaced to callers derives from PipelineError and carries a
single human-readable message.
"""
from typing import Optional


class PipelineError(Exception):
    """Base class for errors surfaced by the summary pipeline."""

    default_message = "Unable to generate summary"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(PipelineError):
    """Missing or malformed URL. Never retried."""

    default_message = "Invalid URL for summary"


class ContentUnavailableError(PipelineError):
    """No content source produced usable text."""

    default_message = "Page content unavailable"


class SummarizerUnavailableError(PipelineError):
    """The summarization backend is not installed or not ready."""

    default_message = "Summarizer API unavailable"


class SummarizationFailedError(PipelineError):
    """The backend call failed after content was resolved."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or self.default_message
        super().__init__(self.reason)


def to_error_message(error: Optional[BaseException]) -> str:
    """Normalize any exception into one message string."""
    if error is None:
        return "Unknown summarizer error"
    if isinstance(error, PipelineError):
        return error.message
    message = str(error).strip()
    if message:
        return message
    return "Unable to generate summary"
