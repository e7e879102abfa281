"""Error taxonomy shared by the pipeline and the API layer.

Every error carries two messages: the full ``str(exc)`` detail, which is only
ever logged server-side, and ``user_message``, which is safe to send across
the stream boundary.
"""

from __future__ import annotations

__all__ = [
    "BackendNotConfiguredError",
    "ExtractionError",
    "OperationTimeoutError",
    "PageAnalysisError",
    "PipelineError",
    "SummaryError",
    "ValidationError",
]


class PipelineError(Exception):
    """Base class for request-level failures."""

    default_user_message = "Document processing failed"

    def __init__(self, detail: str, user_message: str | None = None) -> None:
        super().__init__(detail)
        self.user_message = user_message or self.default_user_message


class ValidationError(PipelineError):
    """Upload rejected before extraction (bad magic bytes, size, page count)."""

    def __init__(self, detail: str, user_message: str | None = None) -> None:
        # Validation messages are specific and contain no internals.
        super().__init__(detail, user_message or detail)


class OperationTimeoutError(PipelineError):
    """A long-running operation exceeded its deadline."""

    default_user_message = (
        "PDF processing timed out. The file may be too complex or corrupted; "
        "try again or upload a simpler file."
    )

    def __init__(self, operation: str, timeout_s: float) -> None:
        super().__init__(f"{operation} timed out after {timeout_s:g} seconds")
        self.operation = operation
        self.timeout_s = timeout_s


class ExtractionError(PipelineError):
    """The underlying PDF parser failed."""

    default_user_message = "Could not extract text from the PDF"


class PageAnalysisError(PipelineError):
    """A single page's model call failed; recovered by the orchestrator."""

    default_user_message = "Page analysis failed"


class BackendNotConfiguredError(PageAnalysisError):
    """No language-model endpoint is configured."""

    default_user_message = "The language model service is not configured"


class SummaryError(PipelineError):
    """The final summary call failed; terminates the request."""

    default_user_message = "Could not generate the document summary"
