"""Placeholder texts recorded instead of (or next to) a model analysis."""

from __future__ import annotations

from .types import ClassificationResult

EMPTY_PAGE_ANALYSIS = "[Page skipped: no extractable text]"


def reference_page_response(page_number: int, result: ClassificationResult) -> str:
    """Fixed explanation for a page that is bibliography only."""
    reasons = f" ({', '.join(result.reasons)})" if result.reasons else ""
    return (
        f"[Page {page_number} contains bibliographic references{reasons}. "
        "There is no substantive medical content to summarize. "
        f"Detection confidence: {round(result.confidence * 100)}%]"
    )


def mixed_content_note(page_number: int, result: ClassificationResult) -> str:
    sections = (
        ", ".join(s.name for s in result.important_sections)
        if result.important_sections
        else "preceding content"
    )
    return (
        f"[Page {page_number}: mixed content detected. "
        f"Important sections found: {sections}. "
        f"Processed the medical content ({len(result.extractable_text)} characters) "
        "and omitted the bibliography section.]"
    )


def low_content_response(extracted_chars: int) -> str:
    return f"[Page skipped: insufficient extracted content ({extracted_chars} characters)]"


def skipped_response(reason: str) -> str:
    return f"[Page skipped: {reason}]"


def error_response(message: str) -> str:
    return f"[Error analyzing page: {message}]"
