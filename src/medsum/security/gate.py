"""Upload validation, deadlines and prompt sanitization.

Validates PDF files beyond the declared content type to prevent malicious
uploads and resource exhaustion, and defuses prompt-injection attempts in
page text before it reaches the language model.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

from medsum.errors import OperationTimeoutError, ValidationError

__all__ = [
    "PDF_MAGIC_BYTES",
    "redact_paths",
    "run_with_timeout",
    "sanitize_text_for_prompt",
    "validate_file_size",
    "validate_magic_bytes",
    "validate_page_count",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

PDF_MAGIC_BYTES = b"%PDF-"

# (pattern, inert replacement); order matters: fences before role markers
_INJECTION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```"), "'''"),
    (re.compile(r"\b(system|assistant|user)\s*:", re.I), r"(\1 said)"),
    (re.compile(r"ignore\s+(?:all\s+)?(?:previous|prior|above|all)\s+instructions?", re.I), "[filtered]"),
    (re.compile(r"disregard\s+(?:previous|prior|all)\s+(?:instructions?|context)", re.I), "[filtered]"),
    (re.compile(r"\[/?INST\]", re.I), "[FILTERED]"),
    (re.compile(r"<</?SYS>>", re.I), "[FILTERED]"),
    (re.compile(r"<\|.*?\|>"), "[FILTERED]"),
)

# Two or more path segments, optionally with a drive letter.
_PATH_RE = re.compile(r"(?:[A-Za-z]:)?(?:[\\/][\w.\-]+){2,}[\\/]?")


def validate_magic_bytes(path: str | Path) -> None:
    """Require the file to start with ``%PDF-``.

    Raises:
        ValidationError: On signature mismatch or a file shorter than 5 bytes.
    """

    with Path(path).open("rb") as fh:
        head = fh.read(len(PDF_MAGIC_BYTES))
    if head != PDF_MAGIC_BYTES:
        raise ValidationError(
            "Invalid PDF: file does not start with PDF magic bytes (%PDF-)",
            "Invalid PDF file format",
        )


def validate_file_size(size: int, max_size: int) -> None:
    if size > max_size:
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(f"File size ({size_mb:.2f}MB) exceeds maximum allowed ({max_mb:.0f}MB)")


def validate_page_count(page_count: object, max_pages: int) -> int:
    """Return ``page_count`` when it is a positive int within the ceiling.

    Raises:
        ValidationError: For non-integers, counts below 1, or counts above
            ``max_pages``.
    """

    if isinstance(page_count, bool) or not isinstance(page_count, int) or page_count < 1:
        raise ValidationError("Invalid page count: PDF appears to be empty or corrupted")
    if page_count > max_pages:
        raise ValidationError(
            f"PDF has {page_count} pages, which exceeds the maximum of {max_pages} pages"
        )
    return page_count


async def run_with_timeout(operation: Awaitable[T], timeout_s: float, name: str = "Operation") -> T:
    """Race ``operation`` against a timer.

    The operation itself is not cooperatively stopped; for work running in a
    thread only the wait is abandoned.

    Raises:
        OperationTimeoutError: If the deadline passes first.
    """

    try:
        return await asyncio.wait_for(operation, timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        logger.warning("operation_timeout name=%s timeout_s=%s", name, timeout_s)
        raise OperationTimeoutError(name, timeout_s) from exc


def sanitize_text_for_prompt(text: str | None) -> str:
    """Neutralize role markers, fences and instruction overrides.

    Matches are replaced with inert placeholders instead of being deleted so
    the surrounding text stays readable.
    """

    if not text:
        return ""
    sanitized = text
    for pattern, replacement in _INJECTION_RULES:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def redact_paths(text: str) -> str:
    """Replace filesystem paths with ``[path]`` for client-facing messages."""
    return _PATH_RE.sub("[path]", text)
