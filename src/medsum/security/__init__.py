"""Security gate: upload validation, deadlines, prompt sanitization."""

from .gate import (
    PDF_MAGIC_BYTES,
    redact_paths,
    run_with_timeout,
    sanitize_text_for_prompt,
    validate_file_size,
    validate_magic_bytes,
    validate_page_count,
)

__all__ = [
    "PDF_MAGIC_BYTES",
    "redact_paths",
    "run_with_timeout",
    "sanitize_text_for_prompt",
    "validate_file_size",
    "validate_magic_bytes",
    "validate_page_count",
]
