"""PDF ingestion utilities.

Provides layered extractors with fallbacks:
1. PyMuPDF (fitz) for per-page text and metadata.
2. pypdf when PyMuPDF is missing or cannot open the file.

Expose :class:`PdfTextExtractor`, the default :class:`TextExtractor`.
"""

from __future__ import annotations

from .extract import (
    ExtractedDocument,
    ExtractionBackend,
    PdfTextExtractor,
    TextExtractor,
    detect_available_backends,
)

__all__ = [
    "ExtractedDocument",
    "ExtractionBackend",
    "PdfTextExtractor",
    "TextExtractor",
    "detect_available_backends",
]
