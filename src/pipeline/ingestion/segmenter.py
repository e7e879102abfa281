"""Page segmentation with uniform line-distribution fallback.

The extractor's own per-page text is preferred. When it is missing or
incomplete (count mismatch, a page that failed to extract) the combined text
is spread evenly over the real page count so every page still exists.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .pdf.extract import ExtractedDocument

__all__ = [
    "EMPTY_PAGE_MARKER",
    "Page",
    "is_empty_page",
    "pages_from_extraction",
    "segment",
]

logger = logging.getLogger(__name__)

EMPTY_PAGE_MARKER = "[Empty page - no extractable text]"


@dataclass(frozen=True, slots=True)
class Page:
    page_number: int
    raw_text: str


def is_empty_page(text: str | None) -> bool:
    stripped = (text or "").strip()
    return not stripped or stripped == EMPTY_PAGE_MARKER


def segment(full_text: str, page_count: int) -> list[Page]:
    """Split ``full_text`` into exactly ``page_count`` pages numbered from 1."""

    if page_count <= 0:
        return []
    if not full_text or not full_text.strip():
        return [Page(n, EMPTY_PAGE_MARKER) for n in range(1, page_count + 1)]

    lines = full_text.split("\n")
    lines_per_page = math.ceil(len(lines) / page_count)
    pages: list[Page] = []
    for n in range(1, page_count + 1):
        start = (n - 1) * lines_per_page
        chunk = "\n".join(lines[start : start + lines_per_page]).strip()
        pages.append(Page(n, chunk or EMPTY_PAGE_MARKER))
    return pages


def _per_page_usable(doc: ExtractedDocument) -> bool:
    return (
        doc.pages is not None
        and doc.page_count > 0
        and len(doc.pages) == doc.page_count
        and all(p is not None for p in doc.pages)
    )


def pages_from_extraction(doc: ExtractedDocument) -> list[Page]:
    """Return page records, preferring the extractor's real per-page text."""

    if _per_page_usable(doc):
        return [
            Page(i, (text or "").strip() or EMPTY_PAGE_MARKER)
            for i, text in enumerate(doc.pages or [], start=1)
        ]
    logger.info(
        "page_segmentation_fallback page_count=%s per_page=%s",
        doc.page_count,
        None if doc.pages is None else len(doc.pages),
    )
    return segment(doc.text, doc.page_count)
