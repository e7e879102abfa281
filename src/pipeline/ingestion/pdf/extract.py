"""PDF text extraction backends with graceful degradation.

Design goals:
- Deterministic ordering of attempted backends (PyMuPDF, then pypdf).
- Operate on in-memory bytes; the caller owns the uploaded file.
- Return structured result (page count + per-page list + combined text +
  metadata) so the segmenter can decide whether per-page text is usable.
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from medsum.errors import ExtractionError


class ExtractionBackend(str, Enum):
    PYMUPDF = "pymupdf"  # PyMuPDF (fitz)
    PYPDF = "pypdf"


@dataclass
class ExtractedDocument:
    """What a :class:`TextExtractor` hands to the pipeline.

    ``pages`` is ``None`` when the backend could not supply per-page text;
    entries may be ``None`` for pages that failed individually.
    """

    page_count: int
    text: str
    pages: list[str | None] | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    backend: ExtractionBackend | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def title(self) -> str | None:
        value = (self.metadata.get("title") or "").strip()
        return value or None


class TextExtractor(Protocol):
    def extract(self, data: bytes) -> ExtractedDocument: ...


logger = logging.getLogger(__name__)

_METADATA_KEYS = {
    "title": "title",
    "author": "author",
    "subject": "subject",
    "keywords": "keywords",
    "creator": "creator",
    "producer": "producer",
    "creationdate": "creation_date",
    "moddate": "mod_date",
    "format": "format",
}


def _normalize_metadata(raw: Any) -> dict[str, str]:
    out: dict[str, str] = {}
    if not raw:
        return out
    for key, value in dict(raw).items():
        norm = _METADATA_KEYS.get(str(key).lstrip("/").lower())
        if norm and value not in (None, ""):
            out[norm] = str(value)
    return out


def _normalize_page(text: str) -> str:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return "\n".join(ln.rstrip() for ln in normalized.splitlines())


def detect_available_backends() -> list[ExtractionBackend]:
    available: list[ExtractionBackend] = []
    try:  # prefer PyMuPDF first (better layout/spacing fidelity)
        import fitz  # noqa: F401

        available.append(ExtractionBackend.PYMUPDF)
    except ImportError:  # pragma: no cover
        pass
    try:
        import pypdf  # noqa: F401

        available.append(ExtractionBackend.PYPDF)
    except ImportError:  # pragma: no cover
        pass
    return available


def _extract_pymupdf(data: bytes) -> ExtractedDocument:
    import fitz

    pages: list[str | None] = []
    warnings: list[str] = []
    with fitz.open(stream=data, filetype="pdf") as doc:
        total_pages = int(getattr(doc, "page_count", 0) or 0)
        metadata = _normalize_metadata(doc.metadata)
        for i in range(total_pages):
            try:
                page_text = doc.load_page(i).get_text("text") or ""
            except Exception as e:  # pragma: no cover
                warnings.append(f"pymupdf page {i + 1} text error: {e}")
                pages.append(None)
                continue
            pages.append(_normalize_page(page_text))
    full = "\n".join(p for p in pages if p)
    return ExtractedDocument(total_pages, full, pages, metadata, ExtractionBackend.PYMUPDF, warnings)


def _extract_pypdf(data: bytes) -> ExtractedDocument:
    import pypdf

    pages: list[str | None] = []
    warnings: list[str] = []
    reader = pypdf.PdfReader(io.BytesIO(data))
    total_pages = len(reader.pages)
    for i, page in enumerate(reader.pages):
        try:
            txt = page.extract_text() or ""
        except Exception as e:  # pragma: no cover
            warnings.append(f"pypdf page {i + 1} extract error: {e}")
            pages.append(None)
            continue
        pages.append(_normalize_page(txt))
    metadata = _normalize_metadata(reader.metadata)
    full = "\n".join(p for p in pages if p)
    return ExtractedDocument(total_pages, full, pages, metadata, ExtractionBackend.PYPDF, warnings)


_BACKENDS = {
    ExtractionBackend.PYMUPDF: _extract_pymupdf,
    ExtractionBackend.PYPDF: _extract_pypdf,
}


class PdfTextExtractor:
    """:class:`TextExtractor` trying each available backend in order."""

    def __init__(self, backends_preference: Sequence[ExtractionBackend] | None = None) -> None:
        detected = detect_available_backends()
        if backends_preference is not None:
            self.order = [b for b in backends_preference if b in detected]
        else:
            self.order = detected

    def extract(self, data: bytes) -> ExtractedDocument:
        """Extract text via the first backend that can open the document.

        A backend that opens the file but yields no text is kept as a
        candidate; the next backend is still tried in case it does better.

        Raises:
            ExtractionError: If no backend is installed or none can parse
                the bytes.
        """

        if not self.order:
            raise ExtractionError("no PDF extraction backend installed")
        start_total = time.perf_counter()
        attempts: list[str] = []
        errors: list[str] = []
        candidate: ExtractedDocument | None = None
        for backend in self.order:
            attempts.append(backend.value)
            t0 = time.perf_counter()
            try:
                res = _BACKENDS[backend](data)
            except Exception as e:  # noqa: BLE001 - parser libraries raise anything
                errors.append(f"{backend.value}: {e}")
                logger.debug("pdf_extract_backend_error backend=%s error=%s", backend.value, e)
                continue
            logger.debug(
                "pdf_extract_backend_result backend=%s pages=%s chars=%s ms=%.1f warnings=%s",
                backend.value,
                res.page_count,
                len(res.text),
                (time.perf_counter() - t0) * 1000.0,
                len(res.warnings),
            )
            if candidate is None:
                candidate = res
            if res.text.strip():
                candidate = res
                break
        if candidate is None:
            logger.warning("pdf_extract_failure attempts=%s errors=%s", attempts, errors)
            raise ExtractionError("; ".join(errors) or "PDF could not be parsed")
        if attempts[0] != (candidate.backend.value if candidate.backend else None):
            candidate.warnings.append(f"used fallback backend; attempts={attempts}")
        logger.info(
            "pdf_extract_success backend=%s pages=%s chars=%s attempts=%s ms_total=%.1f",
            candidate.backend.value if candidate.backend else None,
            candidate.page_count,
            len(candidate.text),
            attempts,
            (time.perf_counter() - start_total) * 1000.0,
        )
        return candidate
