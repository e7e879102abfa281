from __future__ import annotations

import fitz
import pytest

from medsum.classifier import PageClassification, PageClassifier
from medsum.errors import ExtractionError
from pipeline.ingestion.pdf import ExtractionBackend, PdfTextExtractor, detect_available_backends
from pipeline.ingestion.segmenter import EMPTY_PAGE_MARKER, pages_from_extraction
from tests.fakes import METHODS_PAGE


def _make_pdf(pages: list[str], title: str | None = None) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    if title:
        doc.set_metadata({"title": title, "author": "Dr. Test"})
    data = doc.tobytes()
    doc.close()
    return data


def test_backends_detected() -> None:
    assert detect_available_backends()[0] is ExtractionBackend.PYMUPDF


def test_extract_per_page_text_and_metadata() -> None:
    data = _make_pdf(["Introduction page", "Methods page"], title="Trial of X")
    doc = PdfTextExtractor().extract(data)
    assert doc.backend is ExtractionBackend.PYMUPDF
    assert doc.page_count == 2
    assert doc.pages is not None
    assert "Introduction page" in doc.pages[0]
    assert "Methods page" in doc.pages[1]
    assert doc.title == "Trial of X"
    assert doc.metadata["author"] == "Dr. Test"


def test_blank_page_becomes_marker() -> None:
    doc = PdfTextExtractor().extract(_make_pdf(["Results page", ""]))
    pages = pages_from_extraction(doc)
    assert [p.page_number for p in pages] == [1, 2]
    assert pages[1].raw_text == EMPTY_PAGE_MARKER


def test_pypdf_backend_reads_same_document() -> None:
    doc = PdfTextExtractor([ExtractionBackend.PYPDF]).extract(_make_pdf(["Discussion page"]))
    assert doc.backend is ExtractionBackend.PYPDF
    assert doc.page_count == 1
    assert "Discussion" in doc.text


def test_all_backends_failing_raise_extraction_error(monkeypatch: pytest.MonkeyPatch) -> None:
    from pipeline.ingestion.pdf import extract

    def broken(data: bytes) -> None:
        raise RuntimeError("cannot open broken document")

    monkeypatch.setitem(extract._BACKENDS, ExtractionBackend.PYMUPDF, broken)
    monkeypatch.setitem(extract._BACKENDS, ExtractionBackend.PYPDF, broken)
    with pytest.raises(ExtractionError, match="cannot open broken document"):
        PdfTextExtractor().extract(b"%PDF-1.4")


def test_no_backend_available() -> None:
    with pytest.raises(ExtractionError, match="no PDF extraction backend"):
        PdfTextExtractor([]).extract(b"%PDF-1.4")


def test_no_title_metadata() -> None:
    doc = PdfTextExtractor().extract(_make_pdf(["Abstract"]))
    assert doc.title is None


def test_line_wrap_before_references_header_is_preserved(monkeypatch: pytest.MonkeyPatch) -> None:
    from pipeline.ingestion.pdf import ExtractedDocument, extract

    page = (
        METHODS_PAGE
        + " Patients will be seen at follow-\n"
        + "Referencias\n1. Smith J, Jones A. Metformin. N Engl J Med. 2019;380(4):123-130."
    )

    def canned(data: bytes) -> ExtractedDocument:
        return ExtractedDocument(page_count=1, text=page, pages=[page], backend=ExtractionBackend.PYMUPDF)

    monkeypatch.setitem(extract._BACKENDS, ExtractionBackend.PYMUPDF, canned)
    doc = PdfTextExtractor([ExtractionBackend.PYMUPDF]).extract(b"%PDF-1.4")
    assert doc.pages == [page]

    result = PageClassifier().classify(doc.pages[0], 1)
    assert result.classification is PageClassification.MIXED_CONTENT
    assert "Smith" not in result.extractable_text
