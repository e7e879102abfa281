from __future__ import annotations

from pipeline.ingestion.segmenter import Page
from pipeline.ingestion.structure import StructureDetector


def _pages(*texts: str) -> list[Page]:
    return [Page(i, t) for i, t in enumerate(texts, start=1)]


def test_imryd_article_is_standard_format() -> None:
    pages = _pages(
        "Abstract\nWe studied things.",
        "INTRODUCTION\nBackground text.",
        "METHODS\nWe enrolled patients.",
        "RESULTS\nNumbers went down.",
    )
    structure = StructureDetector().detect(pages)
    assert structure.is_standard_format
    assert structure.imryd["introduction"].start_page == 2
    assert structure.imryd["methods"].start_page == 3
    assert structure.imryd["results"].start_page == 4
    assert structure.imryd["discussion"] is None
    assert [p.title for p in structure.parts] == ["Scientific Article"]
    assert structure.parts[0].id == "part-0"
    assert structure.parts[0].start_page == 1


def test_first_occurrence_wins() -> None:
    pages = _pages("2. Results:\nfirst", "Resultados\nsecond")
    structure = StructureDetector().detect(pages)
    assert structure.imryd["results"].start_page == 1
    assert structure.imryd["results"].title == "2. Results:"


def test_pages_processed_in_page_order() -> None:
    pages = [Page(3, "Discussion\nlate"), Page(1, "Discussion\nearly")]
    structure = StructureDetector().detect(pages)
    assert structure.imryd["discussion"].start_page == 1


def test_single_section_is_not_standard() -> None:
    structure = StructureDetector().detect(_pages("Introduction\ntext", "plain page"))
    assert not structure.is_standard_format
    assert structure.parts[0].title == "Full Document"


def test_parts_and_chapters() -> None:
    pages = _pages(
        "Part I: Foundations\nChapter 1: Anatomy\nbody",
        "Chapter 2 - Physiology\nbody",
        "Parte 2: Clínica\nbody",
        "Capítulo 3: Diagnóstico\nbody",
    )
    structure = StructureDetector().detect(pages)
    assert [p.title for p in structure.parts] == ["Foundations", "Clínica"]
    assert [p.id for p in structure.parts] == ["part-1", "part-2"]
    first, second = structure.parts
    assert [c.title for c in first.chapters] == ["Anatomy", "Physiology"]
    assert [c.start_page for c in first.chapters] == [1, 2]
    assert [c.title for c in second.chapters] == ["Diagnóstico"]
    assert [c.id for c in structure.chapters] == ["chapter-1", "chapter-2", "chapter-3"]


def test_chapter_before_any_part_goes_to_default_part() -> None:
    pages = _pages("Chapter 1: Intro\nbody", "Part 2: Later\nbody")
    structure = StructureDetector().detect(pages)
    default, later = structure.parts
    assert default.id == "part-0"
    assert [c.title for c in default.chapters] == ["Intro"]
    assert later.title == "Later"
    assert later.chapters == []


def test_headings_below_scan_window_are_ignored() -> None:
    body = "\n".join(f"line {i}" for i in range(25))
    structure = StructureDetector().detect(_pages(body + "\nMethods"))
    assert structure.imryd["methods"] is None


def test_structure_serializes() -> None:
    data = StructureDetector().detect(_pages("Methods\nx")).to_dict()
    assert data["imryd"]["methods"] == {"start_page": 1, "title": "Methods"}
    assert data["parts"][0]["chapters"] == []
