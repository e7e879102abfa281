from __future__ import annotations

from medsum.orchestrator import AnalyzedPage
from medsum.orchestrator.assembly import build_file_tree, format_metadata, group_by_structure
from pipeline.ingestion.segmenter import Page
from pipeline.ingestion.structure import StructureDetector, StructureMap


def _analyzed(n: int) -> AnalyzedPage:
    return AnalyzedPage(page_number=n, classification=None, analysis_text=f"analysis {n}")


def _book() -> StructureMap:
    return StructureDetector().detect(
        [
            Page(1, "Part 1: Basics\nintro"),
            Page(2, "Chapter 1: Cells\nbody"),
            Page(3, "body"),
            Page(4, "Chapter 2: Tissues\nbody"),
            Page(5, "Part 2: Clinic\nbody"),
            Page(6, "body"),
        ]
    )


def test_group_by_structure_assigns_pages_to_parts_and_chapters() -> None:
    grouped = group_by_structure([_analyzed(n) for n in range(1, 7)], _book())
    basics, clinic = grouped["parts"]
    assert [p["page_number"] for p in basics["pages"]] == [1]
    cells, tissues = basics["chapters"]
    assert [p["page_number"] for p in cells["pages"]] == [2, 3]
    assert [p["page_number"] for p in tissues["pages"]] == [4]
    assert [p["page_number"] for p in clinic["pages"]] == [5, 6]
    assert grouped["orphan_pages"] == []


def test_single_default_part_owns_every_page() -> None:
    structure = StructureDetector().detect([Page(1, "Introduction"), Page(2, "Methods")])
    grouped = group_by_structure([_analyzed(1), _analyzed(2)], structure)
    (part,) = grouped["parts"]
    assert part["title"] == "Scientific Article"
    assert [p["analysis"] for p in part["pages"]] == ["analysis 1", "analysis 2"]


def test_pages_before_first_part_are_orphans() -> None:
    structure = StructureDetector().detect([Page(1, "cover"), Page(2, "Part 1: Main\nx")])
    grouped = group_by_structure([_analyzed(1), _analyzed(2)], structure)
    assert [p["page_number"] for p in grouped["orphan_pages"]] == [1]


def test_file_tree_layout() -> None:
    structure = _book()
    pages = [_analyzed(n) for n in range(1, 7)]
    result = {
        "summary": "## Summary",
        "metadata": {"title": "Atlas", "page_count": 6},
        "structure": structure.to_dict(),
        "grouped_content": group_by_structure(pages, structure),
    }
    tree = build_file_tree(result)
    assert [n["id"] for n in tree] == ["summary", "metadata", "part-1", "part-2"]
    assert tree[0]["content"] == "## Summary"
    basics = tree[2]
    assert basics["name"] == "📁 Part 1: Basics"
    assert [c["id"] for c in basics["children"]] == ["page-1", "chapter-1", "chapter-2"]
    assert [c["id"] for c in basics["children"][1]["children"]] == ["page-2", "page-3"]
    assert tree[3]["children"][0]["content"] == "analysis 5"


def test_file_tree_adds_orphan_folder() -> None:
    structure = StructureDetector().detect([Page(1, "cover"), Page(2, "Part 1: Main\nx")])
    pages = [_analyzed(1), _analyzed(2)]
    tree = build_file_tree(
        {
            "summary": "s",
            "metadata": {},
            "structure": structure.to_dict(),
            "grouped_content": group_by_structure(pages, structure),
        }
    )
    assert tree[-1]["id"] == "orphan"
    assert tree[-1]["children"][0]["id"] == "page-1"


def test_format_metadata() -> None:
    md = format_metadata({"title": "Atlas", "author": "Dr. Who", "page_count": 3, "unknown": "x"})
    assert md.startswith("# Document Metadata")
    assert "- **Title:** Atlas" in md
    assert "- **Author:** Dr. Who" in md
    assert "- **Pages:** 3" in md
    assert "unknown" not in md
    assert "no metadata" in format_metadata({})
