"""Final result assembly: structure grouping, file tree, metadata view."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pipeline.ingestion.structure import Part, StructureMap

from .types import AnalyzedPage

__all__ = [
    "DISCLAIMER",
    "DISCLAIMER_SECTION",
    "build_file_tree",
    "format_metadata",
    "group_by_structure",
]

DISCLAIMER = (
    "This summary is informational and does not constitute medical advice. "
    "Always consult a healthcare professional."
)

DISCLAIMER_SECTION = """

---

## ⚠️ Important Notice

> **This summary is informational and does not constitute medical advice.**
>
> - Generated automatically by artificial intelligence
> - Always verify the information against the original document
> - Consult healthcare professionals for clinical decisions
> - Do not use as the sole source for diagnosis or treatment

"""

_METADATA_LABELS = (
    ("title", "Title"),
    ("author", "Author"),
    ("subject", "Subject"),
    ("keywords", "Keywords"),
    ("producer", "Producer"),
    ("creator", "Creator"),
    ("creation_date", "Created"),
    ("mod_date", "Modified"),
    ("format", "PDF version"),
    ("page_count", "Pages"),
)


def format_metadata(metadata: Mapping[str, Any] | None) -> str:
    """Render document metadata as a Markdown bullet list."""

    if not metadata:
        return (
            "# Document Metadata\n\n_This PDF carries no metadata._\n\n"
            "The general summary and the page analyses still contain the "
            "document's key information."
        )
    lines = ["# Document Metadata", ""]
    for key, label in _METADATA_LABELS:
        value = metadata.get(key)
        if value not in (None, ""):
            lines.append(f"- **{label}:** {value}")
    return "\n".join(lines) + "\n"


def _page_ref(page: AnalyzedPage) -> dict[str, Any]:
    return {"page_number": page.page_number, "analysis": page.analysis_text}


def _part_end(parts: Sequence[Part], index: int) -> float:
    """First page of the next part starting later, or infinity."""
    start = parts[index].start_page
    for later in parts[index + 1 :]:
        if later.start_page > start:
            return later.start_page
    return float("inf")


def group_by_structure(pages: Sequence[AnalyzedPage], structure: StructureMap) -> dict[str, Any]:
    """Bucket analyses into parts and chapters.

    A part owns the pages from its start up to its first chapter (or the next
    part); a chapter owns the pages up to the next chapter of the same part
    or the end of the part. Pages claimed by nothing are ``orphan_pages``.
    """

    grouped: dict[str, Any] = {"parts": [], "orphan_pages": []}
    assigned: set[int] = set()

    for index, part in enumerate(structure.parts):
        part_end = _part_end(structure.parts, index)
        first_chapter = part.chapters[0].start_page if part.chapters else part_end
        part_data: dict[str, Any] = {
            "id": part.id,
            "title": part.title,
            "number": part.number,
            "chapters": [],
            "pages": [],
        }
        for page in pages:
            if part.start_page <= page.page_number < min(first_chapter, part_end):
                part_data["pages"].append(_page_ref(page))
                assigned.add(page.page_number)

        for ch_index, chapter in enumerate(part.chapters):
            next_start = (
                part.chapters[ch_index + 1].start_page
                if ch_index + 1 < len(part.chapters)
                else part_end
            )
            chapter_pages = [
                _page_ref(p) for p in pages if chapter.start_page <= p.page_number < next_start
            ]
            assigned.update(p["page_number"] for p in chapter_pages)
            part_data["chapters"].append(
                {
                    "id": chapter.id,
                    "title": chapter.title,
                    "number": chapter.number,
                    "pages": chapter_pages,
                }
            )
        grouped["parts"].append(part_data)

    grouped["orphan_pages"] = [_page_ref(p) for p in pages if p.page_number not in assigned]
    return grouped


def _page_node(page: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "id": f"page-{page['page_number']}",
        "name": f"📄 Page {page['page_number']}",
        "type": "page",
        "content": page["analysis"],
    }


def build_file_tree(result: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Navigation tree for the client: summary, metadata, parts, orphans."""

    tree: list[dict[str, Any]] = [
        {
            "id": "summary",
            "name": "📋 General Summary (IMRyD)",
            "type": "summary",
            "content": result["summary"],
        },
        {
            "id": "metadata",
            "name": "📄 Metadata",
            "type": "metadata",
            "content": format_metadata(result.get("metadata")),
        },
    ]

    grouped = result.get("grouped_content") or {}
    grouped_parts = grouped.get("parts", [])
    for index, part in enumerate(result["structure"]["parts"]):
        part_data = grouped_parts[index] if index < len(grouped_parts) else {"pages": [], "chapters": []}
        node: dict[str, Any] = {
            "id": part["id"],
            "name": f"📁 Part {part['number']}: {part['title']}",
            "type": "folder",
            "children": [_page_node(p) for p in part_data["pages"]],
        }
        for ch_index, chapter in enumerate(part["chapters"]):
            chapters = part_data["chapters"]
            chapter_pages = chapters[ch_index]["pages"] if ch_index < len(chapters) else []
            node["children"].append(
                {
                    "id": chapter["id"],
                    "name": f"📂 Chapter {chapter['number']}: {chapter['title']}",
                    "type": "folder",
                    "children": [_page_node(p) for p in chapter_pages],
                }
            )
        tree.append(node)

    orphans = grouped.get("orphan_pages") or []
    if orphans:
        tree.append(
            {
                "id": "orphan",
                "name": "📑 Additional Pages",
                "type": "folder",
                "children": [_page_node(p) for p in orphans],
            }
        )
    return tree
