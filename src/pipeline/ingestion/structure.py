"""Structural map detection (Part/Chapter tree and IMRyD sections).

Only the top of each page is scanned; headings deeper in a page are assumed
to be body text. Pages are visited in ascending page number so that "first
occurrence wins" for IMRyD sections is deterministic.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from medsum.patterns import IMRYD_SECTIONS, PatternPack, default_pattern_pack

from .segmenter import Page

__all__ = [
    "Chapter",
    "ImrydSection",
    "Part",
    "StructureDetector",
    "StructureMap",
]

logger = logging.getLogger(__name__)

STANDARD_FORMAT_SECTIONS = ("introduction", "methods", "results", "discussion")
DEFAULT_SCAN_LINES = 20


@dataclass
class Chapter:
    id: str
    number: str
    title: str
    start_page: int


@dataclass
class Part:
    id: str
    number: str
    title: str
    start_page: int
    chapters: list[Chapter] = field(default_factory=list)


@dataclass(frozen=True)
class ImrydSection:
    start_page: int
    title: str


@dataclass
class StructureMap:
    parts: list[Part] = field(default_factory=list)
    chapters: list[Chapter] = field(default_factory=list)
    imryd: dict[str, ImrydSection | None] = field(
        default_factory=lambda: dict.fromkeys(IMRYD_SECTIONS)
    )
    is_standard_format: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class StructureDetector:
    """Build a :class:`StructureMap` from page records."""

    def __init__(self, patterns: PatternPack | None = None, scan_lines: int = DEFAULT_SCAN_LINES) -> None:
        self.patterns = patterns or default_pattern_pack()
        self.scan_lines = scan_lines
        self._part_re = self.patterns.part_header
        self._chapter_re = self.patterns.chapter_header

    def detect(self, pages: Iterable[Page]) -> StructureMap:
        structure = StructureMap()
        leading_chapters: list[Chapter] = []
        current_part: Part | None = None

        for page in sorted(pages, key=lambda p: p.page_number):
            for line in page.raw_text.split("\n")[: self.scan_lines]:
                stripped = line.strip()
                if not stripped:
                    continue

                part_match = self._part_re.match(stripped)
                if part_match:
                    number = part_match.group(1)
                    current_part = Part(
                        id=f"part-{len(structure.parts) + 1}",
                        number=number,
                        title=part_match.group(2).strip() or f"Part {number}",
                        start_page=page.page_number,
                    )
                    structure.parts.append(current_part)
                    logger.debug("structure_part page=%s title=%s", page.page_number, current_part.title)
                    continue

                chapter_match = self._chapter_re.match(stripped)
                if chapter_match:
                    number = chapter_match.group(1)
                    chapter = Chapter(
                        id=f"chapter-{len(structure.chapters) + 1}",
                        number=number,
                        title=chapter_match.group(2).strip() or f"Chapter {number}",
                        start_page=page.page_number,
                    )
                    structure.chapters.append(chapter)
                    if current_part is None:
                        leading_chapters.append(chapter)
                    else:
                        current_part.chapters.append(chapter)
                    logger.debug("structure_chapter page=%s title=%s", page.page_number, chapter.title)
                    continue

                entry = self.patterns.match_line(self.patterns.imryd_headers, stripped)
                if entry and structure.imryd.get(entry.name) is None:
                    structure.imryd[entry.name] = ImrydSection(start_page=page.page_number, title=stripped)

        found = sum(1 for s in STANDARD_FORMAT_SECTIONS if structure.imryd.get(s) is not None)
        structure.is_standard_format = found >= 2

        if not structure.parts or leading_chapters:
            title = "Scientific Article" if structure.is_standard_format else "Full Document"
            default_part = Part(id="part-0", number="1", title=title, start_page=1, chapters=leading_chapters)
            structure.parts.insert(0, default_part)

        logger.info(
            "structure_detected parts=%s chapters=%s imryd_sections=%s standard_format=%s",
            len(structure.parts),
            len(structure.chapters),
            found,
            structure.is_standard_format,
        )
        return structure
