"""Result types for the page classifier."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "ClassificationResult",
    "ClassifierThresholds",
    "ContentCheck",
    "ImportantSection",
    "PageClassification",
    "ReferenceDetection",
    "ReferenceSectionStart",
]


class PageClassification(str, Enum):
    PURE_REFERENCES = "PURE_REFERENCES"
    MIXED_CONTENT = "MIXED_CONTENT"
    SUBSTANTIVE_CONTENT = "SUBSTANTIVE_CONTENT"


@dataclass
class ClassifierThresholds:
    """Empirically chosen cut-offs; kept configurable rather than hard-coded."""

    pure_reference_confidence: float = 0.5
    mixed_min_chars: int = 100
    pre_reference_min_chars: int = 150
    pre_reference_fallback_min_chars: int = 200
    substantive_min_chars: int = 100
    substantive_long_chars: int = 500
    min_content_indicators: int = 2
    # Reference signal minimums
    min_doi_count: int = 2
    min_pmid_count: int = 2
    min_numbered_entries: int = 3
    min_numbered_entry_ratio: float = 0.2
    min_journal_citations: int = 2
    min_et_al_count: int = 2
    min_year_semicolons: int = 3
    convergent_signal_count: int = 3
    convergent_bonus: float = 0.15
    header_weight: float = 0.3
    header_boost: float = 1.3


@dataclass(frozen=True, slots=True)
class ImportantSection:
    name: str
    line_index: int
    char_offset: int


@dataclass(frozen=True, slots=True)
class ReferenceSectionStart:
    header_text: str
    line_index: int
    char_offset: int


@dataclass(frozen=True, slots=True)
class ContentCheck:
    has_content: bool
    reason: str


@dataclass
class ReferenceDetection:
    """Outcome of pure-reference scoring over a block of text."""

    is_reference_page: bool
    confidence: float
    reasons: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


@dataclass
class ClassificationResult:
    """Per-page classifier output.

    Invariants: ``PURE_REFERENCES`` carries an empty ``extractable_text``;
    every other classification carries a prefix of the trimmed page text
    that ends at or before ``reference_section_start`` when one was found.
    """

    page_number: int
    classification: PageClassification
    extractable_text: str
    confidence: float
    reasons: list[str] = field(default_factory=list)
    important_sections: list[ImportantSection] = field(default_factory=list)
    reference_section_start: ReferenceSectionStart | None = None
    ref_stats: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["classification"] = self.classification.value
        return data
