"""Per-page result values produced by the analysis loop."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from medsum.classifier import PageClassification

__all__ = ["AnalyzedPage", "MixedContentInfo", "PageOutcome", "TEXT_PREVIEW_CHARS"]

TEXT_PREVIEW_CHARS = 500


@dataclass
class MixedContentInfo:
    sections_found: list[str]
    original_length: int
    extracted_length: int
    dropped_chars: int
    note: str


@dataclass
class AnalyzedPage:
    """One entry of the result's ``pages`` list.

    ``analysis_text`` always holds something displayable: the model's
    analysis, or a placeholder explaining why the page was skipped or failed.
    ``text_preview`` is the start of the sanitized text the model saw, and
    stays empty for pages that never reached the model.
    ``classification`` is ``None`` for empty pages, which never reach the
    classifier.
    """

    page_number: int
    classification: PageClassification | None
    analysis_text: str | None
    skipped_reason: str | None = None
    error: str | None = None
    confidence: float = 0.0
    reasons: list[str] = field(default_factory=list)
    mixed_content: MixedContentInfo | None = None
    text_preview: str = ""
    cached: bool = False

    @property
    def is_reference_page(self) -> bool:
        return self.classification is PageClassification.PURE_REFERENCES

    @property
    def analyzed(self) -> bool:
        return self.skipped_reason is None and self.error is None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["classification"] = self.classification.value if self.classification else None
        data["is_reference_page"] = self.is_reference_page
        return data


@dataclass(frozen=True)
class PageOutcome:
    """Return value of :func:`process_one_page`; failures are data, not raises."""

    page: AnalyzedPage
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
