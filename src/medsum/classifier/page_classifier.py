"""Tripartite page classifier.

Decides whether a page is pure bibliography (never sent to the model),
mixed content (only the part before the references header is sent) or
substantive content (sent whole). The rules are heuristic and evaluated in a
fixed precedence so the same text always yields the same answer:

1. important-section header + references header, long prefix -> MIXED
2. important-section header, no references header            -> SUBSTANTIVE
3. references header with a substantive, non-bibliographic prefix -> MIXED
4. weighted reference signals >= cut-off                      -> PURE_REFERENCES
5. otherwise                                                  -> SUBSTANTIVE
"""

from __future__ import annotations

import logging

from medsum.patterns import PatternPack, default_pattern_pack

from .types import (
    ClassificationResult,
    ClassifierThresholds,
    ContentCheck,
    ImportantSection,
    PageClassification,
    ReferenceDetection,
    ReferenceSectionStart,
)

__all__ = ["PageClassifier"]

logger = logging.getLogger(__name__)


def _line_offsets(text: str) -> list[tuple[int, str]]:
    """Return ``(char_offset, line)`` for every line of ``text``."""
    out: list[tuple[int, str]] = []
    offset = 0
    for line in text.split("\n"):
        out.append((offset, line))
        offset += len(line) + 1
    return out


class PageClassifier:
    """Stateless, deterministic classifier configured by a pattern pack."""

    def __init__(
        self,
        patterns: PatternPack | None = None,
        thresholds: ClassifierThresholds | None = None,
    ) -> None:
        self.patterns = patterns or default_pattern_pack()
        self.thresholds = thresholds or ClassifierThresholds()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------
    def find_important_sections(self, text: str) -> list[ImportantSection]:
        sections: list[ImportantSection] = []
        for i, (offset, line) in enumerate(_line_offsets(text)):
            stripped = line.strip()
            if not stripped:
                continue
            if self.patterns.match_line(self.patterns.important_sections, stripped):
                sections.append(ImportantSection(name=stripped, line_index=i, char_offset=offset))
        return sections

    def find_reference_section_start(self, text: str) -> ReferenceSectionStart | None:
        for i, (offset, line) in enumerate(_line_offsets(text)):
            stripped = line.strip()
            if not stripped:
                continue
            if self.patterns.match_line(self.patterns.reference_headers, stripped):
                return ReferenceSectionStart(header_text=stripped, line_index=i, char_offset=offset)
        return None

    @staticmethod
    def content_before(text: str, start: ReferenceSectionStart | None) -> str:
        """Text strictly before the references header, trailing space removed."""
        if start is None:
            return text
        return text[: start.char_offset].rstrip()

    def detect_reference_page(self, text: str) -> ReferenceDetection:
        """Score ``text`` against the bibliographic signal families."""

        th = self.thresholds
        sig = self.patterns.signals
        text = (text or "").strip()
        if not text:
            return ReferenceDetection(is_reference_page=False, confidence=0.0)

        reasons: list[str] = []
        confidence = 0.0

        has_header = self.find_reference_section_start(text) is not None
        if has_header:
            reasons.append('Contains "References" or similar header')
            confidence += th.header_weight

        doi = len(sig.doi.findall(text))
        if doi >= th.min_doi_count:
            reasons.append(f"Contains {doi} DOI patterns")
            confidence += min(0.25, doi * 0.05)

        pmid = len(sig.pmid.findall(text))
        if pmid >= th.min_pmid_count:
            reasons.append(f"Contains {pmid} PMID patterns")
            confidence += min(0.25, pmid * 0.05)

        numbered = len(sig.numbered_entry.findall(text))
        non_blank = [ln for ln in text.split("\n") if ln.strip()]
        ratio = numbered / len(non_blank) if non_blank else 0.0
        if numbered >= th.min_numbered_entries:
            reasons.append(f"Contains {numbered} numbered entries")
            confidence += min(0.25, numbered * 0.04)
        if ratio >= th.min_numbered_entry_ratio:
            reasons.append(f"{round(ratio * 100)}% numbered reference entries")
            confidence += ratio * 0.25

        journal = len(sig.journal_citation.findall(text))
        if journal >= th.min_journal_citations:
            reasons.append(f"Contains {journal} journal citation patterns")
            confidence += min(0.25, journal * 0.05)

        year_semi = len(sig.year_semicolon.findall(text))
        if year_semi >= th.min_year_semicolons:
            reasons.append(f"Contains {year_semi} year-citation patterns")
            confidence += min(0.25, year_semi * 0.04)

        et_al = len(sig.et_al.findall(text))
        if et_al >= th.min_et_al_count:
            reasons.append(f'Contains {et_al} "et al." occurrences')
            confidence += min(0.2, et_al * 0.03)

        pubmed = len(sig.pubmed_url.findall(text))
        if pubmed >= 1:
            reasons.append(f"Contains {pubmed} PubMed URLs")
            confidence += min(0.2, pubmed * 0.05)

        if has_header and confidence > 0.2:
            confidence = min(1.0, confidence * th.header_boost)

        signal_count = sum(
            (
                numbered >= th.min_numbered_entries,
                journal >= th.min_journal_citations,
                et_al >= th.min_et_al_count,
                doi >= th.min_doi_count,
                pmid >= th.min_pmid_count,
                year_semi >= th.min_year_semicolons,
            )
        )
        if signal_count >= th.convergent_signal_count:
            reasons.append(f"Multiple reference signals ({signal_count}/6)")
            confidence += th.convergent_bonus

        confidence = round(max(0.0, min(1.0, confidence)), 2)
        return ReferenceDetection(
            is_reference_page=confidence >= th.pure_reference_confidence,
            confidence=confidence,
            reasons=reasons,
            stats={
                "doi_count": doi,
                "pmid_count": pmid,
                "numbered_entries": numbered,
                "journal_citations": journal,
                "et_al_count": et_al,
                "pubmed_urls": pubmed,
                "year_semicolons": year_semi,
                "signal_count": signal_count,
            },
        )

    def has_substantive_content(self, text: str) -> ContentCheck:
        """Second-opinion gate used before any page reaches the model."""

        th = self.thresholds
        trimmed = (text or "").strip()
        if not trimmed:
            return ContentCheck(False, "No text provided")
        if len(trimmed) < th.substantive_min_chars:
            return ContentCheck(False, f"Text too short (< {th.substantive_min_chars} chars)")

        matched = [p.name for p in self.patterns.content_indicators if p.regex.search(trimmed)]
        if len(matched) >= th.min_content_indicators:
            return ContentCheck(True, f"Found {len(matched)} content indicators")

        if self.detect_reference_page(trimmed).is_reference_page:
            return ContentCheck(False, "Page detected as references")
        if len(trimmed) > th.substantive_long_chars:
            return ContentCheck(True, "Sufficient text length")
        return ContentCheck(False, "Insufficient content indicators")

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    def classify(self, page_text: str, page_number: int) -> ClassificationResult:
        th = self.thresholds
        text = (page_text or "").strip()
        if not text:
            return ClassificationResult(
                page_number=page_number,
                classification=PageClassification.SUBSTANTIVE_CONTENT,
                extractable_text="",
                confidence=0.0,
                reasons=["No text provided"],
            )

        important = self.find_important_sections(text)
        ref_start = self.find_reference_section_start(text)
        ref_metrics = self.detect_reference_page(text)
        before_refs = self.content_before(text, ref_start)

        def result(
            classification: PageClassification,
            extractable: str,
            confidence: float,
            reasons: list[str],
        ) -> ClassificationResult:
            out = ClassificationResult(
                page_number=page_number,
                classification=classification,
                extractable_text=extractable,
                confidence=confidence,
                reasons=reasons,
                important_sections=important,
                reference_section_start=ref_start,
                ref_stats=ref_metrics.stats,
            )
            logger.debug(
                "page_classified page=%s classification=%s confidence=%.2f extractable=%s/%s",
                page_number,
                classification.value,
                confidence,
                len(extractable),
                len(text),
            )
            return out

        if important:
            names = ", ".join(s.name for s in important)
            reasons = [f"Found important sections: {names}"]
            if ref_start is None:
                return result(PageClassification.SUBSTANTIVE_CONTENT, text, 0.85, reasons)
            reasons.append(f"References section found at line {ref_start.line_index + 1}")
            reasons.append(f"Extracted {len(before_refs)} chars of content before references")
            if len(before_refs) < th.mixed_min_chars:
                reasons.append(f"Extracted content below {th.mixed_min_chars} chars")
            return result(PageClassification.MIXED_CONTENT, before_refs, 0.9, reasons)

        if ref_start is not None and len(before_refs) >= th.pre_reference_min_chars:
            content = self.has_substantive_content(before_refs)
            if content.has_content and not self.detect_reference_page(before_refs).is_reference_page:
                return result(
                    PageClassification.MIXED_CONTENT,
                    before_refs,
                    0.8,
                    [
                        "References header found with substantive content before it",
                        f"Pre-reference content: {len(before_refs)} chars",
                    ],
                )

        if ref_metrics.is_reference_page:
            if ref_start is not None and len(before_refs) >= th.pre_reference_fallback_min_chars:
                if self.has_substantive_content(before_refs).has_content:
                    return result(
                        PageClassification.MIXED_CONTENT,
                        before_refs,
                        0.75,
                        [
                            "Content found before References section",
                            f"Pre-reference content: {len(before_refs)} chars",
                        ],
                    )
            return result(
                PageClassification.PURE_REFERENCES,
                "",
                ref_metrics.confidence,
                list(ref_metrics.reasons),
            )

        reasons = ["Normal content page"]
        if ref_start is not None:
            reasons.append(f"Text after references header at line {ref_start.line_index + 1} excluded")
        return result(PageClassification.SUBSTANTIVE_CONTENT, before_refs, 0.8, reasons)
