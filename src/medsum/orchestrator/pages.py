"""Processing of a single page: classify, gate, sanitize, analyze."""

from __future__ import annotations

import hashlib
import logging

from medsum.classifier import ClassificationResult, PageClassification, PageClassifier
from medsum.classifier import messages
from medsum.errors import PipelineError
from medsum.llm import AIBackend
from medsum.security import sanitize_text_for_prompt
from medsum.store import TTLStore
from pipeline.ingestion.segmenter import Page, is_empty_page

from .types import TEXT_PREVIEW_CHARS, AnalyzedPage, MixedContentInfo, PageOutcome

__all__ = ["analysis_cache_key", "process_one_page"]

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "page-analysis:"


def analysis_cache_key(sanitized_text: str) -> str:
    return CACHE_KEY_PREFIX + hashlib.sha256(sanitized_text.encode("utf-8")).hexdigest()


async def _analyze(
    text: str,
    page_number: int,
    backend: AIBackend,
    store: TTLStore | None,
) -> tuple[str, str, bool]:
    """Return ``(analysis, sanitized_text, served_from_cache)`` for extracted text."""

    sanitized = sanitize_text_for_prompt(text)
    key = analysis_cache_key(sanitized)
    if store is not None:
        cached = store.get(key)
        if cached is not None:
            logger.debug("page_analysis_cache_hit page=%s", page_number)
            return cached, sanitized, True
    analysis = await backend.analyze_page(sanitized, page_number)
    if store is not None:
        store.set(key, analysis)
    return analysis, sanitized, False


def _skipped(page: Page, result: ClassificationResult | None, reason: str, text: str) -> AnalyzedPage:
    return AnalyzedPage(
        page_number=page.page_number,
        classification=result.classification if result else None,
        analysis_text=text,
        skipped_reason=reason,
        confidence=result.confidence if result else 0.0,
        reasons=list(result.reasons) if result else [],
    )


async def process_one_page(
    page: Page,
    *,
    classifier: PageClassifier,
    backend: AIBackend,
    store: TTLStore | None = None,
) -> PageOutcome:
    """Turn one page into an :class:`AnalyzedPage`.

    Never raises for ordinary failures: any exception from classification or
    the model call becomes an error placeholder in the returned outcome so the
    caller can keep going with the next page.
    """

    try:
        if is_empty_page(page.raw_text):
            return PageOutcome(_skipped(page, None, "no extractable text", messages.EMPTY_PAGE_ANALYSIS))

        text = page.raw_text.strip()
        result = classifier.classify(text, page.page_number)

        if result.classification is PageClassification.PURE_REFERENCES:
            return PageOutcome(
                _skipped(
                    page,
                    result,
                    "bibliographic references",
                    messages.reference_page_response(page.page_number, result),
                )
            )

        extracted = result.extractable_text
        if result.classification is PageClassification.MIXED_CONTENT:
            if len(extracted) < classifier.thresholds.mixed_min_chars:
                return PageOutcome(
                    _skipped(
                        page,
                        result,
                        "insufficient extracted content",
                        messages.low_content_response(len(extracted)),
                    )
                )
            analysis, sent, cached = await _analyze(extracted, page.page_number, backend, store)
            return PageOutcome(
                AnalyzedPage(
                    page_number=page.page_number,
                    classification=result.classification,
                    analysis_text=analysis,
                    confidence=result.confidence,
                    reasons=list(result.reasons),
                    mixed_content=MixedContentInfo(
                        sections_found=[s.name for s in result.important_sections],
                        original_length=len(text),
                        extracted_length=len(extracted),
                        dropped_chars=len(text) - len(extracted),
                        note=messages.mixed_content_note(page.page_number, result),
                    ),
                    text_preview=sent[:TEXT_PREVIEW_CHARS],
                    cached=cached,
                )
            )

        check = classifier.has_substantive_content(extracted)
        if not check.has_content:
            return PageOutcome(_skipped(page, result, check.reason, messages.skipped_response(check.reason)))

        analysis, sent, cached = await _analyze(extracted, page.page_number, backend, store)
        return PageOutcome(
            AnalyzedPage(
                page_number=page.page_number,
                classification=result.classification,
                analysis_text=analysis,
                confidence=result.confidence,
                reasons=list(result.reasons),
                text_preview=sent[:TEXT_PREVIEW_CHARS],
                cached=cached,
            )
        )
    except Exception as exc:
        message = exc.user_message if isinstance(exc, PipelineError) else type(exc).__name__
        logger.warning("page_failed page=%s err=%s", page.page_number, exc, exc_info=True)
        return PageOutcome(
            AnalyzedPage(
                page_number=page.page_number,
                classification=None,
                analysis_text=messages.error_response(message),
                error=message,
            ),
            error=exc,
        )
