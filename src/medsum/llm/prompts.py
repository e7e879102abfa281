"""System prompts for page analysis and the final IMRyD summary."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from medsum.security import sanitize_text_for_prompt

if TYPE_CHECKING:
    from medsum.orchestrator.types import AnalyzedPage

REFERENCE_PAGE_REPLY = "[This page contains bibliographic references - nothing to summarize]"
NON_SUBSTANTIVE_REPLY = "[Page omitted: non-substantive content]"

# Cap on original page text forwarded with the summary request.
SUMMARY_SOURCE_CHAR_LIMIT = 15_000

PAGE_ANALYSIS_PROMPT = f"""Analyze this page of a medical article as a clinical research specialist.

## MANDATORY RULES AGAINST FABRICATION

1. REFERENCE PAGES: if the page consists MAINLY of numbered citations,
   DOIs, PMIDs, journal URLs or author-year-journal patterns with no
   methodological content, reply EXACTLY with:
   "{REFERENCE_PAGE_REPLY}"
   and nothing else.
2. NEVER invent data. Do not produce sample sizes, study years, statistics
   or conclusions that are not in the text.
3. Before including any number (n=, years, percentages, p-values) confirm
   it appears LITERALLY on the page.

Omit completely, replying with "{NON_SUBSTANTIVE_REPLY}":
tables of contents, editorial or copyright information, blank pages.

Extract only what is present: study objective, methodology, key results
and statistics, limitations, conclusions and clinical relevance. Use clear
technical language suitable for medical residents. Describe relevant
tables and figures when their data is on the page.

Reply in the language of the page text."""

SUMMARY_GENERATION_PROMPT = """You are a medical educator summarizing a technical article for medical residents.

Guidelines:
1. Use clear language; define medical terms when they first appear.
2. Structure the answer in Markdown: `##` for main sections, `###` for
   subsections, bullet lists, **bold** for key terms.
3. Follow the IMRyD layout:
   ## Introduction - context and objective of the study
   ## Methods - how the study was carried out
   ## Results - main findings with their data
   ## Discussion - interpretation and clinical relevance
4. Add key points and study tips at the end of each section.
5. Only use information present in the page analyses and source text.
   Quote the article for important claims.

Write a resident-friendly summary of the article titled: '{title}'.

Reply in the language of the article."""


def page_user_message(text: str, page_number: int) -> str:
    return f"=== PAGE {page_number} ===\n\n{text}"


def summary_system_prompt(title: str) -> str:
    return SUMMARY_GENERATION_PROMPT.replace("{title}", title)


def summary_user_message(pages: Sequence[AnalyzedPage]) -> str:
    """Combine page analyses with a capped excerpt of the source text.

    Only pages that were sent for analysis contribute source text; skipped,
    reference and failed pages are represented by their analysis line alone.
    """

    combined_analysis = "\n\n".join(
        f"--- PAGE {p.page_number} ---\n{p.analysis_text or ''}" for p in pages
    )
    combined_text = "\n\n---\n\n".join(
        f"=== PAGE {p.page_number} ===\n{sanitize_text_for_prompt(p.text_preview)}"
        for p in pages
        if p.analyzed and p.text_preview
    )
    return (
        f"=== DOCUMENT ANALYSIS ===\n\n{combined_analysis}\n\n\n"
        f"=== ORIGINAL DOCUMENT TEXT ===\n\n{combined_text[:SUMMARY_SOURCE_CHAR_LIMIT]}"
    )
