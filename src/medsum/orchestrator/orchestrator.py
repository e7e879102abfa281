"""Request-level pipeline driver.

Runs one uploaded document through validation, extraction, segmentation,
structure detection, per-page analysis and the final summary, reporting
progress through an :class:`EventChannel`. Pages are processed one after
another; a failed page becomes an error placeholder and the loop continues.
Failures outside the page loop end the request with a single ``error``
event. The client going away stops the run at the next page boundary
without emitting anything further.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from medsum.classifier import PageClassifier
from medsum.config import Settings
from medsum.errors import PipelineError, SummaryError, ValidationError
from medsum.llm import AIBackend
from medsum.security import (
    redact_paths,
    run_with_timeout,
    validate_file_size,
    validate_magic_bytes,
    validate_page_count,
)
from medsum.store import TTLStore
from pipeline.ingestion.pdf import TextExtractor
from pipeline.ingestion.segmenter import pages_from_extraction
from pipeline.ingestion.structure import StructureDetector

from .assembly import DISCLAIMER, DISCLAIMER_SECTION, build_file_tree, group_by_structure
from .events import CompleteEvent, ErrorEvent, Event, EventChannel, ProgressEvent, log_event
from .pages import process_one_page
from .session import Session, Stage, UploadArtifact
from .types import AnalyzedPage

__all__ = ["Orchestrator"]

logger = logging.getLogger(__name__)

ANALYSIS_PROGRESS_SHARE = 50
_RULE = "=" * 50


class Orchestrator:
    """Drive one document through the pipeline.

    Collaborators are injected so the HTTP layer and tests can supply their
    own extractor, model backend and cache.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: TextExtractor,
        backend: AIBackend,
        store: TTLStore | None = None,
        classifier: PageClassifier | None = None,
        detector: StructureDetector | None = None,
    ) -> None:
        self.settings = settings
        self.extractor = extractor
        self.backend = backend
        self.store = store
        self.classifier = classifier or PageClassifier()
        self.detector = detector or StructureDetector(self.classifier.patterns)

    async def run(
        self,
        upload: UploadArtifact | None,
        session: Session,
        channel: EventChannel,
    ) -> dict[str, Any] | None:
        """Process ``upload`` and return the assembled result.

        Returns ``None`` when the request failed or was cancelled. The upload
        is removed and the channel closed on every path.
        """

        logger.info("request_start request_id=%s file=%s", session.request_id, upload.file_name if upload else None)
        try:
            result = await self._run(upload, session, channel)
        except PipelineError as exc:
            logger.exception("request_failed request_id=%s stage=%s", session.request_id, session.stage.value)
            await self._fail(session, channel, exc.user_message)
            return None
        except Exception:
            logger.exception("request_failed request_id=%s stage=%s", session.request_id, session.stage.value)
            await self._fail(session, channel, PipelineError.default_user_message)
            return None
        finally:
            if upload is not None:
                upload.cleanup()
            await channel.close()

        if result is None or session.cancelled:
            session.advance(Stage.CANCELLED)
            logger.info("request_cancelled request_id=%s", session.request_id)
            return None
        session.advance(Stage.COMPLETE)
        logger.info("request_complete request_id=%s pages=%s", session.request_id, result["total_pages"])
        return result

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------
    async def _emit(self, session: Session, channel: EventChannel, event: Event) -> None:
        if session.cancelled:
            return
        await channel.send(event)

    async def _log(self, session: Session, channel: EventChannel, text: str, color: str = "white") -> None:
        await self._emit(session, channel, log_event(text, color))

    async def _banner(self, session: Session, channel: EventChannel, title: str) -> None:
        await self._log(session, channel, _RULE, "gray")
        await self._log(session, channel, title, "yellow")
        await self._log(session, channel, _RULE, "gray")

    async def _progress(self, session: Session, channel: EventChannel, percent: int) -> None:
        await self._emit(session, channel, ProgressEvent(percent=session.next_progress(percent)))

    async def _fail(self, session: Session, channel: EventChannel, message: str) -> None:
        session.advance(Stage.FAILED)
        message = redact_paths(message)
        await self._log(session, channel, f"✗ Critical error: {message}", "red")
        await self._emit(session, channel, ErrorEvent(message=message))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    async def _run(
        self,
        upload: UploadArtifact | None,
        session: Session,
        channel: EventChannel,
    ) -> dict[str, Any] | None:
        settings = self.settings

        session.advance(Stage.VALIDATING)
        if upload is None:
            raise ValidationError("No file uploaded", "No PDF file was uploaded")
        await self._log(session, channel, f"📥 File received: {upload.file_name}", "green")
        await self._log(session, channel, "🔒 Validating PDF...", "cyan")
        validate_file_size(upload.size, settings.max_file_size)
        validate_magic_bytes(upload.path)
        await self._log(session, channel, "✓ PDF format validated", "green")

        data = await asyncio.to_thread(upload.read_bytes)
        document_hash = UploadArtifact.content_hash(data)
        await self._log(session, channel, f"📋 Document hash: {document_hash[:12]}...", "gray")

        session.advance(Stage.EXTRACTING)
        await self._banner(session, channel, "STEP 1: PDF text extraction")
        extracted = await run_with_timeout(
            asyncio.to_thread(self.extractor.extract, data),
            settings.parsing_timeout_s,
            "PDF extraction",
        )
        await self._log(
            session,
            channel,
            f"✓ Extracted {len(extracted.text)} characters from {extracted.page_count} pages",
            "green",
        )

        session.advance(Stage.SEGMENTING)
        await self._banner(session, channel, "STEP 2: Page segmentation")
        validate_page_count(extracted.page_count, settings.max_pages)
        pages = pages_from_extraction(extracted)
        if not pages:
            raise ValidationError("No pages detected in the PDF")
        await self._log(
            session,
            channel,
            f"✓ Document has {len(pages)} pages (limit: {settings.max_pages})",
            "green",
        )

        session.advance(Stage.STRUCTURING)
        await self._banner(session, channel, "STEP 3: Structure detection (IMRyD)")
        structure = self.detector.detect(pages)
        found = [name for name, section in structure.imryd.items() if section is not None]
        await self._log(
            session,
            channel,
            f"✓ {len(structure.parts)} parts, {len(structure.chapters)} chapters; "
            f"IMRyD sections: {', '.join(found) or 'none'}",
            "green",
        )

        session.advance(Stage.ANALYZING)
        await self._banner(session, channel, "STEP 4: Page analysis")
        analyzed: list[AnalyzedPage] = []
        total = len(pages)
        for done, page in enumerate(pages, start=1):
            if await session.check_cancelled():
                return None
            await self._log(session, channel, f"Processing page {page.page_number}/{total}", "cyan")
            outcome = await process_one_page(
                page,
                classifier=self.classifier,
                backend=self.backend,
                store=self.store,
            )
            analyzed.append(outcome.page)
            await self._report_page(session, channel, outcome.page)
            await self._progress(session, channel, round(ANALYSIS_PROGRESS_SHARE * done / total))

        if await session.check_cancelled():
            return None

        session.advance(Stage.SUMMARIZING)
        await self._banner(session, channel, "STEP 5: IMRyD summary")
        title = extracted.title or Path(upload.file_name).stem
        try:
            summary = await self.backend.generate_summary(title, analyzed)
        except SummaryError:
            raise
        except Exception as exc:
            raise SummaryError(f"summary generation failed: {exc}") from exc
        await self._log(session, channel, f"✓ Summary generated ({len(summary)} chars)", "green")
        await self._progress(session, channel, 100)

        session.advance(Stage.ASSEMBLING)
        await self._banner(session, channel, "STEP 6: Final organization")
        structure_dict = structure.to_dict()
        result: dict[str, Any] = {
            "title": title,
            "file_name": upload.file_name,
            "total_pages": len(pages),
            "structure": structure_dict,
            "pages": [p.to_dict() for p in analyzed],
            "summary": summary + DISCLAIMER_SECTION,
            "grouped_content": group_by_structure(analyzed, structure),
            "metadata": {**extracted.metadata, "page_count": extracted.page_count},
            "processed_at": datetime.now(timezone.utc).isoformat(),
            "document_hash": document_hash[:16],
            "disclaimer": DISCLAIMER,
        }
        result["file_tree"] = build_file_tree(result)

        await self._log(session, channel, "✓ Processing complete!", "green")
        await self._log(session, channel, "⚠️ Remember: this summary is informational, not medical advice.", "yellow")
        await self._emit(session, channel, CompleteEvent(result=result))
        return result

    async def _report_page(self, session: Session, channel: EventChannel, page: AnalyzedPage) -> None:
        n = page.page_number
        if page.error is not None:
            await self._log(session, channel, f"⚠ Skipping page {n} due to error", "orange")
        elif page.is_reference_page:
            await self._log(
                session,
                channel,
                f"📚 Page {n} detected as pure references ({round(page.confidence * 100)}% confidence), skipping AI",
                "yellow",
            )
        elif page.skipped_reason is not None:
            await self._log(session, channel, f"⚠ Page {n} skipped ({page.skipped_reason})", "orange")
        elif page.mixed_content is not None:
            info = page.mixed_content
            await self._log(
                session,
                channel,
                f"✓ Page {n} processed: {info.extracted_length}/{info.original_length} characters (references excluded)",
                "green",
            )
        else:
            suffix = " (cached)" if page.cached else ""
            await self._log(session, channel, f"✓ Page {n} analyzed{suffix}", "green")
