"""Document processing endpoint streaming Server-Sent Events.

``POST /process`` (also served at ``/api/process``) accepts a multipart PDF
upload and answers with ``text/event-stream``. The pipeline runs in a
background task that writes into a queue; the response drains it. When the
client disconnects the generator is closed, which marks the session
cancelled so the task stops at the next page boundary.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse

from api.dependencies import get_orchestrator, get_settings
from api.logging_setup import log_call
from medsum.config import Settings
from medsum.orchestrator import Orchestrator, QueueEventChannel, Session, UploadArtifact

router = APIRouter()

logger = logging.getLogger(__name__)

# Strong references keep running pipelines from being garbage collected.
_background_tasks: set[asyncio.Task] = set()

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@log_call()
async def _save_upload(file: UploadFile, upload_dir: Path) -> UploadArtifact:
    """Store the upload under a random name; the client's name is display-only."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    dest = upload_dir / f"{uuid.uuid4()}.pdf"
    data = await file.read()
    await asyncio.to_thread(dest.write_bytes, data)
    return UploadArtifact(
        path=dest,
        file_name=Path(file.filename or "document.pdf").name,
        size=len(data),
    )


@router.post("/process")
@router.post("/api/process")
async def process_document(  # noqa: B008 - FastAPI requires param marker calls in defaults
    request: Request,
    file: UploadFile | None = File(None),  # noqa: B008
    pdf: UploadFile | None = File(None),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
    orchestrator: Orchestrator = Depends(get_orchestrator),  # noqa: B008
) -> StreamingResponse:
    """Run the summarization pipeline and stream its events."""

    source = file or pdf
    if source is not None and source.content_type not in (None, "application/pdf"):
        logger.info("upload_content_type type=%s", source.content_type)
    upload = await _save_upload(source, settings.upload_dir) if source is not None else None

    session = Session(disconnect_probe=request.is_disconnected)
    channel = QueueEventChannel()
    task = asyncio.create_task(orchestrator.run(upload, session, channel))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    async def event_stream():
        try:
            async for chunk in channel.stream():
                yield chunk
        finally:
            if not task.done():
                session.cancel()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)
