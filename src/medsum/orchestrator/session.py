"""Per-request session state and the temporary upload artifact."""

from __future__ import annotations

import hashlib
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = ["Session", "Stage", "UploadArtifact"]

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    SEGMENTING = "segmenting"
    STRUCTURING = "structuring"
    ANALYZING = "analyzing"
    SUMMARIZING = "summarizing"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STAGES = frozenset({Stage.COMPLETE, Stage.FAILED, Stage.CANCELLED})


@dataclass
class Session:
    """Mutable state of one processing request.

    Attributes:
        request_id: Correlates log lines for the request.
        cancelled: Set once the client is gone; never cleared.
        emitted_progress: Highest progress percentage sent so far.
        stage: Current pipeline stage.
        disconnect_probe: Optional coroutine reporting client disconnect
            (e.g. Starlette's ``Request.is_disconnected``).
    """

    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    cancelled: bool = False
    emitted_progress: int = 0
    stage: Stage = Stage.RECEIVED
    disconnect_probe: Callable[[], Awaitable[bool]] | None = None

    def cancel(self) -> None:
        if not self.cancelled:
            logger.info("session_cancelled request_id=%s stage=%s", self.request_id, self.stage.value)
        self.cancelled = True

    async def check_cancelled(self) -> bool:
        """Return True when the request should stop, polling the probe once."""

        if not self.cancelled and self.disconnect_probe is not None:
            if await self.disconnect_probe():
                self.cancel()
        return self.cancelled

    def advance(self, stage: Stage) -> None:
        if self.stage in TERMINAL_STAGES:
            return
        logger.debug("session_stage request_id=%s %s->%s", self.request_id, self.stage.value, stage.value)
        self.stage = stage

    def next_progress(self, percent: int) -> int:
        """Clamp ``percent`` so emitted progress never decreases."""

        value = max(self.emitted_progress, min(100, max(0, int(percent))))
        self.emitted_progress = value
        return value


@dataclass
class UploadArtifact:
    """The uploaded file on disk; owned by the orchestrator once handed over."""

    path: Path
    file_name: str
    size: int
    _removed: bool = field(default=False, repr=False)

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    @staticmethod
    def content_hash(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    @property
    def removed(self) -> bool:
        return self._removed

    def cleanup(self) -> bool:
        """Delete the file; only the first call does anything.

        Returns:
            bool: True if this call performed the cleanup.
        """

        if self._removed:
            return False
        self._removed = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("upload_cleanup_failed name=%s err=%s", self.path.name, exc)
        else:
            logger.debug("upload_cleanup name=%s", self.path.name)
        return True
