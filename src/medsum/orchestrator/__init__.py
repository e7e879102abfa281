"""Streaming document-processing orchestrator."""

from .events import (
    CompleteEvent,
    ErrorEvent,
    EventChannel,
    ListEventChannel,
    LogEvent,
    ProgressEvent,
    QueueEventChannel,
)
from .orchestrator import Orchestrator
from .pages import process_one_page
from .session import Session, Stage, UploadArtifact
from .types import AnalyzedPage, PageOutcome

__all__ = [
    "AnalyzedPage",
    "CompleteEvent",
    "ErrorEvent",
    "EventChannel",
    "ListEventChannel",
    "LogEvent",
    "Orchestrator",
    "PageOutcome",
    "ProgressEvent",
    "QueueEventChannel",
    "Session",
    "Stage",
    "UploadArtifact",
    "process_one_page",
]
