"""Streaming event models and the outbound event channel.

Wire format (``text/event-stream``): the stream opens with a comment line
``:\\n\\n`` and every event is ``data: <json>\\n\\n``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any, Literal, Protocol, Union

from pydantic import BaseModel, Field

from medsum.security import redact_paths

__all__ = [
    "CompleteEvent",
    "ErrorEvent",
    "Event",
    "EventChannel",
    "ListEventChannel",
    "LogEvent",
    "ProgressEvent",
    "QueueEventChannel",
    "SSE_PREAMBLE",
    "encode_sse",
    "log_event",
]

SSE_PREAMBLE = ":\n\n"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LogEvent(BaseModel):
    type: Literal["log"] = "log"
    text: str
    color: str = "white"
    timestamp: str = Field(default_factory=_now_iso)


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    percent: int = Field(ge=0, le=100)


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    result: dict[str, Any]


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


Event = Union[LogEvent, ProgressEvent, CompleteEvent, ErrorEvent]


def log_event(text: str, color: str = "white") -> LogEvent:
    """Build a log event with filesystem paths redacted."""
    return LogEvent(text=redact_paths(text), color=color)


def encode_sse(event: Event) -> str:
    return f"data: {event.model_dump_json()}\n\n"


class EventChannel(Protocol):
    async def send(self, event: Event) -> None: ...

    async def close(self) -> None: ...


class QueueEventChannel:
    """Queue-backed channel drained by the HTTP streaming response."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Event | None] = asyncio.Queue()
        self._closed = False

    async def send(self, event: Event) -> None:
        if self._closed:
            return
        await self._queue.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    async def stream(self) -> AsyncIterator[str]:
        """Yield the preamble then encoded events until the channel closes."""

        yield SSE_PREAMBLE
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield encode_sse(event)


class ListEventChannel:
    """Collects events in memory."""

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.closed = False

    async def send(self, event: Event) -> None:
        self.events.append(event)

    async def close(self) -> None:
        self.closed = True

    def of_type(self, kind: str) -> list[Event]:
        return [e for e in self.events if e.type == kind]
