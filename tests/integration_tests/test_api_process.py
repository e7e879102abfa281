"""HTTP surface: SSE framing, upload field aliases, health endpoints."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from api.app import app
from api.dependencies import get_orchestrator, get_settings
from medsum.config import Settings
from medsum.orchestrator import Orchestrator
from tests.fakes import METHODS_PAGE, REFERENCE_PAGE, FakeBackend, FakeExtractor

pytestmark = pytest.mark.anyio

PDF_BYTES = b"%PDF-1.4\n% api test\n%%EOF"


def _events(body: str) -> list[dict]:
    return [json.loads(chunk[len("data: ") :]) for chunk in body.split("\n\n") if chunk.startswith("data: ")]


@pytest.fixture
def api_settings(tmp_path: Path) -> Settings:
    return Settings(upload_dir=tmp_path / "uploads", parsing_timeout_s=5.0)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def client(api_settings: Settings, backend: FakeBackend):
    extractor = FakeExtractor([METHODS_PAGE, REFERENCE_PAGE], metadata={"title": "API Trial"})
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_orchestrator] = lambda: Orchestrator(api_settings, extractor, backend)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.mark.parametrize("path", ["/process", "/api/process"])
async def test_process_streams_events(client: httpx.AsyncClient, api_settings: Settings, path: str) -> None:
    resp = await client.post(path, files={"file": ("trial.pdf", PDF_BYTES, "application/pdf")})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache, no-transform"
    assert resp.text.startswith(":\n\n")

    events = _events(resp.text)
    assert events[-1]["type"] == "complete"
    result = events[-1]["result"]
    assert result["title"] == "API Trial"
    assert result["file_name"] == "trial.pdf"
    assert [p["is_reference_page"] for p in result["pages"]] == [False, True]
    assert [e["percent"] for e in events if e["type"] == "progress"] == [25, 50, 100]
    assert list(api_settings.upload_dir.iterdir()) == []


async def test_pdf_field_alias(client: httpx.AsyncClient, backend: FakeBackend) -> None:
    resp = await client.post("/process", files={"pdf": ("alias.pdf", PDF_BYTES, "application/pdf")})
    assert _events(resp.text)[-1]["type"] == "complete"
    assert backend.summaries == [("API Trial", 2)]


async def test_missing_upload_streams_error(client: httpx.AsyncClient) -> None:
    resp = await client.post("/process", data={"note": "no file"})
    assert resp.status_code == 200
    events = _events(resp.text)
    assert events[-1] == {"type": "error", "message": "No PDF file was uploaded"}
    assert [e["type"] for e in events].count("error") == 1


async def test_non_pdf_upload_streams_error(client: httpx.AsyncClient, api_settings: Settings) -> None:
    resp = await client.post("/process", files={"file": ("notes.pdf", b"hello world", "application/pdf")})
    events = _events(resp.text)
    assert events[-1]["type"] == "error"
    assert "Invalid PDF" in events[-1]["message"]
    assert list(api_settings.upload_dir.iterdir()) == []


async def test_health(client: httpx.AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": "1.0.0", "llm_configured": False}


async def test_info_reports_limits(client: httpx.AsyncClient) -> None:
    body = (await client.get("/info")).json()
    assert body["limits"] == {"max_pages": 100, "max_file_size_mb": 50, "parsing_timeout_s": 5.0}
    assert "pymupdf" in body["extraction_backends"]
    assert "reference_page_detection" in body["features"]
