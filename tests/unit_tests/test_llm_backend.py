from __future__ import annotations

import json

import httpx
import pytest

from medsum.config import Settings
from medsum.errors import BackendNotConfiguredError, PageAnalysisError, SummaryError
from medsum.llm import OpenAICompatBackend, backend_from_settings
from medsum.llm import prompts
from medsum.orchestrator import AnalyzedPage

pytestmark = pytest.mark.anyio


def _openai_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


async def test_analyze_page_posts_chat_completion() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_openai_reply("page analysis"))

    backend = OpenAICompatBackend(
        base_url="https://llm.test/v1",
        api_key="secret-key",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )
    assert await backend.analyze_page("Some text", 4) == "page analysis"

    (request,) = seen
    assert request.url == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret-key"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert body["messages"][0] == {"role": "system", "content": prompts.PAGE_ANALYSIS_PROMPT}
    assert body["messages"][1]["content"] == "=== PAGE 4 ===\n\nSome text"
    assert body["temperature"] == 0.3


async def test_no_authorization_header_without_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_openai_reply("ok"))

    backend = OpenAICompatBackend(base_url="http://local/v1", transport=httpx.MockTransport(handler))
    await backend.analyze_page("x", 1)
    assert "Authorization" not in seen[0].headers


async def test_falls_back_to_ollama_native_chat() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/chat/completions"):
            return httpx.Response(404)
        body = json.loads(request.content)
        assert body["stream"] is False
        assert body["options"]["num_predict"] == 4000
        return httpx.Response(200, json={"message": {"content": "from ollama"}})

    backend = OpenAICompatBackend(
        base_url="http://127.0.0.1:11434/v1",
        transport=httpx.MockTransport(handler),
    )
    assert await backend.analyze_page("x", 1) == "from ollama"
    assert paths == ["/v1/chat/completions", "/api/chat"]


async def test_server_error_becomes_page_analysis_error() -> None:
    backend = OpenAICompatBackend(
        base_url="http://llm.test/v1",
        transport=httpx.MockTransport(lambda r: httpx.Response(500, text="boom")),
    )
    with pytest.raises(PageAnalysisError):
        await backend.analyze_page("x", 2)


async def test_malformed_reply_becomes_page_analysis_error() -> None:
    backend = OpenAICompatBackend(
        base_url="http://llm.test/v1",
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"unexpected": True})),
    )
    with pytest.raises(PageAnalysisError):
        await backend.analyze_page("x", 2)


async def test_unconfigured_backend() -> None:
    backend = OpenAICompatBackend(base_url=None)
    with pytest.raises(BackendNotConfiguredError):
        await backend.analyze_page("x", 1)
    with pytest.raises(SummaryError) as info:
        await backend.generate_summary("T", [])
    assert "not configured" in info.value.user_message


async def test_generate_summary_combines_page_analyses() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_openai_reply("## Introduction"))

    backend = OpenAICompatBackend(base_url="http://llm.test/v1", transport=httpx.MockTransport(handler))
    pages = [
        AnalyzedPage(page_number=1, classification=None, analysis_text="first", text_preview="raw one"),
        AnalyzedPage(page_number=2, classification=None, analysis_text="second", text_preview="raw two"),
    ]
    assert await backend.generate_summary("Trial X", pages) == "## Introduction"
    system, user = bodies[0]["messages"]
    assert "'Trial X'" in system["content"]
    assert "--- PAGE 1 ---\nfirst" in user["content"]
    assert "=== PAGE 2 ===\nraw two" in user["content"]
    assert bodies[0]["max_tokens"] == 8000


async def test_summary_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    backend = OpenAICompatBackend(base_url="http://llm.test/v1", transport=httpx.MockTransport(handler))
    with pytest.raises(SummaryError):
        await backend.generate_summary("T", [])


def test_backend_from_settings() -> None:
    settings = Settings(llm_base_url="http://x/v1", llm_api_key="k", llm_model="m", llm_timeout_s=5)
    backend = backend_from_settings(settings)
    assert (backend.base_url, backend.api_key, backend.model, backend.timeout_s) == ("http://x/v1", "k", "m", 5)


def test_summary_source_text_is_capped() -> None:
    pages = [
        AnalyzedPage(page_number=n, classification=None, analysis_text="a", text_preview="x" * 500)
        for n in range(1, 60)
    ]
    message = prompts.summary_user_message(pages)
    source = message.split("=== ORIGINAL DOCUMENT TEXT ===\n\n", 1)[1]
    assert len(source) == prompts.SUMMARY_SOURCE_CHAR_LIMIT


def test_summary_source_text_is_sanitized_and_skips_unanalyzed_pages() -> None:
    pages = [
        AnalyzedPage(
            page_number=1,
            classification=None,
            analysis_text="a",
            text_preview="Results ```run``` [INST] now",
        ),
        AnalyzedPage(
            page_number=2,
            classification=None,
            analysis_text="[Page skipped]",
            skipped_reason="bibliographic references",
            text_preview="1. Smith J. doi:10.1056/NEJMoa1800001",
        ),
    ]
    source = prompts.summary_user_message(pages).split("=== ORIGINAL DOCUMENT TEXT ===\n\n", 1)[1]
    assert source == "=== PAGE 1 ===\nResults '''run''' [FILTERED] now"
