"""Language-model backend contract and an OpenAI-compatible HTTP client.

The client talks to any ``/chat/completions`` endpoint (OpenRouter, OpenAI,
vLLM, LM Studio). When that route is missing (404/405) it falls back to
Ollama's native ``/api/chat`` so a bare local Ollama install also works.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from medsum.config import Settings
from medsum.errors import BackendNotConfiguredError, PageAnalysisError, SummaryError

from . import prompts

if TYPE_CHECKING:
    from medsum.orchestrator.types import AnalyzedPage

__all__ = ["AIBackend", "OpenAICompatBackend", "backend_from_settings"]

logger = logging.getLogger(__name__)


class AIBackend(Protocol):
    """What the orchestrator needs from a model service."""

    async def analyze_page(self, text: str, page_number: int) -> str: ...

    async def generate_summary(self, title: str, pages: Sequence[AnalyzedPage]) -> str: ...


@dataclass
class OpenAICompatBackend:
    """Async chat client for OpenAI-compatible endpoints.

    Attributes:
        base_url: Endpoint root, e.g. ``https://openrouter.ai/api/v1`` or
            ``http://127.0.0.1:11434/v1``. ``None`` means unconfigured.
        api_key: Bearer token; omitted from requests when empty.
        model: Model identifier.
        timeout_s: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    base_url: str | None
    api_key: str | None = None
    model: str = "openai/gpt-4o-mini"
    timeout_s: float = 120.0
    page_temperature: float = 0.3
    page_max_tokens: int = 4000
    summary_temperature: float = 0.5
    summary_max_tokens: int = 8000
    transport: httpx.AsyncBaseTransport | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport)

    async def _post_openai_v1(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> str:
        r = await client.post(
            f"{self.base_url.rstrip('/')}/chat/completions",
            headers=self._headers(),
            json=payload,
        )
        r.raise_for_status()
        return r.json()["choices"][0]["message"]["content"] or ""

    async def _post_ollama_chat(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> str:
        """POST to Ollama's native ``/api/chat`` endpoint."""

        base = self.base_url.rstrip("/")
        # Ollama's native API lives beside, not under, its /v1 shim.
        if base.endswith("/v1"):
            base = base[:-3]
        body = {
            "model": self.model,
            "messages": payload["messages"],
            "stream": False,
            "options": {
                "temperature": payload["temperature"],
                "num_predict": payload["max_tokens"],
            },
        }
        r = await client.post(f"{base}/api/chat", headers=self._headers(), json=body)
        r.raise_for_status()
        return r.json().get("message", {}).get("content", "")

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send one chat turn and return the reply text.

        Raises:
            BackendNotConfiguredError: If no ``base_url`` is set.
            httpx.HTTPError: On transport or non-2xx failures.
        """

        if not self.base_url:
            raise BackendNotConfiguredError("LLM_BASE_URL is not set")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        async with self._client() as client:
            try:
                return await self._post_openai_v1(client, payload)
            except httpx.HTTPStatusError as http_err:
                if http_err.response.status_code not in (404, 405):
                    raise
                logger.info("llm_fallback_ollama status=%s", http_err.response.status_code)
                return await self._post_ollama_chat(client, payload)

    async def analyze_page(self, text: str, page_number: int) -> str:
        logger.debug("llm_analyze_page page=%s chars=%s model=%s", page_number, len(text), self.model)
        try:
            analysis = await self.chat(
                prompts.PAGE_ANALYSIS_PROMPT,
                prompts.page_user_message(text, page_number),
                temperature=self.page_temperature,
                max_tokens=self.page_max_tokens,
            )
        except BackendNotConfiguredError:
            raise
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            raise PageAnalysisError(f"page {page_number}: {exc}") from exc
        logger.debug("llm_page_analyzed page=%s chars=%s", page_number, len(analysis))
        return analysis

    async def generate_summary(self, title: str, pages: Sequence[AnalyzedPage]) -> str:
        logger.info("llm_generate_summary title=%r pages=%s model=%s", title, len(pages), self.model)
        try:
            return await self.chat(
                prompts.summary_system_prompt(title),
                prompts.summary_user_message(pages),
                temperature=self.summary_temperature,
                max_tokens=self.summary_max_tokens,
            )
        except BackendNotConfiguredError as exc:
            raise SummaryError(str(exc), exc.user_message) from exc
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            raise SummaryError(f"summary request failed: {exc}") from exc


def backend_from_settings(settings: Settings) -> OpenAICompatBackend:
    return OpenAICompatBackend(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        timeout_s=settings.llm_timeout_s,
    )
