"""Runtime settings loaded from environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

__all__ = ["Settings", "load_settings"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 100
DEFAULT_PARSING_TIMEOUT_MS = 60_000
DEFAULT_MAX_FILE_SIZE_MB = 50
DEFAULT_CACHE_TTL_S = 3600
DEFAULT_LLM_MODEL = "openai/gpt-4o-mini"
DEFAULT_LLM_TIMEOUT_S = 120.0


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide configuration.

    Attributes:
        max_pages: Page-count ceiling for uploaded documents.
        parsing_timeout_s: Deadline for text extraction.
        max_file_size: Upload size ceiling in bytes.
        upload_dir: Directory receiving temporary uploads.
        llm_base_url: OpenAI-compatible endpoint (``None`` = not configured).
        llm_api_key: Bearer token for the endpoint.
        llm_model: Model identifier sent with every request.
        llm_timeout_s: Per-request HTTP timeout for the model service.
        client_url: Origin allowed by CORS.
        cache_ttl_s: Lifetime of cached page analyses.
        pattern_pack: Optional YAML file extending the built-in patterns.
    """

    max_pages: int = DEFAULT_MAX_PAGES
    parsing_timeout_s: float = DEFAULT_PARSING_TIMEOUT_MS / 1000
    max_file_size: int = DEFAULT_MAX_FILE_SIZE_MB * 1024 * 1024
    upload_dir: Path = field(default_factory=lambda: Path("data/uploads"))
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str = DEFAULT_LLM_MODEL
    llm_timeout_s: float = DEFAULT_LLM_TIMEOUT_S
    client_url: str = "http://localhost:5173"
    cache_ttl_s: int = DEFAULT_CACHE_TTL_S
    pattern_pack: Path | None = None

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_base_url)


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("invalid_setting key=%s value=%r default=%s", key, raw, default)
        return default


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("invalid_setting key=%s value=%r default=%s", key, raw, default)
        return default


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    Unparseable numbers fall back to their defaults instead of failing
    startup.
    """

    env = os.environ if env is None else env
    pack = env.get("PATTERN_PACK")
    return Settings(
        max_pages=_int(env, "MAX_PAGES", DEFAULT_MAX_PAGES),
        parsing_timeout_s=_int(env, "PARSING_TIMEOUT_MS", DEFAULT_PARSING_TIMEOUT_MS) / 1000,
        max_file_size=_int(env, "MAX_FILE_SIZE_MB", DEFAULT_MAX_FILE_SIZE_MB) * 1024 * 1024,
        upload_dir=Path(env.get("UPLOAD_DIR", "data/uploads")),
        llm_base_url=env.get("LLM_BASE_URL") or None,
        llm_api_key=env.get("LLM_API_KEY") or None,
        llm_model=env.get("LLM_MODEL", DEFAULT_LLM_MODEL),
        llm_timeout_s=_float(env, "LLM_TIMEOUT_S", DEFAULT_LLM_TIMEOUT_S),
        client_url=env.get("CLIENT_URL", "http://localhost:5173"),
        cache_ttl_s=_int(env, "CACHE_TTL_S", DEFAULT_CACHE_TTL_S),
        pattern_pack=Path(pack) if pack else None,
    )
