"""FastAPI dependency providers.

Overridden in tests through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends

from medsum.classifier import PageClassifier
from medsum.config import Settings, load_settings
from medsum.llm import backend_from_settings
from medsum.orchestrator import Orchestrator
from medsum.patterns import PatternPack, default_pattern_pack, load_pattern_pack
from medsum.store import InMemoryTTLStore
from pipeline.ingestion.pdf import PdfTextExtractor

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def _pattern_pack(path: str | None) -> PatternPack:
    if path is None:
        return default_pattern_pack()
    logger.info("pattern_pack_loaded path=%s", path)
    return load_pattern_pack(path)


@lru_cache(maxsize=1)
def _analysis_store(ttl_s: int) -> InMemoryTTLStore:
    return InMemoryTTLStore(default_ttl_s=ttl_s)


def get_orchestrator(settings: Settings = Depends(get_settings)) -> Orchestrator:  # noqa: B008
    """One orchestrator per request; the analysis cache is process-wide."""
    patterns = _pattern_pack(str(settings.pattern_pack) if settings.pattern_pack else None)
    return Orchestrator(
        settings,
        extractor=PdfTextExtractor(),
        backend=backend_from_settings(settings),
        store=_analysis_store(settings.cache_ttl_s),
        classifier=PageClassifier(patterns),
    )
