"""Service health and capability endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from api.dependencies import get_settings
from medsum import __version__
from medsum.config import Settings
from pipeline.ingestion.pdf import detect_available_backends

router = APIRouter()


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> dict[str, Any]:  # noqa: B008
    return {
        "status": "ok",
        "version": __version__,
        "llm_configured": settings.llm_configured,
    }


@router.get("/info")
async def info(settings: Settings = Depends(get_settings)) -> dict[str, Any]:  # noqa: B008
    """Limits and features the client can adapt to."""
    return {
        "version": __version__,
        "limits": {
            "max_pages": settings.max_pages,
            "max_file_size_mb": settings.max_file_size // (1024 * 1024),
            "parsing_timeout_s": settings.parsing_timeout_s,
        },
        "model": settings.llm_model,
        "extraction_backends": [b.value for b in detect_available_backends()],
        "features": [
            "sse_progress",
            "reference_page_detection",
            "mixed_content_extraction",
            "imryd_structure",
            "prompt_sanitization",
            "page_analysis_cache",
        ],
    }
