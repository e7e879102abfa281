"""API logging setup: rotating files, console, TRACE level, secret masking."""

from __future__ import annotations

import inspect
import logging
import os
import re
from collections.abc import Callable
from functools import wraps
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, ParamSpec

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(module)s | %(funcName)s | %(message)s"

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=\-]{8,}", re.I),
    re.compile(r"((?:api[_-]?key|token|secret)\s*[=:]\s*['\"]?)[^\s'\",]{6,}", re.I),
    re.compile(r"()\bsk-[A-Za-z0-9_\-]{10,}"),
)


def mask_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1***", text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Mask bearer tokens and API keys in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class MinLevelFilter(logging.Filter):
    """Filter allowing only records whose level >= configured minimum."""

    def __init__(self, min_level: int) -> None:
        """Store minimum level threshold."""
        super().__init__()
        self._min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        """Return True if record should be emitted."""
        return record.levelno >= self._min_level


def _resolve_level(name: str) -> int:
    name = name.upper()
    if name == "TRACE":
        return TRACE_LEVEL
    return getattr(logging, name, logging.INFO)


def setup_logging(force: bool = False) -> None:
    """Configure handlers/formatters once (unless force=True).

    ``LOG_LEVEL`` sets the root/console level; ``LOG_DIR`` (default
    ``logs``) receives ``app.log`` (INFO+) and ``app-debug.log`` (everything).
    """
    if getattr(setup_logging, "_configured", False) and not force:
        return
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    if force:  # pragma: no cover
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
    level = _resolve_level(os.getenv("LOG_LEVEL", "INFO"))
    root.setLevel(level)
    fmt = logging.Formatter(DEFAULT_FORMAT)
    redact = SecretRedactionFilter()
    info_handler = TimedRotatingFileHandler(
        log_dir / "app.log",
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    info_handler.setFormatter(fmt)
    info_handler.addFilter(MinLevelFilter(logging.INFO))
    debug_handler = TimedRotatingFileHandler(
        log_dir / "app-debug.log",
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    debug_handler.setFormatter(fmt)
    debug_handler.setLevel(TRACE_LEVEL)
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(level)
    for handler in (info_handler, debug_handler, console):
        handler.addFilter(redact)
        root.addHandler(handler)
    # httpx logs full request lines at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    setup_logging._configured = True  # type: ignore[attr-defined]


P = ParamSpec("P")


def log_call(
    level: int = logging.DEBUG,
) -> Callable[[Callable[P, Any]], Callable[P, Any]]:
    """Decorator factory logging enter/exit of (a)sync functions."""

    def _decorator(fn: Callable[P, Any]) -> Callable[P, Any]:
        logger = logging.getLogger(fn.__module__)
        if inspect.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:  # pragma: no cover
                if logger.isEnabledFor(level):
                    logger.log(level, "ENTER %s kwargs=%s", fn.__qualname__, _shorten(kwargs))
                try:
                    result = await fn(*args, **kwargs)
                except Exception as e:  # noqa: BLE001
                    logger.exception("ERROR in %s: %s", fn.__qualname__, e)
                    raise
                if logger.isEnabledFor(level):
                    logger.log(level, "EXIT %s -> %s", fn.__qualname__, _shorten(result))
                return result

            return async_wrapper

        @wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:  # pragma: no cover
            if logger.isEnabledFor(level):
                logger.log(level, "ENTER %s kwargs=%s", fn.__qualname__, _shorten(kwargs))
            try:
                result = fn(*args, **kwargs)
            except Exception as e:  # noqa: BLE001
                logger.exception("ERROR in %s: %s", fn.__qualname__, e)
                raise
            if logger.isEnabledFor(level):
                logger.log(level, "EXIT %s -> %s", fn.__qualname__, _shorten(result))
            return result

        return sync_wrapper

    return _decorator


def _shorten(obj: object, limit: int = 120) -> str:
    """Return a truncated repr for logging (never raises)."""
    try:  # pragma: no cover
        s = repr(obj)
        if len(s) > limit:
            return s[: limit - 3] + "..."
        return s
    except Exception:  # noqa: BLE001
        return type(obj).__name__
