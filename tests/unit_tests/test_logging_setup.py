from __future__ import annotations

import logging
from pathlib import Path

import pytest

from api.logging_setup import SecretRedactionFilter, log_call, mask_secrets, setup_logging


def test_mask_secrets() -> None:
    assert mask_secrets("Authorization: Bearer abcdefgh12345") == "Authorization: Bearer ***"
    assert mask_secrets("api_key=supersecret") == "api_key=***"
    assert mask_secrets("key sk-1234567890abcdef used") == "key *** used"
    assert mask_secrets("nothing to hide") == "nothing to hide"


def test_filter_rewrites_record() -> None:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "token=%s", ("abcdef123",), None)
    assert SecretRedactionFilter().filter(record)
    assert record.getMessage() == "token=***"


def test_setup_logging_writes_to_log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    try:
        setup_logging(force=True)
        logging.getLogger("medsum.test").info("hello Bearer abcdefgh12345")
        for handler in root.handlers:
            handler.flush()
        text = (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")
        assert "hello Bearer ***" in text
        assert (tmp_path / "logs" / "app-debug.log").exists()
    finally:
        for handler in list(root.handlers):
            if handler not in saved_handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in saved_handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(saved_level)


def test_log_call_reraises(caplog: pytest.LogCaptureFixture) -> None:
    @log_call()
    def boom(*, value: int) -> int:
        raise ValueError(value)

    with pytest.raises(ValueError), caplog.at_level(logging.DEBUG):
        boom(value=3)
    assert any("ERROR in" in r.getMessage() for r in caplog.records)
