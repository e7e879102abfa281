from __future__ import annotations

from pathlib import Path

import pytest

from medsum.orchestrator import Session, Stage, UploadArtifact


def test_progress_never_decreases() -> None:
    session = Session()
    assert session.next_progress(30) == 30
    assert session.next_progress(10) == 30
    assert session.next_progress(150) == 100
    assert session.emitted_progress == 100


def test_terminal_stage_is_sticky() -> None:
    session = Session()
    session.advance(Stage.ANALYZING)
    session.advance(Stage.FAILED)
    session.advance(Stage.COMPLETE)
    assert session.stage is Stage.FAILED


@pytest.mark.anyio
async def test_probe_sets_cancelled_once() -> None:
    calls = 0

    async def probe() -> bool:
        nonlocal calls
        calls += 1
        return True

    session = Session(disconnect_probe=probe)
    assert await session.check_cancelled()
    assert await session.check_cancelled()
    assert calls == 1


def test_cleanup_runs_once(pdf_file: Path) -> None:
    upload = UploadArtifact(path=pdf_file, file_name="a.pdf", size=10)
    assert upload.cleanup() is True
    assert not pdf_file.exists()
    assert upload.cleanup() is False
    assert upload.removed


def test_cleanup_tolerates_missing_file(tmp_path: Path) -> None:
    upload = UploadArtifact(path=tmp_path / "gone.pdf", file_name="gone.pdf", size=0)
    assert upload.cleanup() is True


def test_content_hash() -> None:
    digest = UploadArtifact.content_hash(b"%PDF-1.4")
    assert len(digest) == 64
    assert digest == UploadArtifact.content_hash(b"%PDF-1.4")
