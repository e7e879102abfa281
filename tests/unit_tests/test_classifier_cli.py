from __future__ import annotations

import json
from pathlib import Path

import fitz
import pytest

from medsum.classifier.classifier_cli import main

BODY = (
    "Methods\n"
    "We enrolled 120 patients in a randomized trial.\n"
    "The primary outcome was mortality at 30 days.\n"
    "Results showed fewer deaths in the treatment group.\n"
    "Treatment was well tolerated by most participants."
)


def _write_pdf(path: Path, pages: list[str]) -> Path:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=10)
    doc.save(str(path))
    doc.close()
    return path


def test_cli_prints_per_page_records(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    pdf = _write_pdf(tmp_path / "article.pdf", [BODY, ""])
    assert main([str(pdf)]) == 0
    records = json.loads(capsys.readouterr().out)
    assert [r["page_number"] for r in records] == [1, 2]
    assert records[0]["classification"] == "SUBSTANTIVE_CONTENT"
    assert records[1]["classification"] is None


def test_cli_summary_and_page_filter(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    pdf = _write_pdf(tmp_path / "article.pdf", [BODY, "", BODY])
    assert main([str(pdf), "--summary", "--pages", "1,3"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"file": "article.pdf", "pages": 2, "counts": {"SUBSTANTIVE_CONTENT": 2}}


def test_cli_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(tmp_path / "nope.pdf")]) == 1
    assert "File not found" in capsys.readouterr().err
