from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure workspace root is importable so `tests.fakes` works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Ensure src/ is on sys.path so we can import medsum.* without using `import src.*` patterns.
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from medsum.config import Settings  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(upload_dir=tmp_path / "uploads", parsing_timeout_s=5.0)


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """A file that passes the magic-byte check; content is not parsed."""
    path = tmp_path / "upload.pdf"
    path.write_bytes(b"%PDF-1.4\n% test fixture\n%%EOF")
    return path
