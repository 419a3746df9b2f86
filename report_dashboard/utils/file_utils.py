"""General file helper functions."""
from __future__ import annotations

import mimetypes
from pathlib import Path

from report_dashboard.models import DEFAULT_MIME_TYPE

_TEXT_TYPES = {
    ".log": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
}


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, content: str) -> None:
    ensure_directory(path.parent)
    path.write_text(content, encoding="utf-8")


def append_line(path: Path, line: str) -> None:
    with path.open("a", encoding="utf-8") as file:
        file.write(f"\n{line}")


def read_text(path: Path) -> str:
    return path.read_bytes().decode("utf-8", errors="replace")


def guess_mime_type(name: str) -> str:
    suffix = Path(name).suffix.lower()
    if suffix in _TEXT_TYPES:
        return _TEXT_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE
