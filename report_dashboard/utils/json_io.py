from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from report_dashboard.utils.file_utils import ensure_directory


def load_json(path: Path, default: Any = None) -> Any:
    """Read a JSON document, returning ``default`` when missing or malformed."""
    if not path.is_file():
        return default
    try:
        with path.open("r", encoding="utf-8") as file:
            return json.load(file)
    except json.JSONDecodeError:
        return default


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def save_json(path: Path, data: Any) -> None:
    ensure_directory(path.parent)
    path.write_text(dump_json(data), encoding="utf-8")
