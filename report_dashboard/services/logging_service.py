"""Application wide logging helpers."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class LoggingService:
    """Central logging configuration helper."""

    def __init__(self) -> None:
        self._configured = False
        self.level = logging.INFO
        self.log_file: Optional[Path] = None

    def configure(self, level: str | int | None = None, log_file: Path | str | None = None) -> None:
        if level is not None:
            self.level = _parse_level(level)
        if log_file:
            self.log_file = Path(log_file)
        if self._configured:
            logging.getLogger().setLevel(self.level)
            return

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file))

        logging.basicConfig(level=self.level, format=LOG_FORMAT, handlers=handlers)
        self._configured = True

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        return logging.getLogger(name)


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = str(level).strip().upper()
    if value.isdigit():
        return int(value)
    resolved = logging.getLevelName(value)
    return resolved if isinstance(resolved, int) else logging.INFO


logging_service = LoggingService()
