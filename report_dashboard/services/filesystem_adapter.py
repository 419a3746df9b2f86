"""Serves the virtual file tree straight from the fixture directory on disk."""
from __future__ import annotations

import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from report_dashboard.errors import NotAFile, NotFound
from report_dashboard.models import EntryMetadata, VirtualEntry, directory_stats, sort_entries
from report_dashboard.services.logging_service import logging_service
from report_dashboard.utils.file_utils import guess_mime_type, read_text
from report_dashboard.utils.paths import ROOT, join_path, normalize_path, segments

FILESYSTEM_AUTHOR = "Test System"
FILESYSTEM_VERSION = "1.0.0"


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class FileSystemAdapter:
    """Reads the on-disk tree rooted at ``base_dir``.

    Entries are rebuilt on every call. File content is loaded eagerly, also
    for listings, because the info consumers expect it inline. Disk access
    runs in a worker thread so the event loop keeps serving other requests.
    Children that vanish or cannot be stat'd are logged and skipped.
    """

    name = "filesystem"

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)
        self._logger = logging_service.get_logger(__name__)

    def _disk_path(self, path: str) -> Optional[Path]:
        parts = segments(path)
        if any(part in {".", ".."} for part in parts):
            return None
        return self.base_dir.joinpath(*parts)

    def _build_entry(self, disk_path: Path, path: str, stat: os.stat_result) -> VirtualEntry:
        is_folder = disk_path.is_dir()
        name = disk_path.name if path != ROOT else ROOT
        kind = "directory" if is_folder else "file"
        created = getattr(stat, "st_birthtime", stat.st_ctime)
        return VirtualEntry(
            name=name,
            path=path,
            is_folder=is_folder,
            size=0 if is_folder else stat.st_size,
            mime_type=None if is_folder else guess_mime_type(name),
            content=None if is_folder else read_text(disk_path),
            created_at=_timestamp(created),
            updated_at=_timestamp(stat.st_mtime),
            metadata=EntryMetadata(
                description=f"Test {kind}: {name}",
                tags=[kind],
                author=FILESYSTEM_AUTHOR,
                version=FILESYSTEM_VERSION,
            ),
        )

    def _try_build_entry(self, disk_path: Path, path: str) -> Optional[VirtualEntry]:
        try:
            return self._build_entry(disk_path, path, disk_path.stat())
        except OSError as exc:
            self._logger.warning("Skipping unreadable entry %s: %s", disk_path, exc)
            return None

    def _list_sync(self, path: str) -> List[VirtualEntry]:
        disk_path = self._disk_path(path)
        if disk_path is None or not disk_path.is_dir():
            return []
        entries: List[VirtualEntry] = []
        with os.scandir(disk_path) as iterator:
            for item in iterator:
                entry = self._try_build_entry(disk_path / item.name, join_path(path, item.name))
                if entry is not None:
                    entries.append(entry)
        return sort_entries(entries)

    def _info_sync(self, path: str) -> Optional[VirtualEntry]:
        disk_path = self._disk_path(path)
        if disk_path is None or not disk_path.exists():
            return None
        return self._try_build_entry(disk_path, path)

    def _read_sync(self, path: str) -> str:
        disk_path = self._disk_path(path)
        if disk_path is None or not disk_path.exists():
            raise NotFound(path=path)
        if disk_path.is_dir():
            raise NotAFile(path=path)
        return read_text(disk_path)

    async def list(self, path: str) -> List[VirtualEntry]:
        return await asyncio.to_thread(self._list_sync, normalize_path(path))

    async def info(self, path: str) -> Optional[VirtualEntry]:
        return await asyncio.to_thread(self._info_sync, normalize_path(path))

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read_sync, normalize_path(path))

    async def exists(self, path: str) -> bool:
        disk_path = self._disk_path(normalize_path(path))
        return disk_path is not None and await asyncio.to_thread(disk_path.exists)

    async def search(self, query: str, limit: int = 50) -> List[VirtualEntry]:
        """Depth-first name search in directory-read order, no ranking.

        The walk stops as soon as ``limit`` matches are collected, so results
        favour the subtrees visited first.
        """
        return await asyncio.to_thread(self._search_sync, query.lower(), limit)

    def _search_sync(self, needle: str, limit: int) -> List[VirtualEntry]:
        results: List[VirtualEntry] = []
        if limit <= 0 or not self.base_dir.is_dir():
            return results
        self._search_directory(self.base_dir, ROOT, needle, limit, results)
        return results

    def _search_directory(
        self, disk_path: Path, path: str, needle: str, limit: int, results: List[VirtualEntry]
    ) -> None:
        try:
            names = os.listdir(disk_path)
        except OSError as exc:
            self._logger.warning("Skipping unreadable directory %s: %s", disk_path, exc)
            return
        for name in names:
            if len(results) >= limit:
                return
            child = disk_path / name
            child_path = join_path(path, name)
            if needle in name.lower():
                entry = self._try_build_entry(child, child_path)
                if entry is None:
                    continue
                results.append(entry)
            if child.is_dir():
                self._search_directory(child, child_path, needle, limit, results)

    async def stats(self, path: str) -> Dict[str, int]:
        return directory_stats(await self.list(path))
