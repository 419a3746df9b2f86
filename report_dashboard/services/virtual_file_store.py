"""Public entry point to the virtual file tree.

Every operation asks the document store first and falls back to the
filesystem. The decision is taken per call: a store that failed on the
previous request is tried again on the next one.
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from report_dashboard.errors import NotAFile, NotFound, StoreUnavailable
from report_dashboard.models import VirtualEntry
from report_dashboard.services.archive_builder import ArchiveBuilder
from report_dashboard.services.filesystem_adapter import FileSystemAdapter
from report_dashboard.services.logging_service import logging_service
from report_dashboard.services.store_adapter import StoreAdapter
from report_dashboard.utils.paths import normalize_path

T = TypeVar("T")

DEFAULT_SEARCH_LIMIT = 50


def _non_empty(result: Any) -> bool:
    return bool(result)


def _present(result: Any) -> bool:
    return result is not None


def _has_children(stats: Dict[str, int]) -> bool:
    return stats.get("totalFiles", 0) + stats.get("totalDirectories", 0) > 0


class VirtualFileStore:
    def __init__(
        self,
        store: StoreAdapter,
        filesystem: FileSystemAdapter,
        default_search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.store = store
        self.filesystem = filesystem
        self.default_search_limit = default_search_limit
        self._logger = logging_service.get_logger(__name__)

    async def _with_fallback(
        self,
        operation: str,
        primary: Callable[[], Awaitable[T]],
        secondary: Callable[[], Awaitable[T]],
        accept: Callable[[T], bool] = _present,
    ) -> T:
        """Run ``primary`` and use ``secondary`` when it is unavailable or rejected.

        Only :class:`StoreUnavailable` is absorbed; every other exception
        propagates to the caller.
        """
        try:
            result = await primary()
        except StoreUnavailable as exc:
            self._logger.warning("%s: store unavailable, using file system (%s)", operation, exc)
        else:
            if accept(result):
                return result
            self._logger.debug("%s: no store result, using file system", operation)
        return await secondary()

    async def get_directory_contents(self, path: str) -> List[VirtualEntry]:
        # An empty store listing cannot be told apart from a store that was
        # never migrated, so the file system is asked as well.
        path = normalize_path(path)
        return await self._with_fallback(
            "list",
            lambda: self.store.list(path),
            lambda: self.filesystem.list(path),
            accept=_non_empty,
        )

    async def get_file_content(self, path: str) -> str:
        path = normalize_path(path)
        try:
            entry = await self.store.info(path)
        except StoreUnavailable as exc:
            self._logger.warning("read: store unavailable, using file system (%s)", exc)
        else:
            if entry is not None:
                if entry.is_folder:
                    raise NotAFile(path=path)
                return entry.content or ""
        return await self.filesystem.read(path)

    async def get_file_info(self, path: str) -> Optional[VirtualEntry]:
        path = normalize_path(path)
        return await self._with_fallback(
            "info",
            lambda: self.store.info(path),
            lambda: self.filesystem.info(path),
        )

    async def exists(self, path: str) -> bool:
        return await self.get_file_info(path) is not None

    async def search_files(self, query: str, limit: Optional[int] = None) -> List[VirtualEntry]:
        limit = self.default_search_limit if limit is None else limit
        results = await self._with_fallback(
            "search",
            lambda: self.store.search(query, limit),
            lambda: self.filesystem.search(query, limit),
            accept=_non_empty,
        )
        return results[:limit]

    async def get_file_stats(self, path: str) -> Dict[str, int]:
        path = normalize_path(path)
        return await self._with_fallback(
            "stats",
            lambda: self.store.stats(path),
            lambda: self.filesystem.stats(path),
            accept=_has_children,
        )

    async def resolve(self, path: str) -> Tuple[VirtualEntry, Any]:
        """Find the entry and the adapter that supplied it."""
        path = normalize_path(path)
        try:
            entry = await self.store.info(path)
        except StoreUnavailable as exc:
            self._logger.warning("resolve: store unavailable, using file system (%s)", exc)
        else:
            if entry is not None:
                return entry, self.store
        entry = await self.filesystem.info(path)
        if entry is None:
            raise NotFound("Item not found", path=path)
        return entry, self.filesystem

    async def get_download_stream(self, path: str) -> AsyncIterator[bytes]:
        entry, source = await self.resolve(path)
        if entry.is_folder:
            self._logger.info("Archiving %s from %s", entry.path, source.name)
            return ArchiveBuilder(source).build_archive(entry.path)
        content = await source.read(entry.path)
        return _single_chunk(content.encode("utf-8"))


async def _single_chunk(payload: bytes) -> AsyncIterator[bytes]:
    yield payload
