"""Streams ZIP archives of virtual folders."""
from __future__ import annotations

import time
import zipfile
from typing import Any, AsyncIterator, List

from report_dashboard.services.logging_service import logging_service
from report_dashboard.utils.paths import normalize_path, relative_to

COMPRESSION_LEVEL = 9


class _ArchiveSink:
    """Write-only buffer handed to :class:`zipfile.ZipFile`.

    It has no ``seek``/``tell``, so ``ZipFile`` writes data descriptors and
    never rewinds. Written bytes are drained after each member.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


class ArchiveBuilder:
    """Builds an archive of every file below a folder of a given source.

    The source is any adapter offering async ``list`` and ``read``. Folders
    are walked one child at a time and only files become archive members,
    named relative to the requested folder.
    """

    def __init__(self, source: Any) -> None:
        self.source = source
        self._logger = logging_service.get_logger(__name__)

    async def build_archive(self, root_path: str) -> AsyncIterator[bytes]:
        root_path = normalize_path(root_path)
        sink = _ArchiveSink()
        archive = zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESSION_LEVEL)
        members = 0
        try:
            async for path in self._walk(root_path):
                content = await self.source.read(path)
                info = zipfile.ZipInfo(relative_to(path, root_path), date_time=time.localtime()[:6])
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, content.encode("utf-8"), compresslevel=COMPRESSION_LEVEL)
                members += 1
                chunk = sink.drain()
                if chunk:
                    yield chunk
        except Exception:
            self._logger.error("Archive of %s aborted after %s files", root_path, members)
            raise
        archive.close()
        self._logger.info("Archive of %s built with %s files", root_path, members)
        chunk = sink.drain()
        if chunk:
            yield chunk

    async def _walk(self, path: str) -> AsyncIterator[str]:
        children: List[Any] = await self.source.list(path)
        for child in children:
            if child.is_folder:
                async for nested in self._walk(child.path):
                    yield nested
            else:
                yield child.path

