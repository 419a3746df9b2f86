"""Access to the virtual file tree mirrored in the MongoDB ``files`` collection."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from pymongo import ASCENDING, DESCENDING, TEXT, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from report_dashboard.errors import DuplicatePath, NotAFile, NotFound, StoreUnavailable
from report_dashboard.models import VirtualEntry, directory_stats
from report_dashboard.services.logging_service import logging_service
from report_dashboard.utils.paths import base_name, get_parent, normalize_path

T = TypeVar("T")

_WITHOUT_CONTENT = {"content": 0}
_IMMUTABLE_FIELDS = {"_id", "path", "createdAt"}


class StoreAdapter:
    """Queries the document store for listing, reading, info, search and stats.

    Every call first consults the injected connection. When it reports the
    store as unreachable, or when the driver raises, :class:`StoreUnavailable`
    is raised. Empty results and missing documents are real answers.
    """

    name = "store"

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self._logger = logging_service.get_logger(__name__)

    async def _run(self, operation: str, call: Callable[[Any], Awaitable[T]]) -> T:
        if not self.connection.connected:
            raise StoreUnavailable(f"Store not connected ({operation})")
        try:
            return await call(self.connection.collection)
        except DuplicateKeyError:
            raise
        except PyMongoError as exc:
            raise StoreUnavailable(f"Store {operation} failed: {exc}") from exc

    async def list(self, path: str) -> List[VirtualEntry]:
        path = normalize_path(path)

        async def query(collection: Any) -> List[Dict[str, Any]]:
            cursor = collection.find({"parentPath": path}).sort(
                [("isFolder", DESCENDING), ("name", ASCENDING)]
            )
            return await cursor.to_list(length=None)

        documents = await self._run("list", query)
        return [VirtualEntry.from_document(document) for document in documents]

    async def info(self, path: str) -> Optional[VirtualEntry]:
        path = normalize_path(path)
        document = await self._run("info", lambda collection: collection.find_one({"path": path}))
        if document is None:
            return None
        return VirtualEntry.from_document(document)

    async def read(self, path: str) -> str:
        entry = await self.info(path)
        if entry is None:
            raise NotFound(path=normalize_path(path))
        if entry.is_folder:
            raise NotAFile(path=entry.path)
        return entry.content or ""

    async def exists(self, path: str) -> bool:
        path = normalize_path(path)
        count = await self._run(
            "exists", lambda collection: collection.count_documents({"path": path}, limit=1)
        )
        return count > 0

    async def search(self, query: str, limit: int = 50) -> List[VirtualEntry]:
        """Full-text search over names and descriptions, best match first."""

        async def run_search(collection: Any) -> List[Dict[str, Any]]:
            cursor = (
                collection.find({"$text": {"$search": query}}, {"score": {"$meta": "textScore"}})
                .sort([("score", {"$meta": "textScore"})])
                .limit(limit)
            )
            return await cursor.to_list(length=None)

        if limit <= 0:
            return []
        documents = await self._run("search", run_search)
        return [VirtualEntry.from_document(document) for document in documents[:limit]]

    async def stats(self, path: str) -> Dict[str, int]:
        """Counts and size of the immediate children of ``path``."""
        path = normalize_path(path)

        async def query(collection: Any) -> List[Dict[str, Any]]:
            cursor = collection.find({"parentPath": path}, _WITHOUT_CONTENT)
            return await cursor.to_list(length=None)

        documents = await self._run("stats", query)
        return directory_stats([VirtualEntry.from_document(document) for document in documents])

    async def totals(self) -> Dict[str, int]:
        """Whole-store counts, used to report on a migration."""

        async def query(collection: Any) -> List[Dict[str, Any]]:
            cursor = await collection.aggregate(
                [{"$group": {"_id": "$isFolder", "count": {"$sum": 1}, "size": {"$sum": "$size"}}}]
            )
            return await cursor.to_list(length=None)

        groups = await self._run("totals", query)
        totals = {"totalFiles": 0, "totalDirectories": 0, "totalSize": 0}
        for group in groups:
            if group.get("_id"):
                totals["totalDirectories"] += group.get("count", 0)
            else:
                totals["totalFiles"] += group.get("count", 0)
                totals["totalSize"] += group.get("size", 0)
        return totals

    async def count(self) -> int:
        return await self._run("count", lambda collection: collection.count_documents({}))

    async def ensure_indexes(self) -> None:
        async def create(collection: Any) -> None:
            await collection.create_index([("path", ASCENDING)], unique=True)
            await collection.create_index([("parentPath", ASCENDING)])
            await collection.create_index([("isFolder", ASCENDING)])
            await collection.create_index([("name", TEXT), ("metadata.description", TEXT)])
            await collection.create_index([("createdAt", ASCENDING)])
            await collection.create_index([("updatedAt", ASCENDING)])

        await self._run("ensure_indexes", create)

    async def create(self, entry: VirtualEntry) -> VirtualEntry:
        document = entry.to_document()
        try:
            await self._run("create", lambda collection: collection.insert_one(document))
        except DuplicateKeyError as exc:
            raise DuplicatePath(f"Path already exists: {entry.path}", path=entry.path) from exc
        return entry

    async def create_directory(self, path: str) -> VirtualEntry:
        path = normalize_path(path)
        directory = VirtualEntry(
            name=base_name(path),
            path=path,
            is_folder=True,
            parent_path=get_parent(path),
        )
        return await self.create(directory)

    async def update(self, path: str, changes: Dict[str, Any]) -> Optional[VirtualEntry]:
        path = normalize_path(path)
        update = {key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS}
        update["updatedAt"] = datetime.now(timezone.utc)
        if "content" in update and "size" not in update and update["content"] is not None:
            update["size"] = len(str(update["content"]).encode("utf-8"))

        document = await self._run(
            "update",
            lambda collection: collection.find_one_and_update(
                {"path": path}, {"$set": update}, return_document=ReturnDocument.AFTER
            ),
        )
        if document is None:
            return None
        return VirtualEntry.from_document(document)

    async def delete(self, path: str) -> bool:
        path = normalize_path(path)
        result = await self._run("delete", lambda collection: collection.delete_one({"path": path}))
        return result.deleted_count > 0

    async def clear(self) -> int:
        result = await self._run("clear", lambda collection: collection.delete_many({}))
        return result.deleted_count
