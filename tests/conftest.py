"""Shared fixtures: fixture trees, an in-memory document store and API clients."""
from __future__ import annotations

import copy
import re
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from report_dashboard.app import create_app
from report_dashboard.config import load_settings
from report_dashboard.services.fixture_generator import generate_fixtures

_WORD = re.compile(r"[a-z0-9]+")


def _words(text: Optional[str]) -> List[str]:
    return _WORD.findall((text or "").lower())


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, expected in query.items():
        if key == "$text":
            continue
        if document.get(key) != expected:
            return False
    return True


def _text_score(document: Dict[str, Any], search: str) -> int:
    words = set(_words(document.get("name"))) | set(_words((document.get("metadata") or {}).get("description")))
    return sum(1 for term in _words(search) if term in words)


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, keys: List[Any]) -> "FakeCursor":
        for key, direction in reversed(keys):
            reverse = direction == -1 or isinstance(direction, dict)
            default = "" if key == "name" else 0
            self._documents.sort(key=lambda document: document.get(key, default), reverse=reverse)
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._documents = self._documents[:count]
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return list(self._documents if length is None else self._documents[:length])


class FakeCollection:
    """In-memory subset of the async pymongo collection API used by the adapter."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.indexes: List[Any] = []

    def find(self, query: Dict[str, Any], projection: Optional[Dict[str, Any]] = None) -> FakeCursor:
        found = []
        for document in self.documents.values():
            if not _matches(document, query):
                continue
            document = copy.deepcopy(document)
            if "$text" in query:
                score = _text_score(document, query["$text"]["$search"])
                if score == 0:
                    continue
                document["score"] = score
            if projection and projection.get("content") == 0:
                document.pop("content", None)
            found.append(document)
        return FakeCursor(found)

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents.values():
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    async def count_documents(self, query: Dict[str, Any], limit: Optional[int] = None) -> int:
        count = sum(1 for document in self.documents.values() if _matches(document, query))
        return min(count, limit) if limit else count

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        if document["path"] in self.documents:
            raise DuplicateKeyError(f"duplicate path {document['path']}")
        self.documents[document["path"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["path"])

    async def find_one_and_update(self, query, update, return_document=None) -> Optional[Dict[str, Any]]:
        for document in self.documents.values():
            if _matches(document, query):
                document.update(update["$set"])
                return copy.deepcopy(document)
        return None

    async def delete_one(self, query: Dict[str, Any]) -> SimpleNamespace:
        for path, document in list(self.documents.items()):
            if _matches(document, query):
                del self.documents[path]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query: Dict[str, Any]) -> SimpleNamespace:
        matching = [path for path, document in self.documents.items() if _matches(document, query)]
        for path in matching:
            del self.documents[path]
        return SimpleNamespace(deleted_count=len(matching))

    async def create_index(self, keys, **options) -> str:
        self.indexes.append((keys, options))
        return str(keys)

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> FakeCursor:
        groups: Dict[Any, Dict[str, Any]] = {}
        for document in self.documents.values():
            group = groups.setdefault(document.get("isFolder"), {"_id": document.get("isFolder"), "count": 0, "size": 0})
            group["count"] += 1
            group["size"] += document.get("size", 0)
        return FakeCursor(list(groups.values()))


class FailingCollection:
    """Collection whose every call fails like an unreachable server."""

    def __getattr__(self, name: str) -> Any:
        def fail(*args: Any, **kwargs: Any) -> Any:
            raise ServerSelectionTimeoutError("No servers found yet")

        return fail


class FakeConnection:
    def __init__(self, collection: Any = None, connected: bool = True) -> None:
        self.collection = collection if collection is not None else FakeCollection()
        self._connected = connected
        self.closed = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> bool:
        return self._connected

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    generate_fixtures(tmp_path, job_count=5, seed=7)
    return tmp_path


@pytest.fixture
def small_tree(tmp_path: Path) -> Path:
    """A hand-made tree with known sizes."""
    (tmp_path / "reports" / "nested").mkdir(parents=True)
    (tmp_path / "reports" / "empty").mkdir()
    (tmp_path / "reports" / "a.log").write_text("alpha", encoding="utf-8")
    (tmp_path / "reports" / "b.json").write_text('{"b": 1}', encoding="utf-8")
    (tmp_path / "reports" / "nested" / "c.txt").write_text("gamma gamma", encoding="utf-8")
    (tmp_path / "top.txt").write_text("top", encoding="utf-8")
    return tmp_path


def make_settings(data_dir: Path, mongodb_enabled: bool):
    return load_settings(
        env={
            "DATA_DIR": str(data_dir),
            "MONGODB_ENABLED": "true" if mongodb_enabled else "false",
            "GENERATE_FIXTURES": "false",
            "FIXTURE_REFRESH_SECONDS": "0",
        }
    )


@pytest.fixture
def client(data_dir: Path):
    """API client served from the file system only (store unreachable)."""
    app = create_app(make_settings(data_dir, mongodb_enabled=False), connection=FakeConnection(connected=False))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store_client(data_dir: Path):
    """API client whose store holds a migrated copy of the fixture tree."""
    connection = FakeConnection()
    app = create_app(make_settings(data_dir, mongodb_enabled=True), connection=connection)
    with TestClient(app) as test_client:
        test_client.connection = connection
        yield test_client
