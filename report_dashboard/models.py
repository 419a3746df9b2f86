"""Data models for entries of the virtual file tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from report_dashboard.utils.paths import ROOT, base_name, get_parent, normalize_path

DIRECTORY_MIME_TYPE = "directory"
DEFAULT_MIME_TYPE = "text/plain"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            pass
    return _utcnow()


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class EntryMetadata:
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    author: Optional[str] = None
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "tags": list(self.tags),
            "author": self.author,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "EntryMetadata":
        if not isinstance(payload, dict):
            return cls()
        tags = payload.get("tags") or []
        return cls(
            description=payload.get("description"),
            tags=[str(tag) for tag in tags],
            author=payload.get("author"),
            version=payload.get("version"),
        )


@dataclass
class VirtualEntry:
    """One node in the virtual tree, independent of the backend serving it."""

    name: str
    path: str
    is_folder: bool
    size: int = 0
    mime_type: Optional[str] = None
    content: Optional[str] = None
    parent_path: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    metadata: EntryMetadata = field(default_factory=EntryMetadata)

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        if self.path == ROOT:
            self.parent_path = None
        elif self.parent_path is None:
            self.parent_path = get_parent(self.path)
        else:
            self.parent_path = normalize_path(self.parent_path)
        if not self.name:
            self.name = base_name(self.path)
        if self.is_folder:
            self.content = None
            self.mime_type = DIRECTORY_MIME_TYPE
        self.size = max(int(self.size or 0), 0)

    @property
    def is_text(self) -> bool:
        return bool(self.mime_type and self.mime_type.startswith("text/"))

    def to_summary(self) -> Dict[str, Any]:
        """Trimmed shape used by listings and search results."""
        return {
            "name": self.name,
            "path": self.path,
            "isFolder": self.is_folder,
            "size": self.size,
            "mimeType": self.mime_type,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def to_info(self) -> Dict[str, Any]:
        """Flattened shape returned by the info endpoint."""
        return {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "isDirectory": self.is_folder,
            "isFile": not self.is_folder,
            "mimeType": self.mime_type,
            "isTextFile": self.is_text,
            "lastModified": _iso(self.updated_at),
            "created": _iso(self.created_at),
            "metadata": self.metadata.to_dict(),
        }

    def to_document(self) -> Dict[str, Any]:
        """Record stored in the ``files`` collection."""
        document: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "isFolder": self.is_folder,
            "size": self.size,
            "mimeType": self.mime_type,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "metadata": self.metadata.to_dict(),
        }
        if self.parent_path is not None:
            document["parentPath"] = self.parent_path
        if not self.is_folder:
            document["content"] = self.content or ""
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "VirtualEntry":
        path = normalize_path(document.get("path"))
        return cls(
            name=document.get("name") or base_name(path),
            path=path,
            is_folder=bool(document.get("isFolder", False)),
            size=document.get("size") or 0,
            mime_type=document.get("mimeType"),
            content=document.get("content"),
            parent_path=document.get("parentPath"),
            created_at=_as_utc(document.get("createdAt")),
            updated_at=_as_utc(document.get("updatedAt")),
            metadata=EntryMetadata.from_dict(document.get("metadata")),
        )


def sort_entries(entries: List[VirtualEntry]) -> List[VirtualEntry]:
    """Folders first, then by name."""
    return sorted(entries, key=lambda entry: (not entry.is_folder, entry.name))


def directory_stats(entries: List[VirtualEntry]) -> Dict[str, int]:
    total_files = 0
    total_directories = 0
    total_size = 0
    for entry in entries:
        if entry.is_folder:
            total_directories += 1
        else:
            total_files += 1
            total_size += entry.size
    return {
        "totalFiles": total_files,
        "totalDirectories": total_directories,
        "totalSize": total_size,
    }
