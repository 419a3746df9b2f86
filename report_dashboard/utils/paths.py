"""Helpers for canonical virtual paths."""
from __future__ import annotations

from typing import Optional

ROOT = "/"
SEPARATOR = "/"


def normalize_path(raw: Optional[str]) -> str:
    """Turn any path string into a canonical absolute virtual path.

    Empty input and ``"/"`` map to the root. Repeated separators are
    collapsed and the trailing separator is removed. ``..`` segments are kept
    as they are; callers reject traversal before reaching the stores.
    """
    if not raw or raw == ROOT:
        return ROOT
    path = raw.replace("\\", SEPARATOR)
    if not path.startswith(SEPARATOR):
        path = SEPARATOR + path
    while "//" in path:
        path = path.replace("//", SEPARATOR)
    if path != ROOT and path.endswith(SEPARATOR):
        path = path[:-1]
    return path or ROOT


def get_parent(path: str) -> Optional[str]:
    """Return the parent of a canonical path, or ``None`` for the root."""
    path = normalize_path(path)
    if path == ROOT:
        return None
    head, _, _ = path.rpartition(SEPARATOR)
    return normalize_path(head)


def base_name(path: str) -> str:
    path = normalize_path(path)
    if path == ROOT:
        return ROOT
    return path.rpartition(SEPARATOR)[2]


def join_path(parent: str, name: str) -> str:
    parent = normalize_path(parent)
    if parent == ROOT:
        return normalize_path(SEPARATOR + name)
    return normalize_path(f"{parent}{SEPARATOR}{name}")


def relative_to(path: str, root: str) -> str:
    """Name of ``path`` inside an archive rooted at ``root``."""
    path = normalize_path(path)
    root = normalize_path(root)
    if root == ROOT:
        return path.lstrip(SEPARATOR)
    if path == root:
        return ""
    if not path.startswith(root + SEPARATOR):
        raise ValueError(f"{path} is not below {root}")
    return path[len(root) + 1 :]


def segments(path: str) -> list[str]:
    return [part for part in normalize_path(path).split(SEPARATOR) if part]


def is_traversal(raw: Optional[str]) -> bool:
    if not raw:
        return False
    return any(part == ".." for part in raw.replace("\\", SEPARATOR).split(SEPARATOR))
