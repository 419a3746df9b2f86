"""Endpoints browsing the virtual file tree."""
from __future__ import annotations

import functools
from email.utils import format_datetime
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from urllib.parse import quote

from fastapi import APIRouter, Request, Response
from fastapi.responses import StreamingResponse

from report_dashboard.errors import InternalFailure, InvalidInput, NotAFile, NotFound, VirtualFileError
from report_dashboard.models import DEFAULT_MIME_TYPE, VirtualEntry
from report_dashboard.schemas import InfoResponse, ListResponse, SearchResponse, StatsResponse
from report_dashboard.services.logging_service import logging_service
from report_dashboard.services.virtual_file_store import VirtualFileStore
from report_dashboard.utils.paths import base_name, get_parent, is_traversal, normalize_path

router = APIRouter(prefix="/api", tags=["files"])
logger = logging_service.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _store(request: Request) -> VirtualFileStore:
    return request.app.state.file_store


def _failure(label: str) -> Callable[[F], F]:
    """Report unexpected errors of a handler as ``label`` with a 500."""

    def decorator(handler: F) -> F:
        @functools.wraps(handler)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await handler(*args, **kwargs)
            except VirtualFileError:
                raise
            except Exception as exc:
                logger.exception("%s", label)
                raise InternalFailure(str(exc) or "Unknown error", error=label) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


def _require_path(path: Optional[str]) -> str:
    if path is None:
        raise InvalidInput(error="Invalid path parameter")
    return _checked_path(path)


def _checked_path(path: str) -> str:
    if is_traversal(path):
        raise InvalidInput(f"Path traversal is not allowed: {path}", error="Invalid path parameter")
    return path


def _parse_limit(limit: Optional[str], default: int) -> int:
    if limit is None or limit == "":
        return default
    try:
        value = int(limit)
    except ValueError as exc:
        raise InvalidInput(f"Limit must be an integer: {limit}", error="Invalid limit parameter") from exc
    if value <= 0:
        raise InvalidInput(f"Limit must be positive: {value}", error="Invalid limit parameter")
    return value


def _envelope(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": True, "data": data}


def _content_headers(entry: VirtualEntry, attachment: Optional[str] = None) -> Dict[str, str]:
    headers = {"Last-Modified": format_datetime(entry.updated_at, usegmt=True)}
    if attachment is not None:
        headers["Content-Disposition"] = _disposition(attachment)
    return headers


def _disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    if ascii_name == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/list", response_model=ListResponse)
@_failure("Failed to list directory")
async def list_directory(request: Request, path: str = "") -> dict:
    _checked_path(path)
    items = await _store(request).get_directory_contents(path)
    current = normalize_path(path)
    return _envelope(
        {
            "items": [item.to_summary() for item in items],
            "currentPath": path,
            "parentPath": get_parent(current),
        }
    )


@router.get("/file")
@_failure("Failed to read file")
async def read_file(request: Request, path: Optional[str] = None) -> Response:
    path = _require_path(path)
    store = _store(request)
    entry = await store.get_file_info(path)
    if entry is None:
        raise NotFound(path=path)
    if entry.is_folder:
        raise NotAFile(path=path)
    content = await store.get_file_content(path)
    return Response(
        content=content,
        media_type=entry.mime_type or DEFAULT_MIME_TYPE,
        headers=_content_headers(entry),
    )


@router.get("/download")
@_failure("Failed to download item")
async def download_item(request: Request, path: Optional[str] = None) -> Response:
    path = _require_path(path)
    store = _store(request)
    entry = await store.get_file_info(path)
    if entry is None:
        raise NotFound(path=path, error="Item not found")
    stream = await store.get_download_stream(path)
    if entry.is_folder:
        return StreamingResponse(
            stream,
            media_type="application/zip",
            headers={"Content-Disposition": _disposition(f"{base_name(entry.path).strip('/') or 'root'}.zip")},
        )
    return StreamingResponse(
        stream,
        media_type=entry.mime_type or DEFAULT_MIME_TYPE,
        headers=_content_headers(entry, attachment=entry.name),
    )


@router.get("/info", response_model=InfoResponse)
@_failure("Failed to get file info")
async def file_info(request: Request, path: Optional[str] = None) -> dict:
    path = _require_path(path)
    entry = await _store(request).get_file_info(path)
    if entry is None:
        raise NotFound(path=path)
    return _envelope(entry.to_info())


@router.get("/search", response_model=SearchResponse)
@_failure("Failed to search files")
async def search_files(request: Request, q: Optional[str] = None, limit: Optional[str] = None) -> dict:
    if q is None:
        raise InvalidInput(error="Invalid search query")
    store = _store(request)
    results = await store.search_files(q, _parse_limit(limit, store.default_search_limit))
    return _envelope(
        {
            "results": [item.to_summary() for item in results],
            "query": q,
            "total": len(results),
        }
    )


@router.get("/stats", response_model=StatsResponse)
@_failure("Failed to get file statistics")
async def file_stats(request: Request, path: str = "") -> dict:
    _checked_path(path)
    stats = await _store(request).get_file_stats(path)
    return _envelope({"path": path, **stats})
