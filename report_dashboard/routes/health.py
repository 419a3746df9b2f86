"""Health check and API banner."""
from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from report_dashboard.services.logging_service import logging_service

router = APIRouter(tags=["health"])
logger = logging_service.get_logger(__name__)

ENDPOINTS = {
    "health": "/api/health",
    "list": "/api/list?path=<directory_path>",
    "file": "/api/file?path=<file_path>",
    "download": "/api/download?path=<item_path>",
    "info": "/api/info?path=<file_path>",
    "search": "/api/search?q=<query>",
    "stats": "/api/stats?path=<path>",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/api/health")
async def health(request: Request) -> JSONResponse:
    try:
        settings = request.app.state.settings
        connection = request.app.state.store_connection
        status = {
            "status": "healthy",
            "timestamp": _timestamp(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "environment": settings.environment,
            "dataDirectory": {
                "exists": settings.data_dir.is_dir(),
                "path": str(settings.data_dir),
            },
            "version": settings.version,
            "mongodb": {"connected": connection.connected},
        }
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "timestamp": _timestamp(), "error": str(exc)},
        )
    return JSONResponse(status_code=200, content=status)


@router.get("/")
async def index(request: Request) -> dict:
    return {
        "message": "Test Report Dashboard API",
        "version": request.app.state.settings.version,
        "endpoints": ENDPOINTS,
    }
