"""Router registration helpers."""
from __future__ import annotations

from fastapi import APIRouter

from .files import router as files_router
from .health import router as health_router


def get_routers() -> list[APIRouter]:
    return [
        files_router,
        health_router,
    ]
