from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from report_dashboard.config import AppSettings, load_settings
from report_dashboard.errors import InternalFailure, StoreUnavailable, VirtualFileError
from report_dashboard.routes import get_routers
from report_dashboard.services.filesystem_adapter import FileSystemAdapter
from report_dashboard.services.fixture_generator import FixtureRefresher, generate_fixtures
from report_dashboard.services.logging_service import logging_service
from report_dashboard.services.migration_service import MigrationService
from report_dashboard.services.store_adapter import StoreAdapter
from report_dashboard.services.store_connection import StoreConnection
from report_dashboard.services.virtual_file_store import VirtualFileStore

logger = logging_service.get_logger("report_dashboard")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(VirtualFileError)
    async def virtual_file_error(request: Request, exc: VirtualFileError) -> JSONResponse:
        content = {"success": False, "error": exc.error}
        if isinstance(exc, InternalFailure):
            content["message"] = str(exc)
        elif exc.status_code >= 500:
            logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request parameters", "message": str(exc.errors())},
        )


async def _prepare_data(app: FastAPI) -> None:
    settings: AppSettings = app.state.settings
    if settings.generate_fixtures:
        logger.info("Creating fabricated file system in %s", settings.data_dir)
        generate_fixtures(settings.data_dir)

    if not app.state.store_connection.connected:
        logger.warning("MongoDB not connected, using the file system directly")
        return
    migration: MigrationService = app.state.migration
    try:
        await migration.migrate_filesystem_to_store(settings.data_dir)
        if await migration.verify_migration():
            stats = await migration.get_migration_stats()
            logger.info(
                "Migration completed: %s files, %s directories, %s bytes",
                stats["totalFiles"],
                stats["totalDirectories"],
                stats["totalSize"],
            )
        else:
            logger.warning("MongoDB migration failed, but file system data is available")
    except StoreUnavailable as exc:
        logger.warning("MongoDB migration failed, using file system directly: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: AppSettings = app.state.settings
    logging_service.configure(settings.log_level, settings.log_file)
    logger.info("Backend startup initiated")
    app.state.started_at = time.monotonic()

    await app.state.store_connection.connect()
    await _prepare_data(app)
    app.state.refresher.start()
    logger.info("Serving data directory %s (environment: %s)", settings.data_dir, settings.environment)
    try:
        yield
    finally:
        await app.state.refresher.stop()
        await app.state.store_connection.close()
        logger.info("Backend shut down")


def create_app(settings: Optional[AppSettings] = None, connection: Optional[StoreConnection] = None) -> FastAPI:
    settings = settings or load_settings()
    connection = connection or StoreConnection(settings.store)

    app = FastAPI(title="Test Report Dashboard API", version=settings.version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.frontend_urls,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info("%s %s - %s - %.0fms", request.method, request.url.path, response.status_code, duration)
        return response

    store = StoreAdapter(connection)
    filesystem = FileSystemAdapter(settings.data_dir)

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.store_connection = connection
    app.state.file_store = VirtualFileStore(store, filesystem, settings.search_limit)
    app.state.migration = MigrationService(store)
    app.state.refresher = FixtureRefresher(settings.data_dir, settings.fixture_refresh_seconds)

    register_error_handlers(app)
    for router in get_routers():
        app.include_router(router)
    return app


app = create_app()
