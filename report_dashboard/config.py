#   Reads the runtime settings of the report dashboard
#
#   Tasks of this module:
#       1. Reads the settings from environment variables
#       2. Merges an optional JSON overrides file on top of the defaults

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from report_dashboard.services.logging_service import logging_service
from report_dashboard.utils.json_io import load_json

CONFIG_FILE_ENV = "REPORT_DASHBOARD_CONFIG"

logger = logging_service.get_logger(__name__)


# Defaults used when neither the environment nor the overrides file set a value
DEFAULT_SETTINGS: Dict[str, Any] = {
    "environment": "development",
    "version": "1.0.0",
    "server": {
        "host": "0.0.0.0",
        "port": 5000,
        "frontend_urls": ["http://localhost:5173"],
    },
    "storage": {
        "data_dir": "/data",
        "generate_fixtures": True,
        "fixture_refresh_seconds": 0,
    },
    "mongodb": {
        "enabled": True,
        "uri": "mongodb://localhost:27017/test-report-dashboard",
        "database": "test-report-dashboard",
        "collection": "files",
        "server_selection_timeout_ms": 5000,
        "socket_timeout_ms": 45000,
        "max_pool_size": 10,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
    "search": {
        "default_limit": 50,
    },
}


@dataclass
class StoreSettings:
    enabled: bool
    uri: str
    database: str
    collection: str
    server_selection_timeout_ms: int
    socket_timeout_ms: int
    max_pool_size: int


@dataclass
class AppSettings:
    data_dir: Path
    host: str
    port: int
    frontend_urls: List[str]
    environment: str
    version: str
    log_level: str
    log_file: Optional[Path]
    generate_fixtures: bool
    fixture_refresh_seconds: int
    search_limit: int
    store: StoreSettings


def _deep_update(target: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
    return target


# Reads an integer, keeping the fallback when the value cannot be parsed
def _read_int(value: Any, fallback: int, name: str) -> int:
    if value is None or value == "":
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s: %r, using %s", name, value, fallback)
        return fallback


def _read_bool(value: Any, fallback: bool) -> bool:
    if value is None or value == "":
        return fallback
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _split_origins(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(origin).strip() for origin in value if str(origin).strip()]
    return [origin.strip() for origin in str(value).split(",") if origin.strip()]


def _environment_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    def put(section: Optional[str], key: str, value: Optional[str]) -> None:
        if value is None:
            return
        if section is None:
            overrides[key] = value
        else:
            overrides.setdefault(section, {})[key] = value

    put(None, "environment", env.get("APP_ENV") or env.get("NODE_ENV"))
    put(None, "version", env.get("APP_VERSION"))
    put("server", "host", env.get("HOST"))
    put("server", "port", env.get("PORT"))
    put("server", "frontend_urls", env.get("FRONTEND_URLS") or env.get("FRONTEND_URL"))
    put("storage", "data_dir", env.get("DATA_DIR"))
    put("storage", "generate_fixtures", env.get("GENERATE_FIXTURES"))
    put("storage", "fixture_refresh_seconds", env.get("FIXTURE_REFRESH_SECONDS"))
    put("mongodb", "enabled", env.get("MONGODB_ENABLED"))
    put("mongodb", "uri", env.get("MONGODB_URI"))
    put("mongodb", "database", env.get("MONGODB_DATABASE"))
    put("logging", "level", env.get("LOG_LEVEL"))
    put("logging", "file", env.get("LOG_FILE"))
    put("search", "default_limit", env.get("SEARCH_LIMIT"))
    return overrides


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    config_file: Path | str | None = None,
) -> AppSettings:
    """Build the settings from defaults, an overrides file and the environment.

    The environment wins over the overrides file, which wins over the
    defaults.
    """
    env = os.environ if env is None else env
    raw = deepcopy(DEFAULT_SETTINGS)

    config_path = config_file or env.get(CONFIG_FILE_ENV)
    if config_path:
        overrides = load_json(Path(config_path))
        if isinstance(overrides, dict):
            _deep_update(raw, overrides)
        else:
            logger.warning("Ignoring settings file %s: not a JSON object", config_path)

    _deep_update(raw, _environment_overrides(env))

    defaults_server = DEFAULT_SETTINGS["server"]
    defaults_storage = DEFAULT_SETTINGS["storage"]
    defaults_mongo = DEFAULT_SETTINGS["mongodb"]
    server = raw["server"]
    storage = raw["storage"]
    mongo = raw["mongodb"]
    log_file = raw["logging"].get("file")

    store = StoreSettings(
        enabled=_read_bool(mongo.get("enabled"), defaults_mongo["enabled"]),
        uri=str(mongo.get("uri") or defaults_mongo["uri"]),
        database=str(mongo.get("database") or defaults_mongo["database"]),
        collection=str(mongo.get("collection") or defaults_mongo["collection"]),
        server_selection_timeout_ms=_read_int(
            mongo.get("server_selection_timeout_ms"),
            defaults_mongo["server_selection_timeout_ms"],
            "mongodb.server_selection_timeout_ms",
        ),
        socket_timeout_ms=_read_int(
            mongo.get("socket_timeout_ms"), defaults_mongo["socket_timeout_ms"], "mongodb.socket_timeout_ms"
        ),
        max_pool_size=_read_int(
            mongo.get("max_pool_size"), defaults_mongo["max_pool_size"], "mongodb.max_pool_size"
        ),
    )
    return AppSettings(
        data_dir=Path(storage.get("data_dir") or defaults_storage["data_dir"]),
        host=str(server.get("host") or defaults_server["host"]),
        port=_read_int(server.get("port"), defaults_server["port"], "PORT"),
        frontend_urls=_split_origins(server.get("frontend_urls") or defaults_server["frontend_urls"]),
        environment=str(raw.get("environment") or DEFAULT_SETTINGS["environment"]),
        version=str(raw.get("version") or DEFAULT_SETTINGS["version"]),
        log_level=str(raw["logging"].get("level") or "INFO"),
        log_file=Path(log_file) if log_file else None,
        generate_fixtures=_read_bool(storage.get("generate_fixtures"), defaults_storage["generate_fixtures"]),
        fixture_refresh_seconds=_read_int(
            storage.get("fixture_refresh_seconds"),
            defaults_storage["fixture_refresh_seconds"],
            "FIXTURE_REFRESH_SECONDS",
        ),
        search_limit=_read_int(
            raw["search"].get("default_limit"), DEFAULT_SETTINGS["search"]["default_limit"], "SEARCH_LIMIT"
        ),
        store=store,
    )
