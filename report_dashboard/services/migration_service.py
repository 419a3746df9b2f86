"""Mirrors the fixture tree from disk into the document store."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from report_dashboard.errors import DuplicatePath
from report_dashboard.models import EntryMetadata, VirtualEntry
from report_dashboard.services.logging_service import logging_service
from report_dashboard.services.store_adapter import StoreAdapter
from report_dashboard.utils.file_utils import guess_mime_type, read_text
from report_dashboard.utils.paths import ROOT, base_name, join_path

TAG_KEYWORDS = ["test", "log", "error", "debug", "integration", "unit", "e2e", "performance", "security"]

logger = logging_service.get_logger(__name__)


def generate_tags(path: str) -> List[str]:
    return [keyword for keyword in TAG_KEYWORDS if keyword in path]


class MigrationService:
    """Copies the on-disk tree into the ``files`` collection.

    The store is cleared first. Items that fail to copy are logged and
    skipped so that one unreadable file does not stop the mirror.
    """

    def __init__(self, store: StoreAdapter) -> None:
        self.store = store

    async def migrate_filesystem_to_store(self, base_dir: Path | str) -> int:
        logger.info("Starting data migration from file system to MongoDB...")
        await self.store.ensure_indexes()
        removed = await self.store.clear()
        logger.info("Cleared existing MongoDB data (%s records)", removed)
        migrated = await self._migrate(Path(base_dir), ROOT)
        logger.info("Data migration completed: %s records", migrated)
        return migrated

    async def _migrate(self, disk_path: Path, path: str) -> int:
        try:
            stat = disk_path.stat()
            is_folder = disk_path.is_dir()
            name = base_name(path)
            entry = VirtualEntry(
                name=name,
                path=path,
                is_folder=is_folder,
                size=0 if is_folder else stat.st_size,
                mime_type=None if is_folder else guess_mime_type(name),
                content=None if is_folder else read_text(disk_path),
                created_at=datetime.fromtimestamp(getattr(stat, "st_birthtime", stat.st_ctime), tz=timezone.utc),
                updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                metadata=EntryMetadata(
                    description=None if is_folder else f"Test file: {name}",
                    tags=[] if is_folder else generate_tags(path),
                    author=None if is_folder else "Test System",
                    version=None if is_folder else "1.0.0",
                ),
            )
            await self.store.create(entry)
        except (OSError, DuplicatePath) as exc:
            logger.error("Error migrating %s to %s: %s", disk_path, path, exc)
            return 0

        migrated = 1
        if is_folder:
            logger.debug("Created directory: %s", path)
            try:
                names = os.listdir(disk_path)
            except OSError as exc:
                logger.error("Error reading directory %s: %s", disk_path, exc)
                return migrated
            for name in names:
                migrated += await self._migrate(disk_path / name, join_path(path, name))
        else:
            logger.debug("Created file: %s (%s bytes)", path, entry.size)
        return migrated

    async def verify_migration(self) -> bool:
        if await self.store.info(ROOT) is None:
            logger.error("Root directory not found in MongoDB")
            return False
        total = await self.store.count()
        if total == 0:
            logger.error("No items found in MongoDB")
            return False
        logger.info("Migration verification passed: %s items found", total)
        return True

    async def get_migration_stats(self) -> Dict[str, int]:
        return await self.store.totals()
