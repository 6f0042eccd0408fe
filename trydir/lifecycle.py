"""Folder lifecycle: create a dated scratch folder, or record another visit.

Both operations persist before returning a path, so a caller never emits a
path whose state failed to reach the store.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .errors import FilesystemError, InvalidQuery, StoreError
from .models.types import FolderRecord

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r"[/\\" + re.escape(os.sep) + r"]+")


class RecordStore(Protocol):
    async def insert(self, record: FolderRecord) -> str: ...

    async def update_usage(
        self, folder_id: str, times_opened: int, last_opened: datetime
    ) -> FolderRecord: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def folder_name(query: str, now: datetime, date_format: str = "%Y-%m-%d") -> str:
    """``<date>-<query>`` with the local calendar date and path separators flattened."""
    cleaned = _SEPARATORS_RE.sub("-", query.strip())
    return f"{now.astimezone().strftime(date_format)}-{cleaned}"


async def reuse_folder(
    store: RecordStore, record: FolderRecord, now: datetime | None = None
) -> FolderRecord:
    """Count one more opening of ``record`` and persist it."""
    if record.id is None:
        raise StoreError(f"Folder {record.path} has no record id")
    now = now or utcnow()
    updated = record.model_copy(
        update={
            "times_opened": record.times_opened + 1,
            "last_opened": max(now, record.last_opened),
        }
    )
    await store.update_usage(updated.id, updated.times_opened, updated.last_opened)
    logger.info("Reusing %s (opened %d times)", updated.path, updated.times_opened)
    return updated


async def create_folder(
    store: RecordStore,
    base_dir: Path,
    query: str,
    now: datetime | None = None,
    date_format: str = "%Y-%m-%d",
) -> FolderRecord:
    """Create ``<base_dir>/<date>-<query>`` and its history record."""
    if not query.strip():
        raise InvalidQuery("A folder name is required to create a new folder")
    now = now or utcnow()
    path = base_dir / folder_name(query, now, date_format)

    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        path.mkdir(exist_ok=False)
    except FileExistsError as exc:
        raise FilesystemError(f"Folder already exists: {path}") from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot create folder {path}: {exc}") from exc

    record = FolderRecord(
        path=str(path),
        name=query,
        date_created=now.astimezone().strftime(date_format),
        created_at=now,
        times_opened=1,
        last_opened=now,
    )
    try:
        record_id = await store.insert(record)
    except StoreError:
        _discard_empty_dir(path)
        raise
    logger.info("Created %s", path)
    return record.model_copy(update={"id": record_id})


def _discard_empty_dir(path: Path) -> None:
    try:
        path.rmdir()
    except OSError:
        logger.warning("Could not remove %s after a failed insert", path, exc_info=True)
