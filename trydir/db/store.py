"""Typed record store over the folder history.

Converts raw rows into FolderRecord models and SDK failures into StoreError,
so the rest of the package never sees SurrealDB specifics.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from ..config import TryConfig
from ..errors import ConstraintViolation, RecordNotFound, StoreError
from ..models.types import FolderRecord
from . import queries
from .client import TryDatabase
from .schema import apply_schema

logger = logging.getLogger(__name__)


def _to_record(row: dict[str, Any]) -> FolderRecord:
    try:
        return FolderRecord.model_validate(row)
    except ValueError as exc:
        raise StoreError(f"Malformed folder record {row.get('id')}: {exc}") from exc


class FolderStore:
    """Folder history: full scan, insert, and usage update by id."""

    def __init__(self, db: TryDatabase) -> None:
        self._db = db

    async def list_all(self) -> list[FolderRecord]:
        """All records, most recently opened first, then most used."""
        try:
            rows = await queries.list_folders(self._db)
        except Exception as exc:
            raise StoreError(f"Cannot read folder history: {exc}") from exc
        return [_to_record(r) for r in rows]

    async def get(self, folder_id: str) -> FolderRecord | None:
        try:
            row = await queries.get_folder(self._db, folder_id)
        except ValueError:
            return None
        except Exception as exc:
            raise StoreError(f"Cannot read folder {folder_id}: {exc}") from exc
        return _to_record(row) if row else None

    async def insert(self, record: FolderRecord) -> str:
        """Insert a new record and return its id.

        Raises ConstraintViolation when another record already owns the path.
        """
        try:
            if await queries.find_folder_by_path(self._db, record.path) is not None:
                raise ConstraintViolation(f"A folder record already exists for {record.path}")
            row = await queries.create_folder(
                self._db,
                path=record.path,
                name=record.name,
                date_created=record.date_created,
                created_at=record.created_at,
                times_opened=record.times_opened,
                last_opened=record.last_opened,
            )
        except StoreError:
            raise
        except Exception as exc:
            if "already contains" in str(exc):
                raise ConstraintViolation(
                    f"A folder record already exists for {record.path}"
                ) from exc
            raise StoreError(f"Cannot insert folder {record.path}: {exc}") from exc
        if not row:
            raise StoreError(f"Insert of {record.path} returned no record")
        logger.debug("Inserted %s for %s", row["id"], record.path)
        return row["id"]

    async def update_usage(
        self, folder_id: str, times_opened: int, last_opened: datetime
    ) -> FolderRecord:
        """Persist usage stats. Raises RecordNotFound for an unknown id."""
        try:
            row = await queries.update_folder_usage(
                self._db, folder_id, times_opened, last_opened
            )
        except ValueError as exc:
            raise RecordNotFound(str(exc)) from exc
        except Exception as exc:
            raise StoreError(f"Cannot update folder {folder_id}: {exc}") from exc
        if row is None:
            raise RecordNotFound(f"Folder record not found: {folder_id}")
        logger.debug("Updated %s: times_opened=%d", folder_id, times_opened)
        return _to_record(row)


@asynccontextmanager
async def open_store(config: TryConfig) -> AsyncIterator[FolderStore]:
    """Open the history for one invocation; always closed on the way out."""
    db_path = config.resolved_db_path
    try:
        db = TryDatabase.from_path(db_path)
        await db.connect()
    except Exception as exc:
        raise StoreError(f"Cannot open folder history at {db_path}: {exc}") from exc
    try:
        try:
            await apply_schema(db)
        except Exception as exc:
            raise StoreError(f"Cannot initialize folder history: {exc}") from exc
        yield FolderStore(db)
    finally:
        await db.close()
