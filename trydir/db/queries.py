"""Reusable SurrealQL query helpers for the folder history.

Note: RecordID objects from the SDK must be converted to strings with str()
before they leave this layer. Record keys are always written as escaped
strings (folder:⟨key⟩) so a key never parses as a number.
"""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime
from typing import Any

from .client import TryDatabase

TABLE = "folder"
_KEY_RE = re.compile(r"[A-Za-z0-9_]+")


def _gen_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


def _record_ref(folder_id: str) -> str:
    """Turn 'folder:abc' (or a bare key) into an escaped record literal."""
    key = folder_id.split(":", 1)[1] if folder_id.startswith(f"{TABLE}:") else folder_id
    key = key.strip("⟨⟩`")
    if not _KEY_RE.fullmatch(key):
        raise ValueError(f"Invalid folder id: {folder_id!r}")
    return f"{TABLE}:⟨{key}⟩"


def format_timestamp(value: datetime) -> str:
    """Fixed-width ISO-8601 UTC with microseconds: lossless and lexically sortable."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _normalize(row: dict[str, Any]) -> dict[str, Any]:
    return {**row, "id": str(row["id"])} if "id" in row else dict(row)


async def create_folder(
    db: TryDatabase,
    path: str,
    name: str,
    date_created: str,
    created_at: datetime,
    times_opened: int = 1,
    last_opened: datetime | None = None,
) -> dict[str, Any]:
    """Create a folder record. Returns the stored row with a string id."""
    fid = _gen_id()
    result = await db.query(
        f"CREATE {_record_ref(fid)} SET path = $path, name = $name, "
        "date_created = $date_created, created_at = $created_at, "
        "times_opened = $times_opened, last_opened = $last_opened",
        {
            "path": path,
            "name": name,
            "date_created": date_created,
            "created_at": format_timestamp(created_at),
            "times_opened": times_opened,
            "last_opened": format_timestamp(last_opened or created_at),
        },
    )
    return _normalize(result[0]) if result else {}


async def get_folder(db: TryDatabase, folder_id: str) -> dict[str, Any] | None:
    """Get a folder by ID."""
    result = await db.query(f"SELECT * FROM {_record_ref(folder_id)}")
    return _normalize(result[0]) if result else None


async def find_folder_by_path(db: TryDatabase, path: str) -> dict[str, Any] | None:
    """Find a folder by its filesystem path."""
    result = await db.query(
        f"SELECT * FROM {TABLE} WHERE path = $path LIMIT 1", {"path": path}
    )
    return _normalize(result[0]) if result else None


async def list_folders(db: TryDatabase) -> list[dict[str, Any]]:
    """List every folder, most recently opened first, then most used."""
    rows = await db.query(
        f"SELECT * FROM {TABLE} ORDER BY last_opened DESC, times_opened DESC"
    )
    return [_normalize(r) for r in rows]


async def update_folder_usage(
    db: TryDatabase,
    folder_id: str,
    times_opened: int,
    last_opened: datetime,
) -> dict[str, Any] | None:
    """Set usage stats on an existing folder. Returns None if the id is unknown."""
    result = await db.query(
        f"UPDATE {_record_ref(folder_id)} SET times_opened = $times_opened, "
        "last_opened = $last_opened",
        {"times_opened": times_opened, "last_opened": format_timestamp(last_opened)},
    )
    return _normalize(result[0]) if result else None


async def count_folders(db: TryDatabase) -> int:
    """Count folder records."""
    result = await db.query(f"SELECT count() FROM {TABLE} GROUP ALL")
    return result[0].get("count", 0) if result else 0
