"""SurrealDB schema definitions for trydir. Idempotent — safe to re-run."""

from __future__ import annotations

from .client import TryDatabase

SCHEMA_VERSION = 1

# Each statement is a separate list item to avoid semicolon-splitting issues.
SCHEMA_STATEMENTS: list[str] = [
    # Folder history. Timestamps are fixed-width ISO-8601 UTC strings so that
    # string order equals time order.
    "DEFINE TABLE IF NOT EXISTS folder SCHEMAFULL",
    "DEFINE FIELD IF NOT EXISTS path ON folder TYPE string",
    "DEFINE FIELD IF NOT EXISTS name ON folder TYPE string",
    "DEFINE FIELD IF NOT EXISTS date_created ON folder TYPE string",
    "DEFINE FIELD IF NOT EXISTS created_at ON folder TYPE string",
    "DEFINE FIELD IF NOT EXISTS times_opened ON folder TYPE int DEFAULT 1",
    "DEFINE FIELD IF NOT EXISTS last_opened ON folder TYPE string",

    "DEFINE INDEX IF NOT EXISTS idx_folder_path ON folder FIELDS path UNIQUE",
    "DEFINE INDEX IF NOT EXISTS idx_folder_recency ON folder FIELDS last_opened, times_opened",
]

META_STATEMENT = f"UPSERT meta:schema SET version = {SCHEMA_VERSION}, updated_at = time::now()"


async def apply_schema(db: TryDatabase) -> None:
    """Apply the full schema to the database. Idempotent."""
    for statement in SCHEMA_STATEMENTS:
        await db.query(statement)
    await db.query(META_STATEMENT)
