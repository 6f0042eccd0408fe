"""SurrealDB client wrapper for trydir.

Uses the Python SDK's embedded engine:
  - file:// for the on-disk folder history
  - mem:// for tests
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from surrealdb import AsyncSurreal

logger = logging.getLogger(__name__)


class TryDatabase:
    """Async SurrealDB client over the embedded engine."""

    NAMESPACE = "try"
    DATABASE = "main"

    def __init__(self, url: str = "mem://") -> None:
        self._url = url
        self._db: AsyncSurreal | None = None

    @classmethod
    def from_path(cls, db_path: Path) -> TryDatabase:
        """Create an embedded client from a filesystem path."""
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(url=f"file://{db_path}")

    @classmethod
    def in_memory(cls) -> TryDatabase:
        """Create an in-memory client (for testing)."""
        return cls(url="mem://")

    async def connect(self) -> None:
        """Connect to the database and select namespace/database."""
        self._db = AsyncSurreal(self._url)
        await self._db.connect()
        await self._db.use(self.NAMESPACE, self.DATABASE)
        logger.debug("Connected to %s", self._url)

    async def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> TryDatabase:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def db(self) -> AsyncSurreal:
        """Get the underlying SurrealDB connection. Raises if not connected."""
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    async def query(self, surql: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Execute a SurrealQL query and return results.

        The SDK may return an error string instead of raising when a statement
        fails inside the engine (e.g. a UNIQUE index violation). That case is
        raised here so callers always get a list back.
        """
        result = await (self.db.query(surql, params) if params else self.db.query(surql))
        if isinstance(result, str):
            raise RuntimeError(f"SurrealDB query error: {result}")
        if not isinstance(result, list):
            return [result] if result is not None else []
        return result
