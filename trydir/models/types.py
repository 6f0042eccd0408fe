"""Core domain models for trydir.

These are product-level concepts, not database schemas.
SurrealDB records are converted into these models but the models remain DB-agnostic.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# --- Enums ---


class SelectionState(StrEnum):
    START = "start"
    NO_HISTORY = "no_history"
    SEARCHING = "searching"
    NO_MATCH = "no_match"
    SINGLE_MATCH = "single_match"
    MULTI_MATCH = "multi_match"
    AUTO_FIRST = "auto_first"
    USER_CHOSE_CANDIDATE = "user_chose_candidate"
    USER_CHOSE_NEW = "user_chose_new"
    USER_CANCELLED = "user_cancelled"


class Outcome(StrEnum):
    REUSE = "reuse"
    CREATE_NEW = "create_new"
    ABORT = "abort"


# --- Core Models ---


class FolderRecord(BaseModel):
    """A scratch folder known to the history store."""

    id: str | None = None
    path: str
    name: str
    date_created: str
    created_at: datetime
    times_opened: int = 1
    last_opened: datetime


class Candidate(BaseModel):
    """A folder record scored against the current query. Lives for one invocation."""

    record: FolderRecord
    score: int = 0
    positions: list[int] = Field(default_factory=list)  # matched indexes into record.name


class SelectionOption(BaseModel):
    """One line of the disambiguation list. ``candidate`` is None for "create new"."""

    label: str
    candidate: Candidate | None = None

    @property
    def creates_new(self) -> bool:
        return self.candidate is None
