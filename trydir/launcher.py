"""One invocation: read history, select, apply the outcome, return the target.

``decide`` is synchronous and owns the interactive prompt, so it must run
outside any event loop; ``load_history`` and ``apply`` are the async halves
that touch the store.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .errors import UserCancelled
from .lifecycle import RecordStore, create_folder, reuse_folder
from .models.types import FolderRecord, Outcome
from .selection.protocol import DEFAULT_MAX_CHOICES, Decision, select
from .selection.strategies import SelectionStrategy

logger = logging.getLogger(__name__)


class HistoryStore(RecordStore, Protocol):
    async def list_all(self) -> list[FolderRecord]: ...


@dataclass
class LaunchResult:
    record: FolderRecord
    decision: Decision
    created: bool

    @property
    def path(self) -> str:
        return self.record.path


async def load_history(store: HistoryStore) -> list[FolderRecord]:
    records = await store.list_all()
    logger.debug("Loaded %d folder records", len(records))
    return records


def decide(
    query: str,
    records: Sequence[FolderRecord],
    strategy: SelectionStrategy,
    max_choices: int = DEFAULT_MAX_CHOICES,
) -> Decision:
    """Select over ``records``. Raises UserCancelled when the user aborts."""
    decision = select(query, records, strategy, max_choices=max_choices)
    if decision.outcome is Outcome.ABORT:
        raise UserCancelled("Selection cancelled")
    return decision


async def apply(
    decision: Decision,
    query: str,
    store: RecordStore,
    base_dir: Path,
    *,
    date_format: str = "%Y-%m-%d",
    now: datetime | None = None,
) -> LaunchResult:
    """Persist the outcome of ``decision``: count a reuse or create the folder."""
    if decision.outcome is Outcome.REUSE and decision.record is not None:
        record = await reuse_folder(store, decision.record, now)
        return LaunchResult(record=record, decision=decision, created=False)

    if decision.outcome is not Outcome.CREATE_NEW:
        raise ValueError(f"Cannot apply a {decision.outcome} decision")

    record = await create_folder(store, base_dir, query, now, date_format)
    return LaunchResult(record=record, decision=decision, created=True)


async def launch(
    query: str,
    store: HistoryStore,
    strategy: SelectionStrategy,
    base_dir: Path,
    *,
    max_choices: int = DEFAULT_MAX_CHOICES,
    date_format: str = "%Y-%m-%d",
    now: datetime | None = None,
) -> LaunchResult:
    """Resolve ``query`` to a folder in one pass over a single open store.

    Only for non-blocking strategies; the CLI splits the steps so the prompt
    runs with no event loop active. Nothing is written on UserCancelled.
    """
    records = await load_history(store)
    decision = decide(query, records, strategy, max_choices)
    return await apply(decision, query, store, base_dir, date_format=date_format, now=now)
