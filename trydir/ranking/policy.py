"""Rank-and-tiebreak policy: one total order over fuzzy candidates, best first."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ..models.types import Candidate, FolderRecord
from .fuzzy import find

# Applied in priority order. Each key returns a value where larger ranks earlier.
RANK_KEYS: tuple[Callable[[Candidate], Any], ...] = (
    lambda c: c.score,
    lambda c: c.record.times_opened,
    lambda c: c.record.last_opened.timestamp(),
)


def sort_key(candidate: Candidate) -> tuple[Any, ...]:
    """Composite ascending sort key built from RANK_KEYS."""
    return tuple(-key(candidate) for key in RANK_KEYS)


def order(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Order candidates best first.

    The sort is stable: candidates equal on every key keep their input order.
    """
    return sorted(candidates, key=sort_key)


def rank(query: str, records: Iterable[FolderRecord]) -> list[Candidate]:
    """Fuzzy-match ``query`` against ``records`` and order the matches."""
    return order(find(query, records))
