"""Selection protocol: ranked candidates -> reuse, create new, or abort.

    START ─┬─ NO_HISTORY ──────────────────────────────── CREATE_NEW
           └─ SEARCHING ─┬─ NO_MATCH ──────────────────── CREATE_NEW
                         ├─ SINGLE_MATCH ──────────────── REUSE
                         └─ MULTI_MATCH ─┬─ AUTO_FIRST ── REUSE
                                         ├─ USER_CHOSE_CANDIDATE ── REUSE
                                         ├─ USER_CHOSE_NEW ──────── CREATE_NEW
                                         └─ USER_CANCELLED ──────── ABORT

``select`` decides; it never touches the store or the filesystem. The
caller applies the outcome through ``trydir.lifecycle``.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.types import (
    Candidate,
    FolderRecord,
    Outcome,
    SelectionOption,
    SelectionState,
)
from ..ranking.policy import rank
from .strategies import SelectionStrategy

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHOICES = 3


@dataclass
class Decision:
    """Result of one selection run."""

    outcome: Outcome
    state: SelectionState
    trail: list[SelectionState]
    candidates: list[Candidate] = field(default_factory=list)
    options: list[SelectionOption] = field(default_factory=list)
    record: FolderRecord | None = None


def format_label(candidate: Candidate, disambiguate: bool = False) -> str:
    record = candidate.record
    label = f"{record.name} ({record.date_created}, opened {record.times_opened} times)"
    if disambiguate:
        label += f" [{record.path}]"
    return label


def create_new_label(query: str) -> str:
    return f"Create new: {query}"


def build_options(
    query: str,
    candidates: Sequence[Candidate],
    max_choices: int = DEFAULT_MAX_CHOICES,
) -> list[SelectionOption]:
    """Top ``max_choices`` candidates followed by the "create new" option."""
    shown = list(candidates[:max_choices])
    name_counts = Counter(c.record.name for c in shown)
    options = [
        SelectionOption(label=format_label(c, name_counts[c.record.name] > 1), candidate=c)
        for c in shown
    ]
    options.append(SelectionOption(label=create_new_label(query)))
    return options


def select(
    query: str,
    records: Sequence[FolderRecord],
    strategy: SelectionStrategy,
    max_choices: int = DEFAULT_MAX_CHOICES,
) -> Decision:
    """Run the selection state machine for ``query`` over the folder history."""
    trail = [SelectionState.START]

    def finish(outcome: Outcome, state: SelectionState, **kwargs) -> Decision:
        if trail[-1] != state:
            trail.append(state)
        logger.debug("Selection %s: %s", outcome, " -> ".join(trail))
        return Decision(outcome=outcome, state=state, trail=trail, **kwargs)

    if not records:
        return finish(Outcome.CREATE_NEW, SelectionState.NO_HISTORY)

    trail.append(SelectionState.SEARCHING)
    candidates = rank(query, records)

    if not candidates:
        return finish(Outcome.CREATE_NEW, SelectionState.NO_MATCH)

    if len(candidates) == 1:
        return finish(
            Outcome.REUSE,
            SelectionState.SINGLE_MATCH,
            candidates=candidates,
            record=candidates[0].record,
        )

    trail.append(SelectionState.MULTI_MATCH)
    options = build_options(query, candidates, max_choices)
    index = strategy.choose(query, options)

    if index is None:
        return finish(
            Outcome.ABORT,
            SelectionState.USER_CANCELLED,
            candidates=candidates,
            options=options,
        )
    if not 0 <= index < len(options):
        raise ValueError(f"Selection index {index} out of range for {len(options)} options")

    chosen = options[index]
    if chosen.candidate is None:
        return finish(
            Outcome.CREATE_NEW,
            SelectionState.USER_CHOSE_NEW,
            candidates=candidates,
            options=options,
        )

    state = (
        SelectionState.USER_CHOSE_CANDIDATE
        if strategy.interactive
        else SelectionState.AUTO_FIRST
    )
    return finish(
        Outcome.REUSE,
        state,
        candidates=candidates,
        options=options,
        record=chosen.candidate.record,
    )
