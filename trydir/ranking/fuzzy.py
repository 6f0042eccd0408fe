"""Fuzzy subsequence matching of a query against folder names.

Every query character must appear in the name, in order, ignoring case.
Among all alignments the highest scoring one is kept. Scoring favours:

  - the first character of the name
  - characters right after a separator (``-``, ``_``, space, ``.``, ``/``)
  - camelCase humps
  - runs of adjacent matches

and penalizes unmatched leading characters (capped) and every character of
the name that is left unmatched.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models.types import Candidate, FolderRecord

MATCH_SCORE = 1
FIRST_CHAR_BONUS = 10
SEPARATOR_BONUS = 20
CAMEL_BONUS = 20
ADJACENT_BONUS = 5
UNMATCHED_LEADING_PENALTY = -5
MAX_LEADING_PENALTY = -15
UNMATCHED_PENALTY = -1

SEPARATORS = frozenset("-_ ./\\")

NEUTRAL_SCORE = 0


@dataclass(frozen=True)
class FuzzyMatch:
    score: int
    positions: tuple[int, ...]


def _fold(s: str) -> str:
    # per character, so indexes into the folded string stay valid for the original
    return "".join(c if len(c.casefold()) != 1 else c.casefold() for c in s)


def _position_bonus(text: str, j: int) -> int:
    if j == 0:
        return FIRST_CHAR_BONUS
    prev, cur = text[j - 1], text[j]
    if prev in SEPARATORS:
        return SEPARATOR_BONUS
    if prev.islower() and cur.isupper():
        return CAMEL_BONUS
    return 0


def match(query: str, text: str) -> FuzzyMatch | None:
    """Score ``query`` against ``text``; None unless query is a subsequence of text."""
    n, m = len(query), len(text)
    if n == 0 or n > m:
        return None

    q, t = _fold(query), _fold(text)

    # best[i][j]: best score with q[i] matched at t[j]; back[i][j]: where q[i-1] matched
    best: list[list[int | None]] = [[None] * m for _ in range(n)]
    back: list[list[int]] = [[-1] * m for _ in range(n)]

    for j in range(m):
        if t[j] == q[0]:
            leading = max(UNMATCHED_LEADING_PENALTY * j, MAX_LEADING_PENALTY)
            best[0][j] = MATCH_SCORE + _position_bonus(text, j) + leading

    for i in range(1, n):
        prev_row = best[i - 1]
        # running max over prev_row[0 .. j-2], i.e. non-adjacent predecessors
        run_max: int | None = None
        run_arg = -1
        for j in range(i, m):
            if j >= 2 and prev_row[j - 2] is not None:
                if run_max is None or prev_row[j - 2] > run_max:
                    run_max, run_arg = prev_row[j - 2], j - 2
            if t[j] != q[i]:
                continue
            options: list[tuple[int, int]] = []
            if run_max is not None:
                options.append((run_max, run_arg))
            adjacent = prev_row[j - 1]
            if adjacent is not None:
                options.append((adjacent + ADJACENT_BONUS, j - 1))
            if not options:
                continue
            score, k = max(options, key=lambda o: (o[0], -o[1]))
            best[i][j] = score + MATCH_SCORE + _position_bonus(text, j)
            back[i][j] = k

    last = best[n - 1]
    end = -1
    for j in range(m):
        if last[j] is not None and (end < 0 or last[j] > last[end]):
            end = j
    if end < 0:
        return None

    positions = [end]
    for i in range(n - 1, 0, -1):
        positions.append(back[i][positions[-1]])
    positions.reverse()

    score = last[end] + UNMATCHED_PENALTY * (m - n)
    return FuzzyMatch(score=score, positions=tuple(positions))


def find(query: str, records: Iterable[FolderRecord]) -> list[Candidate]:
    """Candidates whose name matches ``query``, in store order.

    A blank query matches every record with the neutral score.
    """
    if not query.strip():
        return [Candidate(record=r, score=NEUTRAL_SCORE) for r in records]

    candidates: list[Candidate] = []
    for record in records:
        found = match(query, record.name)
        if found is not None:
            candidates.append(
                Candidate(record=record, score=found.score, positions=list(found.positions))
            )
    return candidates
