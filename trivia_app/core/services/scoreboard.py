"""Service for awarding round points and ranking a quiz session."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from threading import Lock

from trivia_app.constants.quiz_constants import POINTS_BY_RANK
from trivia_app.core.models import Participant, ScoreRow


@dataclass(slots=True)
class ScoreEntry:
    """Mutable scoreboard entry used internally."""

    identity: str
    points: int = 0
    rounds_won: int = 0


class Scoreboard:
    """Session scores per identity. Points only ever grow.

    Identities that never scored are not listed. Rankings are ordered by
    points descending, then identity ascending.
    """

    def __init__(self, points_by_rank: Sequence[int] = POINTS_BY_RANK) -> None:
        if any(points < 0 for points in points_by_rank):
            raise ValueError("Points per rank must not be negative.")
        self._points_by_rank = tuple(points_by_rank)
        self._scores: dict[str, ScoreEntry] = {}
        self._lock = Lock()

    @property
    def points_by_rank(self) -> tuple[int, ...]:
        return self._points_by_rank

    def award(self, ranked: Sequence[Participant]) -> dict[str, int]:
        """Award rank points to the time-ordered correct participants of a round.

        Returns the points awarded in this call.
        """
        awarded: dict[str, int] = {}
        for rank, participant in enumerate(ranked[: len(self._points_by_rank)]):
            points = self._points_by_rank[rank]
            if points:
                awarded[participant.identity] = points
        with self._lock:
            for identity, points in awarded.items():
                entry = self._entry(identity)
                entry.points += points
            if ranked:
                self._entry(ranked[0].identity).rounds_won += 1
        return awarded

    def sorted_scores(self) -> list[ScoreRow]:
        with self._lock:
            rows = [
                ScoreRow(identity=entry.identity, points=entry.points)
                for entry in self._scores.values()
                if entry.points > 0
            ]
        rows.sort(key=lambda row: (-row.points, row.identity))
        return rows

    def snapshot(self) -> dict[str, int]:
        return {row.identity: row.points for row in self.sorted_scores()}

    def points_for(self, identity: str) -> int:
        with self._lock:
            entry = self._scores.get(identity)
            return entry.points if entry else 0

    def rounds_won(self, identity: str) -> int:
        with self._lock:
            entry = self._scores.get(identity)
            return entry.rounds_won if entry else 0

    def total(self) -> int:
        with self._lock:
            return sum(entry.points for entry in self._scores.values())

    def __len__(self) -> int:
        return len(self.sorted_scores())

    def _entry(self, identity: str) -> ScoreEntry:
        entry = self._scores.get(identity)
        if entry is None:
            entry = ScoreEntry(identity=identity)
            self._scores[identity] = entry
        return entry
