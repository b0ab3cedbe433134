"""Session orchestration: a chain of rounds sharing one scoreboard."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from functools import partial
import logging
import random
from threading import Lock

from trivia_app.constants.quiz_constants import (
    CORRECT_ANSWER_CAPACITY,
    DEFAULT_ROUNDS_PER_QUIZ,
    POINTS_BY_RANK,
)
from trivia_app.core.errors import AlreadyInProgressError, QuizFinishedError
from trivia_app.core.models import Participant, QuestionFilter, RoundSpec, ScoreRow
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.core.services.round_state import Round
from trivia_app.core.services.scoreboard import Scoreboard

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[str, list[Participant]], None]


class Quiz:
    """Owns the round chain and the session scoreboard.

    Rounds are built up front and linked through ``Round.next_round``; the
    quiz walks them by index. ``in_progress`` is true exactly while the
    current round is open. The quiz lock only guards the round cursor and
    session bookkeeping; answer submission goes straight to the round.
    """

    def __init__(self, rounds: Sequence[Round], points_by_rank: Sequence[int] = POINTS_BY_RANK) -> None:
        if not rounds:
            raise ValueError("A quiz needs at least one round.")
        for current, following in zip(rounds, rounds[1:]):
            current.next_round = following
        rounds[-1].next_round = None

        self._rounds: tuple[Round, ...] = tuple(rounds)
        self._position: int = -1
        self._current_round: Round | None = None
        self._in_progress: bool = False
        self._scoreboard = Scoreboard(points_by_rank)
        self._awarded: list[dict[str, int]] = []
        self._lock = Lock()
        self.started_at: datetime | None = None
        self.last_completed_at: datetime | None = None

    @classmethod
    def start_session(
        cls,
        specs: Sequence[RoundSpec],
        *,
        capacity: int = CORRECT_ANSWER_CAPACITY,
        points_by_rank: Sequence[int] = POINTS_BY_RANK,
        rng: random.Random | None = None,
    ) -> "Quiz":
        rounds = [
            Round(spec, number, capacity=capacity, rng=rng)
            for number, spec in enumerate(specs, start=1)
        ]
        return cls(rounds, points_by_rank=points_by_rank)

    @classmethod
    def from_question_bank(
        cls,
        bank: QuestionBank,
        rounds: int = DEFAULT_ROUNDS_PER_QUIZ,
        filters: QuestionFilter | None = None,
        **kwargs,
    ) -> "Quiz":
        questions = bank.draw(rounds, filters)
        return cls.start_session([q.to_round_spec() for q in questions], **kwargs)

    # --- Observers ---

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._in_progress

    @property
    def current_round(self) -> Round | None:
        with self._lock:
            return self._current_round

    @property
    def rounds(self) -> tuple[Round, ...]:
        return self._rounds

    @property
    def scoreboard(self) -> Scoreboard:
        return self._scoreboard

    @property
    def is_finished(self) -> bool:
        """True once the final round has completed."""
        with self._lock:
            return self._position == len(self._rounds) - 1 and not self._in_progress

    def remaining_rounds(self) -> int:
        with self._lock:
            return len(self._rounds) - (self._position + 1)

    def sorted_score(self) -> list[ScoreRow]:
        """Standings by points descending, ties by identity ascending.

        Identities that never scored are left out.
        """
        return self._scoreboard.sorted_scores()

    def scoreboard_snapshot(self) -> dict[str, int]:
        return self._scoreboard.snapshot()

    def awarded_points(self) -> list[dict[str, int]]:
        """Points awarded per completed round, in round order."""
        with self._lock:
            return [dict(awards) for awards in self._awarded]

    # --- Round control ---

    def start_round(self, on_complete: CompletionHandler | None = None) -> Round:
        """Open the next round of the chain.

        ``on_complete`` runs after the points of the round are merged into
        the scoreboard and ``in_progress`` is cleared.
        """
        with self._lock:
            if self._in_progress:
                raise AlreadyInProgressError(f"Round {self._position + 1} is still in progress.")
            if self._position + 1 >= len(self._rounds):
                raise QuizFinishedError("The final round of this quiz has already been played.")
            current = self._rounds[self._position + 1]
            # raises RoundClosedError before the cursor moves
            current.on_complete(partial(self._complete_round, current, on_complete))
            self._position += 1
            self._current_round = current
            self._in_progress = True
            if self.started_at is None:
                self.started_at = datetime.utcnow()
        logger.info("Started round %d of %d", current.number, len(self._rounds))
        return current

    def close_current_round(self) -> None:
        current = self.current_round
        if current is not None:
            current.close()

    def wait_for_round(self, timeout: float | None = None) -> bool:
        """Block until the current round completed. Returns False on timeout.

        Re-raises the exception of a failed completion handler.
        """
        current = self.current_round
        if current is None:
            return True
        if not current.wait(timeout):
            return False
        if current.completion_error is not None:
            raise current.completion_error
        return True

    def _complete_round(
        self,
        completed: Round,
        on_complete: CompletionHandler | None,
        correct_answer: str,
        ranked: list[Participant],
    ) -> None:
        awarded = self._scoreboard.award(ranked)
        with self._lock:
            self._awarded.append(awarded)
            self._in_progress = False
            self.last_completed_at = datetime.utcnow()
        logger.info("Round %d complete, awarded %s", completed.number, awarded or "nothing")
        if on_complete is not None:
            on_complete(correct_answer, ranked)
