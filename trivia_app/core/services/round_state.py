"""Answer-acceptance state machine for a single trivia question."""

from __future__ import annotations

from bisect import insort
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
import logging
import random
from threading import Event, Lock

from trivia_app.constants.quiz_constants import CORRECT_ANSWER_CAPACITY
from trivia_app.core.errors import RoundClosedError
from trivia_app.core.models import Choice, Participant, RoundSpec

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str, list[Participant]], None]


def to_naive_utc(value: datetime | None) -> datetime:
    """Timestamps are compared as naive UTC; aware values are converted."""
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _submission_time(participant: Participant) -> datetime:
    return participant.submitted_at


class Round:
    """One question's lifecycle: ``Open`` until capacity or ``close()``, then ``Closed``.

    Submissions may arrive concurrently from any number of chat handler
    threads. The participant map, the correct list and the open/closed flag
    are guarded by a per-round lock; completion callbacks run outside the
    lock, exactly once, on the thread that closed the round. A one-shot
    ``Event`` is set after the callbacks return so drivers can block on
    ``wait()`` instead of polling.
    """

    def __init__(
        self,
        spec: RoundSpec,
        number: int = 1,
        *,
        capacity: int = CORRECT_ANSWER_CAPACITY,
        rng: random.Random | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Round capacity must be a positive integer.")
        self.number = number
        self.question = spec.question
        self.correct_answer = spec.correct_answer
        self.category = spec.category
        self.difficulty = spec.difficulty
        self.next_round: Round | None = None
        self.closed_at: datetime | None = None

        self._capacity = capacity
        self._choices = self._shuffle_choices(spec, rng or random.Random())
        self._correct_index = next(i for i, c in enumerate(self._choices) if c.correct)

        self._lock = Lock()
        self._completed = Event()
        self._closed = False
        self._participants: dict[str, Participant] = {}
        self._correct: list[Participant] = []
        self._callbacks: list[CompletionCallback] = []
        self._completion_error: Exception | None = None

    @classmethod
    def open(
        cls,
        question: str,
        correct_answer: str,
        choices: Sequence[str],
        category: str = "",
        difficulty: str = "",
        number: int = 1,
        **kwargs,
    ) -> "Round":
        spec = RoundSpec(
            question=question,
            correct_answer=correct_answer,
            choices=tuple(choices),
            category=category,
            difficulty=difficulty,
        )
        return cls(spec, number, **kwargs)

    # --- Observers ---

    @property
    def choices(self) -> tuple[Choice, ...]:
        return self._choices

    @property
    def choice_values(self) -> list[str]:
        return [choice.value for choice in self._choices]

    @property
    def correct_index(self) -> int:
        return self._correct_index

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_final(self) -> bool:
        return self.next_round is None

    @property
    def is_closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def completion_error(self) -> Exception | None:
        """First exception raised by a completion callback, if any."""
        return self._completion_error

    def participants(self) -> dict[str, Participant]:
        with self._lock:
            return dict(self._participants)

    def correct(self) -> list[Participant]:
        with self._lock:
            return list(self._correct)

    def has_answered(self, identity: str) -> bool:
        with self._lock:
            return identity in self._participants

    # --- State machine ---

    def on_complete(self, callback: CompletionCallback) -> None:
        """Register a callback fired once with (correct answer, ranked participants)."""
        with self._lock:
            if self._closed:
                raise RoundClosedError(f"Round {self.number} is already closed.")
            self._callbacks.append(callback)

    def submit_answer(
        self,
        identity: str,
        choice_index: int,
        submitted_at: datetime | None = None,
    ) -> bool:
        """Record an answer. Returns False for duplicates or a closed round.

        Indices outside the choice range are recorded as incorrect answers.
        """
        submitted_at = to_naive_utc(submitted_at)

        closing: tuple[list[Participant], list[CompletionCallback]] | None = None
        with self._lock:
            if self._closed:
                logger.debug("Round %d closed, rejecting answer from %s", self.number, identity)
                return False
            if identity in self._participants:
                logger.debug("Duplicate answer from %s in round %d", identity, self.number)
                return False

            participant = Participant(
                identity=identity,
                choice_index=choice_index,
                submitted_at=submitted_at,
                correct=(choice_index == self._correct_index),
            )
            if participant.correct:
                # equal timestamps keep arrival order
                insort(self._correct, participant, key=_submission_time)
            self._participants[identity] = participant
            if participant.correct and len(self._correct) >= self._capacity:
                closing = self._close_locked()

        logger.debug(
            "Round %d accepted answer %d from %s (correct=%s)",
            self.number,
            choice_index,
            identity,
            participant.correct,
        )
        if closing is not None:
            self._fire(*closing)
        return True

    def close(self) -> None:
        """Force the round closed. Calling it on a closed round does nothing."""
        with self._lock:
            if self._closed:
                return
            closing = self._close_locked()
        self._fire(*closing)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the completion callbacks ran. Returns False on timeout."""
        return self._completed.wait(timeout)

    def _close_locked(self) -> tuple[list[Participant], list[CompletionCallback]]:
        self._closed = True
        self.closed_at = datetime.utcnow()
        callbacks = list(self._callbacks)
        self._callbacks.clear()
        logger.info(
            "Round %d closed with %d correct of %d answers",
            self.number,
            len(self._correct),
            len(self._participants),
        )
        return list(self._correct), callbacks

    def _fire(self, ranked: list[Participant], callbacks: list[CompletionCallback]) -> None:
        try:
            for callback in callbacks:
                try:
                    callback(self.correct_answer, list(ranked))
                except Exception as exc:
                    logger.exception("Completion callback failed for round %d", self.number)
                    if self._completion_error is None:
                        self._completion_error = exc
        finally:
            self._completed.set()

    @staticmethod
    def _shuffle_choices(spec: RoundSpec, rng: random.Random) -> tuple[Choice, ...]:
        if not spec.correct_answer.strip():
            raise ValueError("Correct answer must not be empty.")
        combined = [Choice(value=value) for value in spec.choices if value != spec.correct_answer]
        combined.append(Choice(value=spec.correct_answer, correct=True))
        rng.shuffle(combined)
        return tuple(combined)
