"""Exceptions raised by the trivia engine."""

from __future__ import annotations


class TriviaError(Exception):
    """Base class for every recoverable trivia engine failure."""


class AlreadyInProgressError(TriviaError):
    """Raised when a round is started while another one is still open."""


class QuizFinishedError(TriviaError):
    """Raised when a round is requested after the final round completed."""


class InvalidAnswerIndexError(TriviaError):
    """Raised when a submitted answer does not name one of the choices."""

    def __init__(self, raw_answer: str, choice_count: int) -> None:
        super().__init__(
            f"Answer {raw_answer!r} is not a number between 1 and {choice_count}."
        )
        self.raw_answer = raw_answer
        self.choice_count = choice_count


class NoQuestionsAvailableError(TriviaError):
    """Raised when the question bank has nothing left that matches."""


class PersistenceError(TriviaError):
    """Raised when the leaderboard cannot be read from or written to disk."""


class QuestionImportError(TriviaError):
    """Raised when a question file cannot be parsed."""


class QuizCooldownError(TriviaError):
    """Raised when a quiz is requested before the cooldown elapsed."""

    def __init__(self, remaining_seconds: float) -> None:
        super().__init__(f"Quizzes are on cooldown for another {remaining_seconds:.0f}s.")
        self.remaining_seconds = remaining_seconds


class RoundClosedError(TriviaError):
    """Raised when a completion callback is registered on a closed round."""
