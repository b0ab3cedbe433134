"""Chat-facing driver that runs quizzes and feeds answers into the engine."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import Enum, auto
import logging
from threading import Lock, Thread
import time

from trivia_app.bot import formatting
from trivia_app.bot.transport import ChatTransport
from trivia_app.constants import bot_constants as texts
from trivia_app.constants.quiz_constants import (
    BETWEEN_ROUNDS_DELAY_SECONDS,
    DEFAULT_ROUNDS_PER_QUIZ,
    QUIZ_COOLDOWN_SECONDS,
    QUIZ_END_DELAY_SECONDS,
    QUIZ_START_DELAY_SECONDS,
    ROUND_TIMEOUT_SECONDS,
)
from trivia_app.core.errors import (
    AlreadyInProgressError,
    InvalidAnswerIndexError,
    NoQuestionsAvailableError,
    PersistenceError,
    QuizCooldownError,
    TriviaError,
)
from trivia_app.core.models import ChatMessage, Participant, QuestionFilter, ScoreRow
from trivia_app.core.quiz_manager import Quiz
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.core.services.round_state import Round

logger = logging.getLogger(__name__)


class AnswerOutcome(Enum):
    """What happened to a private answer message."""

    ACCEPTED = auto()
    DUPLICATE = auto()
    INVALID = auto()
    ROUND_CLOSED = auto()
    NO_ROUND = auto()


class TriviaBot:
    """Runs one quiz at a time for a chat channel.

    Public messages control the bot, private messages carry answers. A
    started quiz runs on its own thread and blocks on each round's
    completion signal, closing the round itself once the round timeout
    expires.
    """

    def __init__(
        self,
        transport: ChatTransport,
        leaderboard: Leaderboard,
        question_bank: QuestionBank,
        *,
        rounds: int = DEFAULT_ROUNDS_PER_QUIZ,
        filters: QuestionFilter | None = None,
        cooldown_seconds: float = QUIZ_COOLDOWN_SECONDS,
        start_delay: float = QUIZ_START_DELAY_SECONDS,
        between_rounds_delay: float = BETWEEN_ROUNDS_DELAY_SECONDS,
        end_delay: float = QUIZ_END_DELAY_SECONDS,
        round_timeout: float | None = ROUND_TIMEOUT_SECONDS,
        persist_attempts: int = 2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.leaderboard = leaderboard
        self.question_bank = question_bank
        self.rounds = rounds
        self.filters = filters
        self.cooldown_seconds = cooldown_seconds
        self.start_delay = start_delay
        self.between_rounds_delay = between_rounds_delay
        self.end_delay = end_delay
        self.round_timeout = round_timeout
        self.persist_attempts = max(1, persist_attempts)
        self._sleep = sleep

        self._quiz: Quiz | None = None
        self._quiz_thread: Thread | None = None
        self._running = False
        self._last_round_ended_at: datetime | None = None
        self._state_lock = Lock()

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._running

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Join the quiz thread. Returns False if it is still running."""
        thread = self._quiz_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # --- Incoming chat ---

    def on_message(self, msg: ChatMessage) -> None:
        data = msg.data.strip().lower()
        if not data.startswith(texts.COMMAND_PREFIXES):
            return

        if any(keyword in data for keyword in texts.HELP_KEYWORDS):
            self.transport.send(texts.HELP_TEXT)

        if any(keyword in data for keyword in texts.START_KEYWORDS):
            self.start_quiz(force=texts.FORCE_KEYWORD in data)

    def on_private_message(self, msg: ChatMessage) -> AnswerOutcome:
        """Record an answer for the open round and reply to the sender."""
        logger.debug("Private message from %s: %s", msg.user, msg.data)
        quiz = self._quiz
        if quiz is None or not quiz.in_progress:
            return AnswerOutcome.NO_ROUND
        current = quiz.current_round
        if current is None:
            return AnswerOutcome.NO_ROUND

        try:
            choice_index = formatting.parse_answer(msg.data, len(current.choices))
        except InvalidAnswerIndexError:
            self.transport.send_private(texts.INVALID_ANSWER_TEXT, msg.user)
            return AnswerOutcome.INVALID

        if current.submit_answer(msg.user, choice_index, msg.time):
            self.transport.send_private(texts.ANSWER_RECORDED_TEXT, msg.user)
            return AnswerOutcome.ACCEPTED
        if current.has_answered(msg.user):
            self.transport.send_private(texts.DUPLICATE_ANSWER_TEXT, msg.user)
            return AnswerOutcome.DUPLICATE
        self.transport.send_private(texts.ROUND_CLOSED_TEXT, msg.user)
        return AnswerOutcome.ROUND_CLOSED

    # --- Quiz lifecycle ---

    def start_quiz(self, force: bool = False) -> bool:
        """Start a quiz and tell the channel why if it was refused."""
        try:
            self.launch_quiz(force=force)
        except AlreadyInProgressError:
            self.transport.send(texts.QUIZ_IN_PROGRESS_TEXT)
            return False
        except QuizCooldownError as exc:
            self.transport.send(texts.COOLDOWN_TEXT.format(remaining=round(exc.remaining_seconds)))
            return False
        except NoQuestionsAvailableError as exc:
            logger.warning("Cannot start quiz: %s", exc)
            self.transport.send(texts.NO_QUESTIONS_TEXT)
            return False
        return True

    def launch_quiz(self, force: bool = False) -> Quiz:
        """Start a quiz on a background thread.

        Raises AlreadyInProgressError, QuizCooldownError (unless ``force``)
        or NoQuestionsAvailableError.
        """
        with self._state_lock:
            if self._running:
                raise AlreadyInProgressError("A quiz is already running.")

            remaining = self._cooldown_remaining()
            if remaining > 0 and not force:
                raise QuizCooldownError(remaining)

            quiz = Quiz.from_question_bank(self.question_bank, self.rounds, self.filters)
            self._quiz = quiz
            self._running = True
            self._quiz_thread = Thread(
                target=self._run_quiz_thread,
                args=(quiz,),
                name="TriviaQuiz",
                daemon=True,
            )
            self._quiz_thread.start()
        logger.info("Starting quiz with %d rounds", len(quiz.rounds))
        return quiz

    def run_quiz(self, quiz: Quiz) -> list[ScoreRow]:
        """Play every round of ``quiz`` and merge the result into the leaderboard."""
        self.transport.send(texts.QUIZ_STARTING_TEXT)
        self._sleep(self.start_delay)

        while True:
            current = quiz.start_round(self._on_round_completion)
            self._run_round(quiz, current)
            if current.is_final:
                break
            logger.info("Sleeping %.0f seconds until round %d", self.between_rounds_delay, current.number + 1)
            self._sleep(self.between_rounds_delay)

        self._sleep(self.end_delay)
        standings = quiz.sorted_score()
        self.transport.send(formatting.quiz_completion(standings, texts.NO_WINNERS_QUIZ_TEXT))
        if standings:
            self._persist(standings)
        return standings

    def _run_quiz_thread(self, quiz: Quiz) -> None:
        try:
            self.run_quiz(quiz)
        except TriviaError:
            logger.exception("Quiz aborted")
        finally:
            with self._state_lock:
                self._running = False

    def _run_round(self, quiz: Quiz, current: Round) -> None:
        output = formatting.round_announcement(current)
        logger.info("Running round and waiting for completion: %s", output)
        self.transport.send(output)

        if not quiz.wait_for_round(self.round_timeout):
            logger.info("Round %d timed out, closing it", current.number)
            current.close()
            quiz.wait_for_round()

    def _on_round_completion(self, correct_answer: str, ranked: list[Participant]) -> None:
        with self._state_lock:
            self._last_round_ended_at = datetime.utcnow()
        self.transport.send(
            formatting.round_completion(correct_answer, ranked, texts.NO_WINNERS_ROUND_TEXT)
        )

    def _persist(self, standings: list[ScoreRow]) -> None:
        for attempt in range(1, self.persist_attempts + 1):
            try:
                self.leaderboard.update(standings)
                return
            except PersistenceError:
                if attempt == self.persist_attempts:
                    raise
                logger.warning("Leaderboard update failed (attempt %d), retrying", attempt)

    def _cooldown_remaining(self) -> float:
        if self._last_round_ended_at is None:
            return 0.0
        elapsed = (datetime.utcnow() - self._last_round_ended_at).total_seconds()
        return max(0.0, self.cooldown_seconds - elapsed)
