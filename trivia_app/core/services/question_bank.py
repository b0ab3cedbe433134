"""Service for storing trivia questions and handing them out for rounds."""

from __future__ import annotations

import logging
from pathlib import Path
import random
from threading import Lock

from trivia_app.core.errors import NoQuestionsAvailableError
from trivia_app.core.models import QuestionFilter, TriviaQuestion
from trivia_app.core.question_importer import load_questions_from_file, save_questions_to_file

logger = logging.getLogger(__name__)


class QuestionBank:
    """In-process question repository with usage tracking.

    ``next_question`` picks at random among the least-used questions that
    match the filter and marks the pick as used, so a question is not
    asked again until every other candidate has been.
    """

    def __init__(self, questions: list[TriviaQuestion] | None = None, rng: random.Random | None = None) -> None:
        self._questions: list[TriviaQuestion] = []
        self._question_counter: int = 0
        self._rng = rng or random.Random()
        self._lock = Lock()
        if questions:
            self.add_questions(questions)

    @classmethod
    def from_file(cls, file_path: Path | str, rng: random.Random | None = None) -> "QuestionBank":
        questions = load_questions_from_file(Path(file_path))
        logger.info("Loaded %d questions from %s", len(questions), file_path)
        return cls(questions, rng=rng)

    def add_questions(self, questions: list[TriviaQuestion]) -> None:
        with self._lock:
            for question in questions:
                self._questions.append(self._prepare_question(question))

    def get_questions(self) -> list[TriviaQuestion]:
        with self._lock:
            return list(self._questions)

    def get_question_count(self) -> int:
        with self._lock:
            return len(self._questions)

    def categories(self) -> list[str]:
        with self._lock:
            return sorted({q.category for q in self._questions if q.category})

    def next_question(self, filters: QuestionFilter | None = None) -> TriviaQuestion:
        filters = filters or QuestionFilter()
        with self._lock:
            candidates = [q for q in self._questions if filters.matches(q)]
            if not candidates:
                raise NoQuestionsAvailableError(
                    f"No questions match category={filters.category!r} difficulty={filters.difficulty!r}."
                )
            least_used = min(q.used for q in candidates)
            question = self._rng.choice([q for q in candidates if q.used == least_used])
            question.used += 1
        logger.debug("Selected question %d (used %d times)", question.id, question.used)
        return question

    def draw(self, count: int, filters: QuestionFilter | None = None) -> list[TriviaQuestion]:
        """Draw ``count`` distinct questions for one quiz."""
        if count <= 0:
            raise ValueError("Question count must be a positive integer.")
        filters = filters or QuestionFilter()
        with self._lock:
            available = sum(1 for q in self._questions if filters.matches(q))
        if available < count:
            raise NoQuestionsAvailableError(f"Only {available} questions available, {count} requested.")

        drawn: list[TriviaQuestion] = []
        seen: set[int] = set()
        while len(drawn) < count:
            question = self.next_question(filters)
            if question.id not in seen:
                seen.add(question.id)
                drawn.append(question)
        return drawn

    def export_questions(self, file_path: Path | str) -> None:
        save_questions_to_file(Path(file_path), self.get_questions())

    def _prepare_question(self, question: TriviaQuestion) -> TriviaQuestion:
        """Validate and normalize a question before storage."""
        cleaned_text = question.question.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")
        answer = question.answer.strip()
        if not answer:
            raise ValueError("Answer must not be empty.")
        choices = [choice.strip() for choice in question.incorrect_choices if choice.strip()]
        if not choices:
            raise ValueError("A question needs at least one incorrect choice.")

        self._question_counter += 1
        return TriviaQuestion(
            id=self._question_counter,
            question=cleaned_text,
            answer=answer,
            incorrect_choices=choices,
            category=question.category.strip(),
            difficulty=question.difficulty.strip().lower(),
            type=question.type,
            source=question.source,
            used=question.used,
        )
