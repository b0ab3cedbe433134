"""Domain models for the trivia engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class Participant:
    """One identity's recorded answer to one round."""

    identity: str
    choice_index: int
    submitted_at: datetime
    correct: bool


@dataclass(slots=True, frozen=True)
class Choice:
    """A single numbered choice as shown to the participants."""

    value: str
    correct: bool = False


@dataclass(slots=True, frozen=True)
class RoundSpec:
    """Everything needed to open one round."""

    question: str
    correct_answer: str
    choices: tuple[str, ...]
    category: str = ""
    difficulty: str = ""


@dataclass(slots=True)
class TriviaQuestion:
    """A question stored in the question bank."""

    id: int
    question: str
    answer: str
    incorrect_choices: list[str]
    category: str = ""
    difficulty: str = ""
    type: str = "multiple"
    source: str = ""
    used: int = 0

    def to_round_spec(self) -> RoundSpec:
        return RoundSpec(
            question=self.question,
            correct_answer=self.answer,
            choices=tuple(self.incorrect_choices),
            category=self.category,
            difficulty=self.difficulty,
        )


@dataclass(slots=True, frozen=True)
class QuestionFilter:
    """Optional category/difficulty constraints for question selection."""

    category: str | None = None
    difficulty: str | None = None

    def matches(self, question: TriviaQuestion) -> bool:
        if self.category and question.category.casefold() != self.category.casefold():
            return False
        if self.difficulty and question.difficulty.casefold() != self.difficulty.casefold():
            return False
        return True


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """A message delivered by the chat transport."""

    user: str
    data: str
    time: datetime = field(default_factory=datetime.utcnow)


@dataclass(slots=True, frozen=True)
class ScoreRow:
    """Immutable (identity, points) pair returned by ranking queries."""

    identity: str
    points: int
