"""Utilities for reading and writing question banks in a plain-text format.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    ANSWER: The correct answer
    WRONG: An incorrect choice      (one or more)
    CATEGORY: Geography             (optional)
    DIFFICULTY: easy|medium|hard    (optional)
    TYPE: multiple|boolean          (optional, defaults to multiple)
    SOURCE: where the question came from (optional)

Example:

    Q: What is the capital of France?
    ANSWER: Paris
    WRONG: Lyon
    WRONG: Nice
    WRONG: Nantes
    CATEGORY: Geography
    DIFFICULTY: easy
"""

from __future__ import annotations

from pathlib import Path

from trivia_app.core.errors import QuestionImportError
from trivia_app.core.models import TriviaQuestion

_DIFFICULTIES = ("easy", "medium", "hard")
_TYPES = ("multiple", "boolean")
_SINGLE_FIELDS = ("ANSWER", "CATEGORY", "DIFFICULTY", "TYPE", "SOURCE")


def load_questions_from_file(file_path: Path) -> list[TriviaQuestion]:
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise QuestionImportError(f"Cannot read question file {file_path}: {exc}") from exc
    questions = parse_questions(text)
    if not questions:
        raise QuestionImportError("Question file did not contain any questions.")
    return questions


def parse_questions(text: str) -> list[TriviaQuestion]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def save_questions_to_file(file_path: Path, questions: list[TriviaQuestion]) -> None:
    """Persist the provided questions to disk in the import format."""
    if not questions:
        raise ValueError("Cannot export an empty question bank.")

    file_path = Path(file_path).resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    blocks = [_serialize_question(question) for question in questions]
    file_path.write_text("\n\n---\n\n".join(blocks) + "\n", encoding="utf-8")


def _parse_block(block: str) -> TriviaQuestion:
    question_lines: list[str] = []
    fields: dict[str, str] = {}
    wrong: list[str] = []
    in_question = False

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        marker, _, value = line.partition(":")
        marker = marker.strip().upper()
        value = value.strip()

        if marker == "Q":
            question_lines = [value]
            in_question = True
            continue
        if marker == "WRONG":
            if not value:
                raise QuestionImportError("WRONG must not be empty.")
            wrong.append(value)
            in_question = False
            continue
        if marker in _SINGLE_FIELDS:
            fields[marker] = value
            in_question = False
            continue

        if in_question:
            question_lines.append(line)
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")
    answer = fields.get("ANSWER", "")
    if not answer:
        raise QuestionImportError(f"Question {question_text!r} has no ANSWER.")
    if not wrong:
        raise QuestionImportError(f"Question {question_text!r} needs at least one WRONG choice.")
    if answer in wrong:
        raise QuestionImportError(f"Question {question_text!r} lists its answer as WRONG.")

    difficulty = fields.get("DIFFICULTY", "").lower()
    if difficulty and difficulty not in _DIFFICULTIES:
        raise QuestionImportError(f"DIFFICULTY must be one of {', '.join(_DIFFICULTIES)}.")
    question_type = fields.get("TYPE", "multiple").lower()
    if question_type not in _TYPES:
        raise QuestionImportError(f"TYPE must be one of {', '.join(_TYPES)}.")

    return TriviaQuestion(
        id=0,  # assigned by QuestionBank when the questions are loaded
        question=question_text,
        answer=answer,
        incorrect_choices=wrong,
        category=fields.get("CATEGORY", ""),
        difficulty=difficulty,
        type=question_type,
        source=fields.get("SOURCE", ""),
    )


def _serialize_question(question: TriviaQuestion) -> str:
    question_lines = question.question.splitlines() or [question.question]
    lines = [f"Q: {question_lines[0]}", *question_lines[1:], f"ANSWER: {question.answer}"]
    lines.extend(f"WRONG: {choice}" for choice in question.incorrect_choices)
    if question.category:
        lines.append(f"CATEGORY: {question.category}")
    if question.difficulty:
        lines.append(f"DIFFICULTY: {question.difficulty}")
    if question.type != "multiple":
        lines.append(f"TYPE: {question.type}")
    if question.source:
        lines.append(f"SOURCE: {question.source}")
    return "\n".join(lines)
