"""Turns round and quiz state into chat text, and chat text into answers."""

from __future__ import annotations

from collections.abc import Sequence

from trivia_app.core.errors import InvalidAnswerIndexError
from trivia_app.core.models import Participant, ScoreRow
from trivia_app.core.services.round_state import Round

MAX_LISTED_WINNERS = 3


def ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def oxford_series(items: Sequence[str], conjunction: str = "and") -> str:
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} {conjunction} {items[1]}"
    return f"{', '.join(items[:-1])}, {conjunction} {items[-1]}"


def parse_answer(text: str, choice_count: int) -> int:
    """Convert a 1-based answer number into a 0-based choice index."""
    raw = text.strip()
    try:
        number = int(raw)
    except ValueError as exc:
        raise InvalidAnswerIndexError(raw, choice_count) from exc
    if not 1 <= number <= choice_count:
        raise InvalidAnswerIndexError(raw, choice_count)
    return number - 1


def round_announcement(round_: Round) -> str:
    leading = "Final round" if round_.is_final else f"Round {round_.number}"
    question = round_.question.replace("`", "'")
    output = f'{leading}: "{round_.category}" ({round_.difficulty}). `{question}` '
    # choices are already shuffled
    for idx, value in enumerate(round_.choice_values, start=1):
        output += f" `{idx}) {value}`"
    return output


def round_completion(correct_answer: str, ranked: Sequence[Participant], no_winners_text: str) -> str:
    output = f"Round complete! The correct answer is {correct_answer}."
    if not ranked:
        return f"{output} {no_winners_text}"
    entries = [
        f"{ordinal(rank)} {participant.identity}"
        for rank, participant in enumerate(ranked[:MAX_LISTED_WINNERS], start=1)
    ]
    return f"{output} {oxford_series(entries)}"


def quiz_completion(standings: Sequence[ScoreRow], no_winners_text: str) -> str:
    output = "Quiz complete! The following users are awarded points: "
    if not standings:
        return output + no_winners_text
    winners = [f"{row.identity} +{row.points} point(s)" for row in standings]
    return output + oxford_series(winners)
