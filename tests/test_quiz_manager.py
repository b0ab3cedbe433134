import random
from threading import Timer

import pytest

from trivia_app.core.errors import (
    AlreadyInProgressError,
    NoQuestionsAvailableError,
    QuizFinishedError,
    RoundClosedError,
    TriviaError,
)
from trivia_app.core.models import QuestionFilter, RoundSpec, ScoreRow
from trivia_app.core.quiz_manager import Quiz

from conftest import at


@pytest.fixture()
def quiz(paris_spec, mars_spec) -> Quiz:
    return Quiz.start_session([paris_spec, mars_spec], rng=random.Random(11))


def _answer_correctly(round_, *names):
    for offset, name in enumerate(names):
        assert round_.submit_answer(name, round_.correct_index, at(round_.number * 100 + offset))


def test_start_session_links_rounds(quiz):
    first, second = quiz.rounds

    assert first.next_round is second
    assert second.next_round is None
    assert second.is_final and not first.is_final
    assert [r.number for r in quiz.rounds] == [1, 2]
    assert not quiz.in_progress
    assert quiz.current_round is None
    assert quiz.sorted_score() == []


def test_empty_session_rejected():
    with pytest.raises(ValueError):
        Quiz.start_session([])


def test_start_round_marks_quiz_in_progress(quiz):
    round_ = quiz.start_round()

    assert round_ is quiz.rounds[0]
    assert quiz.current_round is round_
    assert quiz.in_progress
    assert quiz.started_at is not None
    with pytest.raises(AlreadyInProgressError):
        quiz.start_round()


def test_completion_updates_scoreboard_before_handler(quiz):
    seen = []

    def handler(answer, ranked):
        seen.append((answer, [p.identity for p in ranked], quiz.in_progress, quiz.scoreboard_snapshot()))

    round_ = quiz.start_round(handler)
    _answer_correctly(round_, "A", "B", "C")

    assert seen == [("Paris", ["A", "B", "C"], False, {"A": 3, "B": 2, "C": 1})]
    assert not quiz.in_progress
    assert quiz.last_completed_at is not None


def test_two_round_session_standings(quiz):
    first = quiz.start_round()
    _answer_correctly(first, "A", "B", "C")

    second = quiz.start_round()
    _answer_correctly(second, "B", "A")
    second.close()

    # equal totals are ordered by identity; non-scorers are left out
    assert quiz.sorted_score() == [ScoreRow("A", 5), ScoreRow("B", 5), ScoreRow("C", 1)]
    assert quiz.awarded_points() == [{"A": 3, "B": 2, "C": 1}, {"B": 3, "A": 2}]
    total_awarded = sum(sum(awards.values()) for awards in quiz.awarded_points())
    assert sum(row.points for row in quiz.sorted_score()) == total_awarded
    assert quiz.is_finished


def test_incorrect_answers_never_score(quiz):
    round_ = quiz.start_round()
    wrong = (round_.correct_index + 1) % len(round_.choices)
    round_.submit_answer("wrong", wrong, at(1))
    round_.close()

    assert quiz.sorted_score() == []


def test_starting_past_final_round_fails(quiz):
    for _ in quiz.rounds:
        quiz.start_round().close()

    assert quiz.remaining_rounds() == 0
    with pytest.raises(QuizFinishedError):
        quiz.start_round()


def test_wait_for_round_blocks_until_closed_elsewhere(quiz):
    round_ = quiz.start_round()
    assert not quiz.wait_for_round(0.01)

    timer = Timer(0.05, round_.close)
    timer.start()

    assert quiz.wait_for_round(2)
    assert not quiz.in_progress


def test_wait_for_round_reraises_handler_failure(quiz):
    def handler(answer, ranked):
        raise ConnectionError("send failed")

    quiz.start_round(handler).close()

    with pytest.raises(ConnectionError):
        quiz.wait_for_round(1)
    assert not quiz.in_progress


def test_from_question_bank_draws_distinct_questions(question_bank):
    quiz = Quiz.from_question_bank(question_bank, rounds=3)

    questions = [r.question for r in quiz.rounds]
    assert len(set(questions)) == 3


def test_from_question_bank_applies_filters(question_bank):
    quiz = Quiz.from_question_bank(question_bank, rounds=2, filters=QuestionFilter(category="science"))

    assert {r.category for r in quiz.rounds} == {"Science"}
    with pytest.raises(NoQuestionsAvailableError):
        Quiz.from_question_bank(question_bank, rounds=3, filters=QuestionFilter(category="science"))


def test_custom_capacity_and_points():
    spec = RoundSpec("Q?", "yes", ("no",))
    quiz = Quiz.start_session([spec], capacity=1, points_by_rank=(10,))

    round_ = quiz.start_round()
    round_.submit_answer("fast", round_.correct_index, at(1))

    assert round_.is_closed
    assert quiz.sorted_score() == [ScoreRow("fast", 10)]


def test_start_round_on_closed_round_keeps_cursor(quiz):
    quiz.rounds[0].close()

    with pytest.raises(RoundClosedError) as excinfo:
        quiz.start_round()

    assert isinstance(excinfo.value, TriviaError)
    assert quiz.remaining_rounds() == 2
    assert quiz.current_round is None
    assert not quiz.in_progress
