from datetime import datetime, timedelta
import random
import time

import pytest

from trivia_app.bot.transport import OutboxTransport
from trivia_app.bot.trivia_bot import TriviaBot
from trivia_app.core.models import RoundSpec, TriviaQuestion
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_bank import QuestionBank

BASE_TIME = datetime(2024, 5, 1, 20, 0, 0)


def at(seconds: float) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


def wait_for(condition, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return condition()


@pytest.fixture()
def paris_spec() -> RoundSpec:
    return RoundSpec(
        question="What is the capital of France?",
        correct_answer="Paris",
        choices=("Lyon", "Nice", "Nantes"),
        category="Geography",
        difficulty="easy",
    )


@pytest.fixture()
def mars_spec() -> RoundSpec:
    return RoundSpec(
        question="Which planet is known as the Red Planet?",
        correct_answer="Mars",
        choices=("Venus", "Jupiter", "Mercury"),
        category="Science",
        difficulty="easy",
    )


@pytest.fixture()
def questions() -> list[TriviaQuestion]:
    return [
        TriviaQuestion(0, "What is the capital of France?", "Paris", ["Lyon", "Nice", "Nantes"], "Geography", "easy"),
        TriviaQuestion(0, "Which planet is known as the Red Planet?", "Mars", ["Venus", "Jupiter"], "Science", "easy"),
        TriviaQuestion(0, "In which year did the Berlin Wall fall?", "1989", ["1987", "1991"], "History", "medium"),
        TriviaQuestion(0, "What is the chemical symbol for tungsten?", "W", ["Tu", "Wo"], "Science", "hard"),
    ]


@pytest.fixture()
def question_bank(questions) -> QuestionBank:
    return QuestionBank(questions, rng=random.Random(3))


@pytest.fixture()
def leaderboard(tmp_path) -> Leaderboard:
    return Leaderboard.load(tmp_path / "leaderboard.json")


@pytest.fixture()
def outbox() -> OutboxTransport:
    return OutboxTransport()


@pytest.fixture()
def make_bot(outbox, leaderboard, question_bank):
    bots: list[TriviaBot] = []

    def factory(**overrides) -> TriviaBot:
        options = {
            "rounds": 1,
            "cooldown_seconds": 300.0,
            "start_delay": 0,
            "between_rounds_delay": 0,
            "end_delay": 0,
            "round_timeout": 2.0,
        }
        options.update(overrides)
        bank = options.pop("question_bank", question_bank)
        bot = TriviaBot(outbox, leaderboard, bank, **options)
        bots.append(bot)
        return bot

    yield factory

    for bot in bots:
        deadline = time.monotonic() + 5
        while not bot.wait_until_idle(0.05) and time.monotonic() < deadline:
            if bot.quiz is not None:
                bot.quiz.close_current_round()
