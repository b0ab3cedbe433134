"""Application entry point for the trivia bot service."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from trivia_app.bot.transport import OutboxTransport
from trivia_app.bot.trivia_bot import TriviaBot
from trivia_app.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_LEADERBOARD_PATH,
    DEFAULT_PORT,
    DEFAULT_QUESTIONS_PATH,
)
from trivia_app.constants.quiz_constants import DEFAULT_ROUNDS_PER_QUIZ
from trivia_app.core.models import QuestionFilter
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.server.api_server import start_api_server
from trivia_app.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the trivia chat bridge.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--leaderboard", type=Path, default=Path(DEFAULT_LEADERBOARD_PATH))
    parser.add_argument("--questions", type=Path, default=Path(DEFAULT_QUESTIONS_PATH))
    parser.add_argument("--rounds", type=int, default=DEFAULT_ROUNDS_PER_QUIZ)
    parser.add_argument("--category")
    parser.add_argument("--difficulty")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--log-file", type=Path)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Load the question bank and leaderboard, then serve the chat bridge."""
    args = _parse_args(argv)
    logger = configure_logging(logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)
    logger.info("Starting trivia service…")

    bank = QuestionBank.from_file(args.questions)
    leaderboard = Leaderboard.load(args.leaderboard)
    bot = TriviaBot(
        OutboxTransport(),
        leaderboard,
        bank,
        rounds=args.rounds,
        filters=QuestionFilter(category=args.category, difficulty=args.difficulty),
    )

    server_thread = start_api_server(bot, host=args.host, port=args.port)
    logger.info("Chat bridge listening on http://%s:%d/", args.host, args.port)
    server_thread.join()


if __name__ == "__main__":
    main()
