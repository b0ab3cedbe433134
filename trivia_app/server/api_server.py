"""FastAPI chat bridge: receives chat events and hands out the bot's replies."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
import uvicorn

from trivia_app.bot.transport import OutboxTransport
from trivia_app.bot.trivia_bot import AnswerOutcome, TriviaBot
from trivia_app.constants import bot_constants as texts
from trivia_app.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from trivia_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_app.core.errors import (
    AlreadyInProgressError,
    NoQuestionsAvailableError,
    PersistenceError,
    QuizCooldownError,
)
from trivia_app.core.markdown_renderer import renderer, score_table_markdown
from trivia_app.core.models import ChatMessage
from trivia_app.core.services.round_state import to_naive_utc


class ChatEventPayload(BaseModel):
    """A chat message forwarded by the transport."""

    user: str = Field(min_length=1)
    text: str
    timestamp: datetime | None = None


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _to_message(payload: ChatEventPayload) -> ChatMessage:
    return ChatMessage(user=payload.user.strip(), data=payload.text, time=to_naive_utc(payload.timestamp))


def _get_bot_dependency(bot: TriviaBot):
    def dependency() -> TriviaBot:
        return bot

    return dependency


def create_api_app(bot: TriviaBot) -> FastAPI:
    """Create a FastAPI application wired to the provided bot."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    bot_dep = _get_bot_dependency(bot)

    @app.post("/chat/public", status_code=202)
    def public_message(
        payload: ChatEventPayload,
        trivia: TriviaBot = Depends(bot_dep),
    ) -> dict[str, object]:
        trivia.on_message(_to_message(payload))
        return {"quiz_running": trivia.is_running}

    @app.post("/chat/private", status_code=202)
    def private_message(
        payload: ChatEventPayload,
        trivia: TriviaBot = Depends(bot_dep),
    ) -> dict[str, object]:
        outcome = trivia.on_private_message(_to_message(payload))
        if outcome is AnswerOutcome.INVALID:
            raise HTTPException(status_code=422, detail=texts.INVALID_ANSWER_TEXT)
        return {"accepted": outcome is AnswerOutcome.ACCEPTED, "outcome": outcome.name.lower()}

    @app.get("/chat/outbox")
    def drain_outbox(trivia: TriviaBot = Depends(bot_dep)) -> dict[str, object]:
        transport = trivia.transport
        if not isinstance(transport, OutboxTransport):
            raise HTTPException(status_code=404, detail="This bot does not queue outgoing messages.")
        return {
            "messages": [
                {"text": message.text, "user": message.user, "created_at": _iso(message.created_at)}
                for message in transport.drain()
            ]
        }

    @app.post("/quiz/start", status_code=201)
    def start_quiz(
        force: bool = False,
        trivia: TriviaBot = Depends(bot_dep),
    ) -> dict[str, object]:
        try:
            quiz = trivia.launch_quiz(force=force)
        except (AlreadyInProgressError, QuizCooldownError) as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except NoQuestionsAvailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"rounds": len(quiz.rounds)}

    @app.get("/quiz")
    def get_quiz(trivia: TriviaBot = Depends(bot_dep)) -> dict[str, object]:
        quiz = trivia.quiz
        if quiz is None:
            return {"running": trivia.is_running, "in_progress": False, "round": None}
        current = quiz.current_round
        round_state = None
        if current is not None:
            round_state = {
                "number": current.number,
                "final": current.is_final,
                "question": current.question,
                "category": current.category,
                "difficulty": current.difficulty,
                "choices": current.choice_values,
                "closed": current.is_closed,
                "answers": len(current.participants()),
                # only reveal the answer after the round closed
                "correct_answer": current.correct_answer if current.is_closed else None,
                "closed_at": _iso(current.closed_at),
            }
        return {
            "running": trivia.is_running,
            "in_progress": quiz.in_progress,
            "remaining_rounds": quiz.remaining_rounds(),
            "started_at": _iso(quiz.started_at),
            "round": round_state,
        }

    @app.get("/scoreboard")
    def get_scoreboard(trivia: TriviaBot = Depends(bot_dep)) -> dict[str, object]:
        quiz = trivia.quiz
        rows = quiz.sorted_score() if quiz is not None else []
        return {
            "scores": [
                {
                    "identity": row.identity,
                    "points": row.points,
                    "rounds_won": quiz.scoreboard.rounds_won(row.identity),
                }
                for row in rows
            ]
        }

    @app.get("/leaderboard")
    def get_leaderboard(
        limit: int = Query(10, ge=1, le=1000),
        trivia: TriviaBot = Depends(bot_dep),
    ) -> dict[str, object]:
        rows = trivia.leaderboard.top(limit)
        return {
            "updated_at": _iso(trivia.leaderboard.updated_at),
            "scores": [{"identity": row.identity, "points": row.points} for row in rows],
        }

    @app.post("/leaderboard/reload")
    def reload_leaderboard(trivia: TriviaBot = Depends(bot_dep)) -> dict[str, object]:
        if trivia.is_running:
            raise HTTPException(status_code=409, detail="Cannot reload the leaderboard during a quiz.")
        try:
            trivia.leaderboard = type(trivia.leaderboard).load(trivia.leaderboard.path)
        except PersistenceError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"entries": len(trivia.leaderboard)}

    @app.get("/", response_class=HTMLResponse)
    def leaderboard_page(trivia: TriviaBot = Depends(bot_dep)) -> str:
        markdown = score_table_markdown(f"{APP_NAME} leaderboard", trivia.leaderboard.top(25))
        return renderer.render_full_document(markdown, title=f"{APP_NAME} leaderboard")

    return app


def start_api_server(
    bot: TriviaBot,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(bot)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="TriviaApiServer", daemon=True)
    thread.start()
    return thread
