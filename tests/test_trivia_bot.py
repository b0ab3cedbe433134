from trivia_app.bot.trivia_bot import AnswerOutcome
from trivia_app.constants import bot_constants as texts
from trivia_app.core.models import ChatMessage, TriviaQuestion
from trivia_app.core.services.question_bank import QuestionBank

from conftest import at, wait_for


def _texts(outbox, user=None):
    return [m.text for m in outbox.pending() if m.user == user]


def _wait_for_open_round(bot):
    assert wait_for(lambda: bot.quiz is not None and bot.quiz.in_progress)
    assert wait_for(
        lambda: any(m.text.startswith(("Round ", "Final round")) for m in bot.transport.pending())
    )
    return bot.quiz.current_round


def test_messages_without_prefix_are_ignored(make_bot, outbox):
    bot = make_bot()

    bot.on_message(ChatMessage("alice", "start the party"))

    assert outbox.pending() == []
    assert bot.quiz is None


def test_help_command(make_bot, outbox):
    bot = make_bot()

    bot.on_message(ChatMessage("alice", "!trivia help"))

    assert _texts(outbox) == [texts.HELP_TEXT]


def test_full_quiz_awards_points_and_updates_leaderboard(make_bot, outbox, leaderboard):
    bot = make_bot()
    bot.on_message(ChatMessage("host", "trivia start"))
    round_ = _wait_for_open_round(bot)
    answer = str(round_.correct_index + 1)
    wrong = str((round_.correct_index + 1) % len(round_.choices) + 1)

    assert bot.on_private_message(ChatMessage("amy", answer, at(1))) is AnswerOutcome.ACCEPTED
    assert bot.on_private_message(ChatMessage("dee", wrong, at(2))) is AnswerOutcome.ACCEPTED
    assert bot.on_private_message(ChatMessage("amy", wrong, at(3))) is AnswerOutcome.DUPLICATE
    assert bot.on_private_message(ChatMessage("bo", answer, at(4))) is AnswerOutcome.ACCEPTED
    assert bot.on_private_message(ChatMessage("cy", answer, at(5))) is AnswerOutcome.ACCEPTED

    assert bot.wait_until_idle(3)
    assert not bot.is_running
    assert leaderboard.scores() == {"amy": 3, "bo": 2, "cy": 1}
    assert _texts(outbox, "amy") == [texts.ANSWER_RECORDED_TEXT, texts.DUPLICATE_ANSWER_TEXT]

    public = _texts(outbox)
    assert public[0] == texts.QUIZ_STARTING_TEXT
    assert public[1].startswith("Final round:")
    assert public[2] == (
        f"Round complete! The correct answer is {round_.correct_answer}. 1st amy, 2nd bo, and 3rd cy"
    )
    assert public[3].endswith("amy +3 point(s), bo +2 point(s), and cy +1 point(s)")


def test_invalid_answers_get_a_hint(make_bot, outbox):
    bot = make_bot()
    bot.start_quiz()
    round_ = _wait_for_open_round(bot)

    assert bot.on_private_message(ChatMessage("amy", "Paris")) is AnswerOutcome.INVALID
    assert bot.on_private_message(ChatMessage("amy", str(len(round_.choices) + 1))) is AnswerOutcome.INVALID

    assert _texts(outbox, "amy") == [texts.INVALID_ANSWER_TEXT, texts.INVALID_ANSWER_TEXT]
    assert not round_.has_answered("amy")


def test_private_message_without_quiz_is_ignored(make_bot, outbox):
    bot = make_bot()

    assert bot.on_private_message(ChatMessage("amy", "1")) is AnswerOutcome.NO_ROUND
    assert outbox.pending() == []


def test_second_start_while_running_is_refused(make_bot, outbox):
    bot = make_bot(round_timeout=None)
    assert bot.start_quiz()
    _wait_for_open_round(bot)

    assert not bot.start_quiz(force=True)
    assert texts.QUIZ_IN_PROGRESS_TEXT in _texts(outbox)

    bot.quiz.close_current_round()
    assert bot.wait_until_idle(3)


def test_round_timeout_closes_unanswered_rounds(make_bot, outbox, leaderboard):
    bot = make_bot(rounds=2, round_timeout=0.05)

    assert bot.start_quiz()
    assert wait_for(lambda: bot.quiz is not None and bot.quiz.is_finished)
    assert bot.wait_until_idle(3)

    public = _texts(outbox)
    assert sum(text.startswith("Round complete!") for text in public) == 2
    assert public[-1].endswith(texts.NO_WINNERS_QUIZ_TEXT)
    assert leaderboard.scores() == {}


def test_cooldown_applies_unless_forced(make_bot, outbox):
    bot = make_bot(round_timeout=0.01)
    bot.start_quiz()
    assert wait_for(lambda: bot.quiz.is_finished)
    assert bot.wait_until_idle(3)

    assert not bot.start_quiz()
    assert _texts(outbox)[-1].startswith("on cooldown for")

    assert bot.start_quiz(force=True)
    assert bot.wait_until_idle(3)


def test_no_questions_left(make_bot, outbox):
    bank = QuestionBank([TriviaQuestion(0, "Q?", "yes", ["no"])])
    bot = make_bot(question_bank=bank, rounds=2)

    assert not bot.start_quiz()
    assert _texts(outbox) == [texts.NO_QUESTIONS_TEXT]
    assert not bot.is_running
