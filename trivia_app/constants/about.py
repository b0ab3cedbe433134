"""Static metadata describing the trivia service."""

APP_NAME = "Trivia"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "Trivia is a chat quiz bot: it runs multi-round quizzes, awards points to the "
    "first three correct answers of every round and keeps a persistent leaderboard."
)
