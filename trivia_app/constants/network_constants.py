"""Network and storage configuration constants for the trivia service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000

DEFAULT_LEADERBOARD_PATH: str = "data/leaderboard.json"
DEFAULT_QUESTIONS_PATH: str = "data/questions.txt"
