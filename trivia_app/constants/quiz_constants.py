"""Quiz-related constants shared across the engine and the bot driver."""

CORRECT_ANSWER_CAPACITY: int = 3
# Points for the 1st, 2nd and 3rd correct answer of a round.
POINTS_BY_RANK: tuple[int, ...] = (3, 2, 1)
DEFAULT_ROUNDS_PER_QUIZ: int = 5

QUIZ_COOLDOWN_SECONDS: float = 300.0
QUIZ_START_DELAY_SECONDS: float = 10.0
BETWEEN_ROUNDS_DELAY_SECONDS: float = 25.0
QUIZ_END_DELAY_SECONDS: float = 5.0
ROUND_TIMEOUT_SECONDS: float = 120.0
