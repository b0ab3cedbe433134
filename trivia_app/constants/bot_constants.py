"""Chat command prefixes and the fixed texts the bot sends."""

COMMAND_PREFIXES: tuple[str, ...] = ("trivia", "!trivia")
START_KEYWORDS: tuple[str, ...] = ("start", "new")
HELP_KEYWORDS: tuple[str, ...] = ("help", "info")
FORCE_KEYWORD: str = "force"

HELP_TEXT = (
    "Start a new quiz with `trivia start`. Whisper me the number beside the "
    "answer `/w trivia 2`. First 3 correct answers are awarded points."
)
QUIZ_STARTING_TEXT = (
    "Quiz starting soon! PM the number beside the answer. "
    "First 3 correct answers are awarded points."
)
QUIZ_IN_PROGRESS_TEXT = "a quiz is already in progress"
INVALID_ANSWER_TEXT = "Invalid answer, PM the number of the answer"
DUPLICATE_ANSWER_TEXT = "you have already submitted an answer!"
ANSWER_RECORDED_TEXT = "your answer has been recorded"
NO_WINNERS_ROUND_TEXT = "No one answered correctly"
NO_WINNERS_QUIZ_TEXT = "No one!"
NO_QUESTIONS_TEXT = "no questions are available right now, try again later"
ROUND_CLOSED_TEXT = "too late, this round is already over"
COOLDOWN_TEXT = "on cooldown for {remaining}s"
