from .models import (
    Difficulty,
    GenerationRequest,
    LessonContent,
    ProgressRecord,
    ProgressStats,
    QuizQuestion,
    QuizResult,
    WalkthroughStep,
)
from .progress import ProgressGateway, summarize_progress
from .quiz import lesson_id_for, score_quiz

__all__ = [
    "Difficulty",
    "GenerationRequest",
    "LessonContent",
    "ProgressGateway",
    "ProgressRecord",
    "ProgressStats",
    "QuizQuestion",
    "QuizResult",
    "WalkthroughStep",
    "lesson_id_for",
    "score_quiz",
    "summarize_progress",
]
