from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Difficulty(str, Enum):
    """Ordinal difficulty shared by lessons, quizzes and learner preferences."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CamelModel(BaseModel):
    """Base model accepting both camelCase wire names and snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationRequest(CamelModel):
    """Topic and difficulty requested by the learner for one generation call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    topic: str
    difficulty: Difficulty
    prior_content: Optional[str] = None

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic must not be empty")
        return value


class LessonContent(CamelModel):
    """Lesson produced by the lesson generator; `content` is markdown."""

    title: str
    content: str
    key_points: List[str]
    examples: List[str]
    difficulty: Difficulty


class LessonPayload(CamelModel):
    """Shape the model is asked to return for a lesson; difficulty is stamped later."""

    title: str
    content: str
    key_points: List[str]
    examples: List[str]


class QuizQuestion(CamelModel):
    """Single multiple-choice item with a zero-based answer index."""

    id: str = ""
    question: str
    options: List[str]
    correct_answer: int = Field(ge=0)
    explanation: str

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: List[str]) -> List[str]:
        if len(value) != 4:
            raise ValueError("options must contain exactly four entries")
        return value

    @model_validator(mode="after")
    def answer_in_range(self) -> "QuizQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError("correctAnswer must index into options")
        return self


class WalkthroughStep(CamelModel):
    """One step of a remedial explanation for a missed question."""

    id: str = ""
    title: str
    content: str
    explanation: str


class ProgressRecord(CamelModel):
    """Completed quiz as stored in the progress table; never mutated after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    user_id: str
    lesson_id: str
    quiz_score: int = Field(ge=0, le=100)
    time_spent: int = Field(ge=0)
    completed_at: datetime
    difficulty: Optional[Difficulty] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @classmethod
    def from_row(cls, row: Dict[str, object]) -> "ProgressRecord":
        """Build a record from a snake_case database row."""
        return cls.model_validate(row)


class QuizResult(CamelModel):
    """Outcome of scoring a submitted quiz."""

    total_questions: int
    correct_count: int
    score: int = Field(ge=0, le=100)
    incorrect: List[int] = Field(default_factory=list)


class ProgressStats(CamelModel):
    """Dashboard numbers derived from a learner's progress history."""

    total_lessons: int = 0
    total_time_minutes: int = 0
    average_score: int = 0
    streak_days: int = 0
    by_difficulty: Dict[Difficulty, int] = Field(default_factory=dict)
