from __future__ import annotations

import logging
from typing import List, Optional, Union

from tutor_ai.config.schema import ModelConfig
from tutor_ai.errors import GenerationFailed, TutorAIError
from tutor_ai.generation import prompts
from tutor_ai.generation.client import ChatMessage, CompletionRequest, RetryingClient
from tutor_ai.generation.parser import parse_model
from tutor_ai.learning.models import (
    Difficulty,
    LessonContent,
    LessonPayload,
    QuizQuestion,
    WalkthroughStep,
)
from tutor_ai.utils.logging import generation_context

logger = logging.getLogger(__name__)

LESSON_MAX_TOKENS = 2000
QUIZ_MAX_TOKENS = 1500
WALKTHROUGH_MAX_TOKENS = 1000


def coerce_difficulty(value: Union[str, Difficulty]) -> Difficulty:
    """Accept a Difficulty or its string value, rejecting blanks and unknown levels."""
    if isinstance(value, Difficulty):
        return value
    text = (value or "").strip().lower()
    if not text:
        raise ValueError("difficulty must not be empty")
    try:
        return Difficulty(text)
    except ValueError as exc:
        allowed = ", ".join(level.value for level in Difficulty)
        raise ValueError(f"difficulty must be one of: {allowed}") from exc


def _require_text(name: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{name} must not be empty")
    return value.strip()


class ContentGenerator:
    """Build prompts for lessons, quizzes and walkthroughs and parse the replies."""

    def __init__(self, client: RetryingClient, model: Optional[ModelConfig] = None):
        self.client = client
        self.model = model or ModelConfig()

    def _request(self, system_prompt: str, user_prompt: str, max_tokens: int) -> CompletionRequest:
        return CompletionRequest(
            model=self.model.name,
            messages=[
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=user_prompt),
            ],
            max_tokens=max_tokens,
            temperature=self.model.temperature,
        )

    async def generate_lesson(
        self,
        topic: str,
        difficulty: Union[str, Difficulty],
        user_level: Optional[str] = None,
    ) -> LessonContent:
        topic = _require_text("topic", topic)
        level = coerce_difficulty(difficulty)
        request = self._request(
            prompts.LESSON_SYSTEM_PROMPT,
            prompts.lesson_prompt(topic, level.value, user_level),
            LESSON_MAX_TOKENS,
        )
        try:
            with generation_context(kind="lesson", topic=topic):
                raw = await self.client.send(request)
            payload = parse_model(raw, LessonPayload)
        except TutorAIError as exc:
            logger.error("Error generating lesson for %r: %s", topic, exc)
            raise GenerationFailed("Failed to generate lesson. Please try again.") from exc
        # The requested level wins over anything the model echoed back.
        return LessonContent(**payload.model_dump(), difficulty=level)

    async def generate_quiz(
        self,
        topic: str,
        difficulty: Union[str, Difficulty],
        lesson_content: str,
    ) -> List[QuizQuestion]:
        topic = _require_text("topic", topic)
        level = coerce_difficulty(difficulty)
        request = self._request(
            prompts.QUIZ_SYSTEM_PROMPT,
            prompts.quiz_prompt(topic, level.value, lesson_content or ""),
            QUIZ_MAX_TOKENS,
        )
        try:
            with generation_context(kind="quiz", topic=topic):
                raw = await self.client.send(request)
            questions = parse_model(raw, List[QuizQuestion])
        except TutorAIError as exc:
            logger.error("Error generating quiz for %r: %s", topic, exc)
            raise GenerationFailed("Failed to generate quiz. Please try again.") from exc
        return [
            question if question.id else question.model_copy(update={"id": f"q{idx}"})
            for idx, question in enumerate(questions, start=1)
        ]

    async def generate_walkthrough(
        self,
        question: str,
        user_answer: str,
        correct_answer: str,
        topic: str,
    ) -> List[WalkthroughStep]:
        question = _require_text("question", question)
        topic = _require_text("topic", topic)
        request = self._request(
            prompts.WALKTHROUGH_SYSTEM_PROMPT,
            prompts.walkthrough_prompt(question, user_answer, correct_answer, topic),
            WALKTHROUGH_MAX_TOKENS,
        )
        try:
            with generation_context(kind="walkthrough", topic=topic):
                raw = await self.client.send(request)
            steps = parse_model(raw, List[WalkthroughStep])
        except TutorAIError as exc:
            logger.error("Error generating walkthrough for %r: %s", topic, exc)
            raise GenerationFailed("Failed to generate walkthrough. Please try again.") from exc
        return [
            step if step.id else step.model_copy(update={"id": f"step{idx}"})
            for idx, step in enumerate(steps, start=1)
        ]
