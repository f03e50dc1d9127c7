from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from tutor_ai.config import Settings, load_settings
from tutor_ai.errors import GenerationFailed, NotConfigured
from tutor_ai.generation import ContentGenerator, RetryingClient, create_openai_client
from tutor_ai.generation.generators import coerce_difficulty
from tutor_ai.learning import (
    Difficulty,
    GenerationRequest,
    LessonContent,
    ProgressGateway,
    ProgressRecord,
    QuizQuestion,
    QuizResult,
    WalkthroughStep,
    lesson_id_for,
    score_quiz,
)
from tutor_ai.learning.quiz import answer_text
from tutor_ai.session import SessionStore, TutorSession
from tutor_ai.utils.logging import configure_logging

logger = logging.getLogger(__name__)


class TutorSystem:
    """
    Facade wiring generation, progress storage and session persistence together.

    Every operation takes the learner's `TutorSession` explicitly and updates it in place,
    so CLI and API callers decide where sessions live. Generation failures are recorded on
    `session.error` with the generic user-facing message before being re-raised.

    Attributes
    ----------
    settings : Settings
        Validated configuration.
    client : RetryingClient
        Backoff wrapper around the OpenAI chat completions endpoint.
    generator : ContentGenerator
        Lesson, quiz and walkthrough generation.
    progress : ProgressGateway
        Supabase-backed progress records (may be unconfigured).
    sessions : SessionStore
        On-disk store for the reload-safe part of each session.
    """

    def __init__(
        self,
        settings: Settings,
        client: RetryingClient,
        progress: ProgressGateway,
        sessions: SessionStore,
    ):
        self.settings = settings
        self.client = client
        self.generator = ContentGenerator(client, settings.model)
        self.progress = progress
        self.sessions = sessions

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        api_key: Optional[str] = None,
    ) -> "TutorSystem":
        settings = load_settings(config_path)
        configure_logging(settings.logging.level, settings.logging.use_json)
        openai_client = create_openai_client(settings.model, settings.retry, api_key=api_key)
        return cls(
            settings=settings,
            client=RetryingClient(openai_client, settings.retry),
            progress=ProgressGateway.from_config(settings.supabase),
            sessions=SessionStore(settings.paths.sessions_dir),
        )

    async def start_lesson(
        self,
        session: TutorSession,
        topic: str,
        difficulty: Union[str, Difficulty],
        user_level: Optional[str] = None,
    ) -> LessonContent:
        request = GenerationRequest(topic=topic, difficulty=coerce_difficulty(difficulty))
        session.start_topic(request)
        try:
            lesson = await self.generator.generate_lesson(request.topic, request.difficulty, user_level)
        except GenerationFailed as exc:
            session.error = str(exc)
            raise
        session.current_lesson = lesson
        return lesson

    async def start_quiz(self, session: TutorSession) -> List[QuizQuestion]:
        if session.current_topic is None or session.current_lesson is None:
            raise ValueError("Start a lesson before requesting a quiz.")
        topic = session.current_topic
        try:
            questions = await self.generator.generate_quiz(
                topic.topic, topic.difficulty, session.current_lesson.content
            )
        except GenerationFailed as exc:
            session.error = str(exc)
            raise
        session.error = None
        session.set_quiz(questions)
        return questions

    def submit_quiz(self, session: TutorSession, time_spent_seconds: int) -> QuizResult:
        """Score the session's answers and record progress when a store is available."""
        if not session.current_quiz or session.current_topic is None:
            raise ValueError("There is no quiz to submit.")
        result = score_quiz(session.current_quiz, session.quiz_answers)
        if not session.user_id:
            return result

        topic = session.current_topic
        lesson_id = lesson_id_for(topic.topic, topic.difficulty)
        completed_at = datetime.now(timezone.utc)
        try:
            record_id = self.progress.save_progress(
                session.user_id, lesson_id, result.score, time_spent_seconds, completed_at=completed_at
            )
        except NotConfigured:
            logger.warning("Progress store not configured; quiz result for %s not saved", session.user_id)
            return result
        session.add_progress(
            ProgressRecord(
                id=record_id,
                user_id=session.user_id,
                lesson_id=lesson_id,
                quiz_score=result.score,
                time_spent=time_spent_seconds,
                completed_at=completed_at,
                difficulty=topic.difficulty,
            )
        )
        return result

    async def explain_answer(self, session: TutorSession, question_index: int) -> List[WalkthroughStep]:
        if not session.current_quiz or session.current_topic is None:
            raise ValueError("There is no quiz to review.")
        if not 0 <= question_index < len(session.current_quiz):
            raise ValueError(f"Question index {question_index} is out of range.")
        question = session.current_quiz[question_index]
        selected = session.quiz_answers[question_index] if question_index < len(session.quiz_answers) else None
        try:
            steps = await self.generator.generate_walkthrough(
                question.question,
                answer_text(question, selected),
                question.options[question.correct_answer],
                session.current_topic.topic,
            )
        except GenerationFailed as exc:
            session.error = str(exc)
            raise
        session.walkthrough = steps
        return steps

    def load_progress(self, session: TutorSession) -> List[ProgressRecord]:
        if not session.user_id:
            raise ValueError("Session has no user id.")
        session.progress = self.progress.get_user_progress(session.user_id)
        return session.progress

    async def close(self) -> None:
        await self.client.close()
