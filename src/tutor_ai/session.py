"""Per-learner session state passed explicitly to the service layer.

Only a subset of the session survives a restart: the user id, the progress
history and the current topic and lesson. Quiz answers, walkthroughs and
errors are transient.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tutor_ai.learning.models import (
    GenerationRequest,
    LessonContent,
    ProgressRecord,
    QuizQuestion,
    WalkthroughStep,
)
from tutor_ai.learning.quiz import UNANSWERED

logger = logging.getLogger(__name__)

PERSISTED_FIELDS = ("user_id", "progress", "current_topic", "current_lesson")


class TutorSession(BaseModel):
    """Mutable learning state for one learner."""

    user_id: Optional[str] = None
    current_topic: Optional[GenerationRequest] = None
    current_lesson: Optional[LessonContent] = None
    current_quiz: Optional[List[QuizQuestion]] = None
    quiz_answers: List[int] = Field(default_factory=list)
    current_question_index: int = 0
    walkthrough: Optional[List[WalkthroughStep]] = None
    progress: List[ProgressRecord] = Field(default_factory=list)
    error: Optional[str] = None

    def start_topic(self, request: GenerationRequest) -> None:
        self.current_topic = request
        self.current_lesson = None
        self.walkthrough = None
        self.error = None
        self.reset_quiz()

    def set_quiz(self, questions: List[QuizQuestion]) -> None:
        self.current_quiz = questions
        self.quiz_answers = [UNANSWERED] * len(questions)
        self.current_question_index = 0

    def record_answer(self, index: int, option: int) -> None:
        if index < 0:
            raise ValueError("question index must not be negative")
        if len(self.quiz_answers) <= index:
            self.quiz_answers.extend([UNANSWERED] * (index + 1 - len(self.quiz_answers)))
        self.quiz_answers[index] = option
        self.current_question_index = index

    def add_progress(self, record: ProgressRecord) -> None:
        self.progress.insert(0, record)

    def reset_quiz(self) -> None:
        self.current_quiz = None
        self.quiz_answers = []
        self.current_question_index = 0

    def reset_session(self) -> None:
        self.current_topic = None
        self.current_lesson = None
        self.walkthrough = None
        self.reset_quiz()

    def to_persisted(self) -> Dict[str, Any]:
        """Serialize only the fields that should survive a reload."""
        return self.model_dump(mode="json", include=set(PERSISTED_FIELDS))

    @classmethod
    def from_persisted(cls, data: Dict[str, Any]) -> "TutorSession":
        return cls.model_validate({key: data[key] for key in PERSISTED_FIELDS if key in data})


class SessionStore:
    """Persist the reload-safe part of each learner's session as `{user_id}.json`."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def session_path(self, user_id: str) -> Path:
        return self.base_dir / f"{user_id}.json"

    def load(self, user_id: str) -> TutorSession:
        """Load the stored session or start a fresh one for `user_id`."""
        path = self.session_path(user_id)
        if not path.exists():
            return TutorSession(user_id=user_id)
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        session = TutorSession.from_persisted(data)
        session.user_id = session.user_id or user_id
        return session

    def save(self, session: TutorSession) -> None:
        if not session.user_id:
            raise ValueError("Cannot persist a session without a user id.")
        path = self.session_path(session.user_id)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(session.to_persisted(), handle, indent=2)
        logger.debug("Saved session for %s to %s", session.user_id, path)
