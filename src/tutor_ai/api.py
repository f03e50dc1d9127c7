"""FastAPI application exposing lesson, quiz and progress operations as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from tutor_ai.errors import GenerationFailed, NotConfigured, StoreError
from tutor_ai.learning import (
    Difficulty,
    LessonContent,
    ProgressRecord,
    ProgressStats,
    QuizQuestion,
    WalkthroughStep,
    summarize_progress,
)
from tutor_ai.system import TutorSystem

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _get_system() -> TutorSystem:
    """Create a singleton TutorSystem instance."""
    logger.info("Initializing TutorSystem for FastAPI service")
    return TutorSystem.from_config()


async def get_system() -> TutorSystem:
    """FastAPI dependency that returns the shared TutorSystem."""
    return _get_system()


class LessonRequest(BaseModel):
    topic: str
    difficulty: Difficulty = Difficulty.BEGINNER
    user_level: Optional[str] = None


class QuizRequest(BaseModel):
    topic: str
    difficulty: Difficulty = Difficulty.BEGINNER
    lesson_content: str = ""


class WalkthroughRequest(BaseModel):
    question: str
    user_answer: str
    correct_answer: str
    topic: str


class ProgressRequest(BaseModel):
    user_id: str
    lesson_id: str
    score: int = Field(ge=0, le=100)
    time_spent: int = Field(ge=0)


class ProgressCreated(BaseModel):
    id: str


app = FastAPI(title="TutorAI API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _generation_error(exc: GenerationFailed) -> HTTPException:
    return HTTPException(status_code=502, detail=str(exc))


def _store_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotConfigured):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/lessons", response_model=LessonContent, response_model_by_alias=True)
async def create_lesson(payload: LessonRequest, system: TutorSystem = Depends(get_system)):
    try:
        return await system.generator.generate_lesson(payload.topic, payload.difficulty, payload.user_level)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except GenerationFailed as exc:
        raise _generation_error(exc) from exc


@app.post("/quizzes", response_model=List[QuizQuestion], response_model_by_alias=True)
async def create_quiz(payload: QuizRequest, system: TutorSystem = Depends(get_system)):
    try:
        return await system.generator.generate_quiz(payload.topic, payload.difficulty, payload.lesson_content)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except GenerationFailed as exc:
        raise _generation_error(exc) from exc


@app.post("/walkthroughs", response_model=List[WalkthroughStep], response_model_by_alias=True)
async def create_walkthrough(payload: WalkthroughRequest, system: TutorSystem = Depends(get_system)):
    try:
        return await system.generator.generate_walkthrough(
            payload.question, payload.user_answer, payload.correct_answer, payload.topic
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except GenerationFailed as exc:
        raise _generation_error(exc) from exc


@app.post("/progress", response_model=ProgressCreated, status_code=201)
def save_progress(payload: ProgressRequest, system: TutorSystem = Depends(get_system)):
    try:
        record_id = system.progress.save_progress(
            payload.user_id, payload.lesson_id, payload.score, payload.time_spent
        )
    except (NotConfigured, StoreError) as exc:
        raise _store_error(exc) from exc
    return ProgressCreated(id=record_id)


@app.get("/progress/{user_id}", response_model=List[ProgressRecord], response_model_by_alias=True)
def list_progress(user_id: str, topic: Optional[str] = None, system: TutorSystem = Depends(get_system)):
    try:
        if topic:
            return system.progress.get_topic_progress(user_id, topic)
        return system.progress.get_user_progress(user_id)
    except (NotConfigured, StoreError) as exc:
        raise _store_error(exc) from exc


@app.get("/progress/{user_id}/stats", response_model=ProgressStats, response_model_by_alias=True)
def progress_stats(user_id: str, system: TutorSystem = Depends(get_system)):
    try:
        records = system.progress.get_user_progress(user_id)
    except (NotConfigured, StoreError) as exc:
        raise _store_error(exc) from exc
    return summarize_progress(records)
