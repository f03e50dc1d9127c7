from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, create_client

from tutor_ai.config.schema import SupabaseConfig
from tutor_ai.errors import NotConfigured, StoreError
from tutor_ai.learning.models import Difficulty, ProgressRecord, ProgressStats

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "your_supabase_url_here"
PLACEHOLDER_KEY = "your_supabase_anon_key_here"

NOT_CONFIGURED_MESSAGE = "Supabase is not configured. Please set up your environment variables."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def credentials_valid(url: str, key: str) -> bool:
    """Return True when both credentials are set, not placeholders, and the URL is https."""
    url_ok = bool(url) and url != PLACEHOLDER_URL and url.startswith("https://")
    key_ok = bool(key) and key != PLACEHOLDER_KEY
    return url_ok and key_ok


class ProgressGateway:
    """
    Thin CRUD facade over the hosted `user_progress` table.

    Every call is a single round trip with no retry and no caching. Records are
    append-only: there is no update or delete operation.
    """

    def __init__(
        self,
        client: Optional[Client],
        table: str = "user_progress",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.table = table
        self._clock = clock

    @classmethod
    def from_config(cls, config: SupabaseConfig) -> "ProgressGateway":
        if not credentials_valid(config.url, config.anon_key):
            logger.warning("Supabase environment variables are not set. Progress will not be saved.")
            return cls(None, table=config.table)
        return cls(create_client(config.url, config.anon_key), table=config.table)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _query(self):
        if self.client is None:
            raise NotConfigured(NOT_CONFIGURED_MESSAGE)
        return self.client.table(self.table)

    def save_progress(
        self,
        user_id: str,
        lesson_id: str,
        score: int,
        time_spent_seconds: int,
        completed_at: Optional[datetime] = None,
    ) -> str:
        """Insert one completed quiz and return the new row id."""
        if not 0 <= score <= 100:
            raise ValueError("score must be between 0 and 100")
        if time_spent_seconds < 0:
            raise ValueError("time spent must not be negative")
        row = {
            "user_id": user_id,
            "lesson_id": lesson_id,
            "quiz_score": score,
            "time_spent": time_spent_seconds,
            "completed_at": (completed_at or self._clock()).isoformat(),
        }
        query = self._query()
        try:
            response = query.insert(row).execute()
        except APIError as exc:
            raise StoreError(f"Failed to save progress: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to save progress: {_http_failure(exc)}") from exc
        if not response.data or "id" not in response.data[0]:
            raise StoreError("Progress insert returned no id")
        record_id = str(response.data[0]["id"])
        logger.info("Saved progress %s for user %s (lesson=%s, score=%d)", record_id, user_id, lesson_id, score)
        return record_id

    def get_user_progress(self, user_id: str) -> List[ProgressRecord]:
        """All records for `user_id`, newest first."""
        query = self._query()
        try:
            response = (
                query.select("*")
                .eq("user_id", user_id)
                .order("completed_at", desc=True)
                .execute()
            )
        except APIError as exc:
            raise StoreError(f"Failed to load progress: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to load progress: {_http_failure(exc)}") from exc
        return _to_records(response.data)

    def get_topic_progress(self, user_id: str, topic_fragment: str) -> List[ProgressRecord]:
        """Records for `user_id` whose lesson id contains `topic_fragment` (case-insensitive)."""
        query = self._query()
        try:
            response = (
                query.select("*")
                .eq("user_id", user_id)
                .ilike("lesson_id", f"%{topic_fragment}%")
                .execute()
            )
        except APIError as exc:
            raise StoreError(f"Failed to load topic progress: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to load topic progress: {_http_failure(exc)}") from exc
        records: List[ProgressRecord] = []
        seen = set()
        for record in _to_records(response.data):
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
        return records


def _http_failure(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.TransportError):
        return f"progress store unreachable ({exc.__class__.__name__})"
    return str(exc)


def _to_records(rows: Optional[Iterable[Dict[str, Any]]]) -> List[ProgressRecord]:
    try:
        return [ProgressRecord.from_row(row) for row in rows or []]
    except ValidationError as exc:
        raise StoreError(f"Progress row has an unexpected shape: {exc}") from exc


def summarize_progress(
    records: Iterable[ProgressRecord],
    now: Optional[datetime] = None,
) -> ProgressStats:
    """
    Compute dashboard statistics for a learner.

    The streak counts consecutive days of activity ending today: records are walked
    newest first and each one must be exactly `streak` whole days old to extend it.
    """
    ordered = sorted(records, key=lambda record: record.completed_at, reverse=True)
    if not ordered:
        return ProgressStats()
    now = now or _utcnow()

    total_seconds = sum(record.time_spent for record in ordered)
    average = round(sum(record.quiz_score for record in ordered) / len(ordered))

    streak = 0
    for record in ordered:
        completed = record.completed_at
        if completed.tzinfo is None:
            completed = completed.replace(tzinfo=timezone.utc)
        diff_days = int((now - completed).total_seconds() // 86400)
        if diff_days == streak:
            streak += 1
        else:
            break

    by_difficulty: Dict[Difficulty, int] = {}
    for record in ordered:
        if record.difficulty is not None:
            by_difficulty[record.difficulty] = by_difficulty.get(record.difficulty, 0) + 1

    return ProgressStats(
        total_lessons=len(ordered),
        total_time_minutes=round(total_seconds / 60),
        average_score=average,
        streak_days=streak,
        by_difficulty=by_difficulty,
    )
