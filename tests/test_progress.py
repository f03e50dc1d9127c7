"""Tests for the Supabase-backed progress gateway and dashboard statistics."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from postgrest.exceptions import APIError

from tutor_ai.config.schema import SupabaseConfig
from tutor_ai.errors import NotConfigured, StoreError
from tutor_ai.learning.models import Difficulty, ProgressRecord
from tutor_ai.learning.progress import ProgressGateway, credentials_valid, summarize_progress

from fakes import FakeSupabase

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _row(record_id, user_id, lesson_id, score, seconds, completed_at, **extra):
    row = {
        "id": record_id,
        "user_id": user_id,
        "lesson_id": lesson_id,
        "quiz_score": score,
        "time_spent": seconds,
        "completed_at": completed_at.isoformat(),
    }
    row.update(extra)
    return row


@pytest.fixture
def store():
    return FakeSupabase(
        rows=[
            _row(1, "alice", "photosynthesis-beginner", 80, 300, NOW - timedelta(days=2)),
            _row(2, "alice", "fractions-intermediate", 60, 600, NOW - timedelta(hours=1)),
            _row(3, "bob", "photosynthesis-beginner", 100, 200, NOW - timedelta(days=1)),
            _row(4, "alice", "Photosynthesis-advanced", 90, 400, NOW - timedelta(days=1)),
        ]
    )


@pytest.fixture
def gateway(store):
    return ProgressGateway(store, clock=lambda: NOW)


def test_save_progress_inserts_row_and_returns_id(gateway, store):
    record_id = gateway.save_progress("carol", "cells-beginner", 75, 420)

    assert record_id == "5"
    saved = store.rows[-1]
    assert saved["user_id"] == "carol"
    assert saved["lesson_id"] == "cells-beginner"
    assert saved["quiz_score"] == 75
    assert saved["time_spent"] == 420
    assert saved["completed_at"] == NOW.isoformat()
    assert store.tables == ["user_progress"]


def test_save_progress_uses_explicit_timestamp(gateway, store):
    stamp = NOW - timedelta(minutes=5)
    gateway.save_progress("carol", "cells-beginner", 75, 420, completed_at=stamp)
    assert store.rows[-1]["completed_at"] == stamp.isoformat()


@pytest.mark.parametrize("score,seconds", [(-1, 10), (101, 10), (50, -5)])
def test_save_progress_validates_inputs(gateway, score, seconds):
    with pytest.raises(ValueError):
        gateway.save_progress("carol", "cells-beginner", score, seconds)


def test_user_progress_is_newest_first(gateway, store):
    records = gateway.get_user_progress("alice")

    assert [record.id for record in records] == ["2", "4", "1"]
    assert all(isinstance(record, ProgressRecord) for record in records)
    assert ("order", "completed_at", True) in store.operations


def test_topic_progress_matches_substring_case_insensitively(gateway, store):
    records = gateway.get_topic_progress("alice", "photosynthesis")

    assert {record.id for record in records} == {"1", "4"}
    assert ("ilike", "lesson_id", "%photosynthesis%") in store.operations
    assert ("eq", "user_id", "alice") in store.operations


def test_unconfigured_gateway_raises_not_configured():
    gateway = ProgressGateway(None)
    assert not gateway.configured
    with pytest.raises(NotConfigured):
        gateway.save_progress("alice", "x-beginner", 10, 10)
    with pytest.raises(NotConfigured):
        gateway.get_user_progress("alice")
    with pytest.raises(NotConfigured):
        gateway.get_topic_progress("alice", "x")


def test_api_errors_become_store_errors(gateway, store):
    store.error = APIError({"message": "permission denied", "code": "42501"})
    with pytest.raises(StoreError, match="permission denied"):
        gateway.get_user_progress("alice")
    with pytest.raises(StoreError):
        gateway.save_progress("alice", "x-beginner", 10, 10)


def test_unreachable_store_is_store_error(gateway, store):
    store.error = httpx.ConnectError("[Errno 111] Connection refused")
    with pytest.raises(StoreError, match="unreachable"):
        gateway.get_user_progress("alice")
    with pytest.raises(StoreError):
        gateway.get_topic_progress("alice", "photosynthesis")
    with pytest.raises(StoreError):
        gateway.save_progress("alice", "x-beginner", 10, 10)


def test_http_status_failure_is_store_error(gateway, store):
    request = httpx.Request("GET", "https://abc.supabase.co/rest/v1/user_progress")
    response = httpx.Response(500, request=request)
    store.error = httpx.HTTPStatusError("Server error", request=request, response=response)
    with pytest.raises(StoreError, match="Server error"):
        gateway.get_user_progress("alice")


def test_unexpected_row_shape_is_store_error(store):
    store.rows.append({"id": 9, "user_id": "alice", "lesson_id": "x"})
    with pytest.raises(StoreError):
        ProgressGateway(store).get_user_progress("alice")


@pytest.mark.parametrize(
    "url,key,expected",
    [
        ("https://abc.supabase.co", "anon", True),
        ("", "anon", False),
        ("https://abc.supabase.co", "", False),
        ("your_supabase_url_here", "anon", False),
        ("https://abc.supabase.co", "your_supabase_anon_key_here", False),
        ("http://abc.supabase.co", "anon", False),
    ],
)
def test_credentials_valid(url, key, expected):
    assert credentials_valid(url, key) is expected


def test_from_config_without_credentials_is_unconfigured():
    gateway = ProgressGateway.from_config(SupabaseConfig(url="", anon_key=""))
    assert gateway.client is None


def _record(record_id, score, seconds, completed_at, difficulty=None):
    return ProgressRecord(
        id=record_id,
        user_id="alice",
        lesson_id="topic-beginner",
        quiz_score=score,
        time_spent=seconds,
        completed_at=completed_at,
        difficulty=difficulty,
    )


def test_summarize_progress_counts_streak_and_averages():
    records = [
        _record("1", 70, 1800, NOW - timedelta(days=3)),
        _record("2", 80, 600, NOW - timedelta(hours=1), Difficulty.BEGINNER),
        _record("3", 90, 1200, NOW - timedelta(days=1, hours=1), Difficulty.BEGINNER),
    ]

    stats = summarize_progress(records, now=NOW)

    assert stats.total_lessons == 3
    assert stats.total_time_minutes == 60
    assert stats.average_score == 80
    assert stats.streak_days == 2
    assert stats.by_difficulty == {Difficulty.BEGINNER: 2}


def test_streak_is_zero_without_activity_today():
    stats = summarize_progress([_record("1", 50, 60, NOW - timedelta(days=2))], now=NOW)
    assert stats.streak_days == 0


def test_summarize_empty_history():
    stats = summarize_progress([], now=NOW)
    assert stats.total_lessons == 0
    assert stats.average_score == 0
