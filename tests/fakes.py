"""In-memory stand-ins for the OpenAI and Supabase clients used across tests."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import openai

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def _request() -> httpx.Request:
    return httpx.Request("POST", COMPLETIONS_URL)


def rate_limit_error() -> openai.RateLimitError:
    return openai.RateLimitError(
        "Rate limit reached", response=httpx.Response(429, request=_request()), body=None
    )


def server_error(status: int = 500) -> openai.APIStatusError:
    return openai.APIStatusError(
        f"Server error {status}", response=httpx.Response(status, request=_request()), body=None
    )


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_request())


def completion(content: Optional[str]) -> SimpleNamespace:
    message = SimpleNamespace(role="assistant", content=content)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


def fenced(value: Any) -> str:
    return f"```json\n{json.dumps(value, indent=2)}\n```"


class FakeCompletions:
    """Returns queued outcomes in order; the last outcome repeats once the queue is drained."""

    def __init__(self, outcomes: List[Any]):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **params: Any) -> SimpleNamespace:
        self.calls.append(params)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, SimpleNamespace):
            return outcome
        return completion(outcome)


class FakeOpenAI:
    def __init__(self, *outcomes: Any):
        self.completions = FakeCompletions(list(outcomes))
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.completions.calls

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total_ms(self) -> float:
        return sum(self.delays) * 1000


class FakeQuery:
    def __init__(self, table: "FakeSupabase"):
        self.store = table
        self.filters: List[Any] = []
        self.ordering: Optional[tuple] = None
        self.pending_insert: Optional[Dict[str, Any]] = None

    def insert(self, row: Dict[str, Any]) -> "FakeQuery":
        self.pending_insert = row
        return self

    def select(self, columns: str) -> "FakeQuery":
        self.store.operations.append(("select", columns))
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.store.operations.append(("eq", column, value))
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        self.store.operations.append(("ilike", column, pattern))
        fragment = pattern.strip("%").lower()
        self.filters.append(lambda row: fragment in str(row.get(column, "")).lower())
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.store.operations.append(("order", column, desc))
        self.ordering = (column, desc)
        return self

    def execute(self) -> SimpleNamespace:
        if self.store.error is not None:
            raise self.store.error
        if self.pending_insert is not None:
            row = dict(self.pending_insert, id=self.store.next_id)
            self.store.next_id += 1
            self.store.rows.append(row)
            return SimpleNamespace(data=[row])
        rows = [row for row in self.store.rows if all(check(row) for check in self.filters)]
        if self.ordering:
            column, desc = self.ordering
            rows.sort(key=lambda row: (row.get(column) is not None, row.get(column) or ""), reverse=desc)
        return SimpleNamespace(data=rows)


class FakeSupabase:
    """Just enough of the supabase-py fluent API for the progress gateway."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows: List[Dict[str, Any]] = list(rows or [])
        self.next_id = len(self.rows) + 1
        self.tables: List[str] = []
        self.operations: List[tuple] = []
        self.error: Optional[Exception] = None

    def table(self, name: str) -> FakeQuery:
        self.tables.append(name)
        return FakeQuery(self)


def lesson_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "title": "Photosynthesis Basics",
        "content": "Plants turn light into chemical energy: $6CO_2 + 6H_2O \\rightarrow C_6H_{12}O_6 + 6O_2$.",
        "keyPoints": [
            "Happens in chloroplasts",
            "Needs light, water and carbon dioxide",
            "Produces glucose and oxygen",
        ],
        "examples": ["A leaf in sunlight", "Algae in a pond"],
    }
    payload.update(overrides)
    return payload


def quiz_payload(count: int = 5) -> List[Dict[str, Any]]:
    return [
        {
            "id": f"q{idx}",
            "question": f"Question {idx} about photosynthesis?",
            "options": ["Chloroplast", "Mitochondria", "Nucleus", "Ribosome"],
            "correctAnswer": 0,
            "explanation": "Photosynthesis takes place in chloroplasts.",
        }
        for idx in range(1, count + 1)
    ]


def walkthrough_payload() -> List[Dict[str, Any]]:
    return [
        {
            "title": "Understanding the Problem",
            "content": "The question asks where light is captured.",
            "explanation": "Framing the question shows what is being tested.",
        },
        {
            "title": "Where energy is made",
            "content": "Mitochondria release energy; chloroplasts capture it.",
            "explanation": "This is the confusion behind the chosen answer.",
        },
        {
            "title": "Remember",
            "content": "Chloroplasts contain chlorophyll.",
            "explanation": "Linking the organelle to its pigment makes it stick.",
        },
    ]
