"""Exception hierarchy shared by the generation and persistence layers."""

from __future__ import annotations

from typing import Optional


class TutorAIError(Exception):
    """Base class for all errors raised by the tutor core."""


class RateLimited(TutorAIError):
    """The generation service answered with HTTP 429."""

    def __init__(self, message: str = "Generation service rate limit hit", status_code: int = 429):
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(TutorAIError):
    """The request never produced an HTTP response (connection error or timeout)."""


class ServiceError(TutorAIError):
    """The generation service answered with a non-2xx status other than 429."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Generation service error: {status_code}")
        self.status_code = status_code


class ExhaustedRetries(TutorAIError):
    """Every allowed attempt was rate limited."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(f"Generation service rate limit exceeded after {attempts} attempts")
        self.attempts = attempts
        self.last_error = last_error


class MalformedResponse(TutorAIError):
    """Model output could not be turned into the expected structured value."""


class GenerationFailed(TutorAIError):
    """User-facing wrapper around any generation failure; the cause is chained."""


class PersistenceError(TutorAIError):
    """Base class for progress store failures."""


class NotConfigured(PersistenceError):
    """No progress store is reachable because credentials are missing."""


class StoreError(PersistenceError):
    """The progress store rejected or failed a request."""


__all__ = [
    "TutorAIError",
    "RateLimited",
    "TransportFailure",
    "ServiceError",
    "ExhaustedRetries",
    "MalformedResponse",
    "GenerationFailed",
    "PersistenceError",
    "NotConfigured",
    "StoreError",
]
