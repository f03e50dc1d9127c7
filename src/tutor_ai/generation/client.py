from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from tutor_ai.config.schema import ModelConfig, RetryConfig
from tutor_ai.errors import (
    ExhaustedRetries,
    MalformedResponse,
    RateLimited,
    ServiceError,
    TransportFailure,
)
from tutor_ai.utils.logging import get_logger

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ChatMessage(BaseModel):
    role: str
    content: str


class CompletionRequest(BaseModel):
    """Body of one chat completion call."""

    model: str
    messages: List[ChatMessage]
    max_tokens: int = Field(1000, ge=1)
    temperature: float = Field(0.7, ge=0, le=2)


@dataclass
class RetryState:
    """Bookkeeping for a single `send` call; never shared between calls."""

    attempt: int = 0
    delay_ms: int = 0
    last_error: Optional[BaseException] = None


def backoff_delay_ms(base_delay_ms: int, attempt: int) -> int:
    """Exponential backoff without jitter: base * 2**attempt."""
    return base_delay_ms * (2 ** attempt)


def create_openai_client(
    config: ModelConfig,
    retry: RetryConfig,
    api_key: Optional[str] = None,
) -> AsyncOpenAI:
    """Build an AsyncOpenAI client whose own retries are disabled."""
    key = api_key or os.getenv("OPENAI_API_KEY")
    if not key:
        raise RuntimeError("OPENAI_API_KEY must be set or an OpenAI client provided.")
    return AsyncOpenAI(
        api_key=key,
        base_url=config.base_url,
        max_retries=0,
        timeout=retry.attempt_timeout_seconds,
    )


class RetryingClient:
    """
    Send chat completions to the generation service with exponential backoff.

    Rate-limited responses, other non-2xx statuses and transport failures are all
    retried up to `max_retries` times, waiting `base_delay_ms * 2**attempt` between
    attempts. On the last attempt a rate limit becomes `ExhaustedRetries`, while any
    other failure is re-raised as-is. Attempts never overlap.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        retry: Optional[RetryConfig] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.client = client
        self.retry = retry or RetryConfig()
        self._sleep = sleep or asyncio.sleep

    async def send(self, request: CompletionRequest) -> str:
        state = RetryState()
        max_retries = self.retry.max_retries
        while True:
            attempt = state.attempt
            try:
                return await self._attempt(request)
            except RateLimited as exc:
                state.last_error = exc
                if attempt == max_retries:
                    logger.error("generation_rate_limit_exhausted", attempts=attempt + 1)
                    raise ExhaustedRetries(attempt + 1, exc) from exc
                reason = "rate_limited"
            except (ServiceError, TransportFailure) as exc:
                state.last_error = exc
                if attempt == max_retries:
                    raise
                reason = "request_failed"
            state.delay_ms = backoff_delay_ms(self.retry.base_delay_ms, attempt)
            logger.warning(
                "generation_retry",
                reason=reason,
                error=str(state.last_error),
                delay_ms=state.delay_ms,
                attempt=attempt + 1,
                max_attempts=max_retries + 1,
            )
            await self._sleep(state.delay_ms / 1000)
            state.attempt += 1

    async def _attempt(self, request: CompletionRequest) -> str:
        params: Dict[str, Any] = request.model_dump()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**params),
                timeout=self.retry.attempt_timeout_seconds,
            )
        except openai.APIStatusError as exc:
            if exc.status_code == 429:
                raise RateLimited() from exc
            raise ServiceError(exc.status_code) from exc
        except (openai.APIConnectionError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"Generation service unreachable: {exc!r}") from exc
        return _message_content(response)

    async def close(self) -> None:
        await self.client.close()


def _message_content(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise MalformedResponse("Completion response has no message content") from exc
    if content is None:
        raise MalformedResponse("Completion response has no message content")
    return content
