from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import bound_contextvars

# Request-level chatter from the HTTP stacks under the OpenAI and Supabase clients.
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

SECRET_MARKERS = ("api_key", "anon_key", "authorization", "token", "secret")
REDACTED = "***"


def redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor masking any field whose name looks like a credential."""
    for key in list(event_dict):
        if any(marker in key.lower() for marker in SECRET_MARKERS):
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Set up stdlib logging and the structlog pipeline used for generation events.

    Context bound with `generation_context` (content kind, topic) is merged into
    every retry event. Credentials are masked before rendering. HTTP client
    loggers stay at WARNING unless DEBUG is requested.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(numeric_level if numeric_level <= logging.DEBUG else logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def generation_context(**values: Any):
    """Bind key/value context for the duration of one generation call."""
    return bound_contextvars(**values)


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)
