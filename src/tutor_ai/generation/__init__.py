from .client import CompletionRequest, RetryingClient, RetryState, create_openai_client
from .generators import ContentGenerator
from .parser import extract_payload, parse, parse_model

__all__ = [
    "CompletionRequest",
    "ContentGenerator",
    "RetryingClient",
    "RetryState",
    "create_openai_client",
    "extract_payload",
    "parse",
    "parse_model",
]
