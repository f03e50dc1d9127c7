"""Turn free-form model output into structured values.

Models are asked for JSON but frequently wrap it in a fenced markdown block,
sometimes tagged ``json``. The helpers here accept either form and report every
failure as :class:`~tutor_ai.errors.MalformedResponse`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from tutor_ai.errors import MalformedResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Both fences must start a line. Newlines inside JSON strings are escaped, so
# backticks within a markdown `content` value never close the block.
_FENCE_PATTERN = re.compile(r"^```(?:json)?[ \t]*\n([\s\S]*?)\n```[ \t]*$", re.IGNORECASE | re.MULTILINE)


def extract_payload(text: str) -> str:
    """Return the inner text of the first fenced block, or the whole trimmed text."""
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse(text: str, expect: Optional[type] = None) -> Any:
    """
    Decode the structured payload carried by `text`.

    When `expect` is `dict` or `list`, the decoded top-level value must be of that type.
    No fallback is attempted once a candidate payload has been chosen.
    """
    if not isinstance(text, str):
        raise MalformedResponse(f"Expected text response, got {type(text).__name__}")
    candidate = extract_payload(text)
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.error("Failed to parse model response: %s", candidate[:500])
        raise MalformedResponse("Invalid response format from AI service") from exc
    if expect is not None and not isinstance(value, expect):
        raise MalformedResponse(
            f"Expected a JSON {expect.__name__}, got {type(value).__name__}"
        )
    return value


def parse_model(text: str, schema: Type[T]) -> T:
    """Parse `text` and validate it against `schema` (a model or a typing construct)."""
    value = parse(text)
    try:
        return TypeAdapter(schema).validate_python(value)
    except ValidationError as exc:
        logger.error("Model response failed validation: %s", exc)
        raise MalformedResponse(f"Response did not match expected structure: {exc}") from exc
