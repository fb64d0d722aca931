"""
Response Normalizer

Reduces whatever JSON the remote agent returns to one display string.

Webhook replies have no fixed shape: a bare string, null, a list of items,
or an object that wraps the answer under a conventional key, sometimes
several levels deep. Resolution order:

1. string -> returned as-is
2. null -> fallback text
3. list -> first element (empty list -> fallback text)
4. object -> first present key from ANSWER_KEYS
5. object -> first string value longer than 10 characters
6. anything else -> pretty-printed JSON (fallback text if it cannot be
   serialized)
"""

from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple, TypeAlias

logger = logging.getLogger(__name__)

JsonValue: TypeAlias = str | int | float | bool | None | list[Any] | dict[str, Any]

NO_RESPONSE_TEXT = "No response received from the assistant."
MIN_UNLABELLED_TEXT_LENGTH = 10


class AnswerKey(NamedTuple):
    name: str
    unwrap_only: bool


# Priority order matters. Unwrap-only keys are wrapper conventions and are
# recursed into even when they already hold a string.
ANSWER_KEYS: tuple[AnswerKey, ...] = (
    AnswerKey("output", unwrap_only=False),
    AnswerKey("json", unwrap_only=True),
    AnswerKey("text", unwrap_only=False),
    AnswerKey("response", unwrap_only=False),
    AnswerKey("message", unwrap_only=False),
    AnswerKey("content", unwrap_only=False),
    AnswerKey("result", unwrap_only=False),
    AnswerKey("data", unwrap_only=True),
    AnswerKey("body", unwrap_only=True),
)


def normalize(value: JsonValue) -> str:
    """Extract a display string from a webhook response body."""
    # Each step descends into a sub-value, so arbitrarily deep wrappers are
    # unwound iteratively.
    while True:
        if isinstance(value, str):
            return value
        if value is None:
            return NO_RESPONSE_TEXT
        if isinstance(value, list):
            if not value:
                return NO_RESPONSE_TEXT
            value = value[0]
            continue
        if not isinstance(value, dict):
            return _serialize(value)

        key = _first_answer_key(value)
        if key is not None:
            inner = value[key.name]
            if not key.unwrap_only and isinstance(inner, str):
                return inner
            value = inner
            continue

        for name, inner in value.items():
            if isinstance(inner, str) and len(inner) > MIN_UNLABELLED_TEXT_LENGTH:
                logger.debug("Found response in key: %s", name)
                return inner

        logger.warning("Could not extract response, returning serialized data")
        return _serialize(value)


def _first_answer_key(value: dict[str, Any]) -> AnswerKey | None:
    for key in ANSWER_KEYS:
        if key.name in value:
            return key
    return None


def _serialize(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except (RecursionError, ValueError):
        logger.warning("Response is too deeply nested to serialize")
        return NO_RESPONSE_TEXT
