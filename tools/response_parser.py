"""Parsing and validation of LLM response payloads."""

import json
import re
from typing import Any, Iterator, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config.exceptions import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# Models often emit raw newlines inside JSON strings; strict=False accepts them.
_LENIENT_DECODER = json.JSONDecoder(strict=False)

# Leading YES, allowing markdown emphasis or quotes before it
_YES_RE = re.compile(r"[\W_]*YES\b")


def _candidates(text: str) -> Iterator[str]:
    """Yield substrings of ``text`` that might hold the JSON payload."""
    yield text
    match = _JSON_FENCE_RE.search(text)
    if match:
        yield match.group(1).strip()
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            yield text[start:end + 1]


def parse_json_response(text: str) -> Any:
    """Extract and decode the JSON payload of an LLM response.

    Accepts bare JSON, JSON inside a markdown fence, and JSON embedded in
    surrounding prose.

    Raises:
        ValueError: If no candidate decodes.
    """
    text = text.strip()
    for candidate in _candidates(text):
        try:
            return _LENIENT_DECODER.decode(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError(f"Failed to parse JSON from LLM response: {text[:200]}...")


def validate_payload(payload: Any, schema: Type[ModelT]) -> ModelT:
    """Validate a decoded payload against ``schema``.

    A single-element list wrapping the expected object is unwrapped first.
    """
    if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], dict):
        payload = payload[0]
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise SchemaValidationError(schema.__name__, _summarize(e)) from e


def parse_model(text: str, schema: Type[ModelT]) -> ModelT:
    """Decode ``text`` as JSON and validate it against ``schema``."""
    try:
        payload = parse_json_response(text)
    except ValueError as e:
        raise SchemaValidationError(schema.__name__, str(e)) from e
    return validate_payload(payload, schema)


def is_affirmative(text: str) -> bool:
    """True if a YES/NO classification answer starts with YES."""
    return bool(_YES_RE.match((text or "").strip().upper()))


def _summarize(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors()[:5]:
        loc = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{loc}: {item['msg']}")
    if error.error_count() > 5:
        parts.append(f"... {error.error_count() - 5} more")
    return "; ".join(parts)
