"""Cleaning and structural parsing of untrusted model output."""

import json
import re
from typing import Any

from newsbot.core.errors import ModelResponseError

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\s*```$", re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_JSON_OBJECT = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", re.DOTALL)

_SMART_QUOTES = {
    "\u201c": '"',
    "\u201d": '"',
    "\u2018": "'",
    "\u2019": "'",
}


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapping the whole response."""
    text = text.strip()
    match = _CODE_FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII equivalents."""
    for smart, plain in _SMART_QUOTES.items():
        text = text.replace(smart, plain)
    return text


def clean_model_output(text: str) -> str:
    return normalize_quotes(strip_code_fence(text))


def parse_model_json(text: str) -> dict[str, Any]:
    """Clean a model response and parse it as a JSON object.

    Raises:
        ModelResponseError: if no JSON object can be recovered.
    """
    cleaned = clean_model_output(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        data = _recover_object(cleaned)
        if data is None:
            raise ModelResponseError(
                f"response is not valid JSON: {_preview(cleaned)}", raw=text
            ) from None

    if not isinstance(data, dict):
        raise ModelResponseError(
            f"expected a JSON object, got {type(data).__name__}", raw=text
        )
    return data


def _fix_json(text: str) -> str:
    """Remove trailing commas before } or ]."""
    return _TRAILING_COMMA.sub(r"\1", text)


def _recover_object(text: str) -> Any:
    """Try to repair the text or pull the first JSON object out of it."""
    candidates = [_fix_json(text)]
    match = _JSON_OBJECT.search(text)
    if match:
        candidates.append(_fix_json(match.group(0)))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def _preview(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."
