"""Helpers for pulling JSON out of free-form model output.

Model text is untrusted input. These helpers only locate and decode the
JSON; callers are expected to validate the result against a schema.
"""

import json
import re
from typing import Any, Optional

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced code block, or the text unchanged."""
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _scan_balanced(text: str, opener: str, closer: str) -> Optional[str]:
    """Find the first balanced ``opener``...``closer`` span, respecting strings."""
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        start = text.find(opener, start + 1)
    return None


def _decode(text: str, opener: str, closer: str, expected: type) -> Optional[Any]:
    candidates = [strip_code_fences(text)]
    span = _scan_balanced(candidates[0], opener, closer)
    if span is not None:
        candidates.append(span)

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(value, expected):
            return value
    return None


def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Extract the first JSON object from model output.

    Tries the whole (fence-stripped) text first, then the first balanced
    ``{...}`` span inside it.

    Args:
        text: Raw model output.

    Returns:
        The decoded object, or None if no JSON object could be decoded.

    Example:
        >>> extract_json_object('Sure! ```json\\n{"a": 1}\\n```')
        {'a': 1}
    """
    if not text:
        return None
    return _decode(text, "{", "}", dict)


def extract_json_array(text: Optional[str]) -> Optional[list[Any]]:
    """Extract the first JSON array from model output.

    Same strategy as ``extract_json_object``; an object wrapping a single
    list value (e.g. ``{"businesses": [...]}``) is unwrapped.
    """
    if not text:
        return None
    value = _decode(text, "[", "]", list)
    if value is not None:
        return value
    wrapper = extract_json_object(text)
    if wrapper:
        lists = [item for item in wrapper.values() if isinstance(item, list)]
        if len(lists) == 1:
            return lists[0]
    return None
