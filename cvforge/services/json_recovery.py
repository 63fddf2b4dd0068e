from __future__ import annotations

import json
from typing import Any, Iterator


def _balanced_end(text: str, start: int) -> int:
    """Index of the brace closing the object opened at `start`, or -1.

    Braces inside JSON string literals (including escaped quotes) do not count.
    """
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield brace-balanced candidates ordered by their opening position."""
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end != -1:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first balanced candidate in `text` that decodes to a JSON object."""
    if not text:
        return None
    for candidate in iter_balanced_objects(text):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
