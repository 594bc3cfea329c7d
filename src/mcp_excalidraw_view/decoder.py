"""
Tolerant decoding of streamed element arrays.

Tool arguments arrive as a growing JSON text. Every intermediate fragment
is decoded to the longest prefix of complete records; the function never
raises.
"""

import json
import re
from typing import Any

# Host banners and placeholder pages that are not element payloads
_NON_PAYLOAD = re.compile(r"Standalone|not found|<!DOCTYPE|error\s", re.IGNORECASE)
_LONG_FRAGMENT = 300


def _last_record_end(text: str) -> int:
    """Index of the last ``}`` closing a top-level record, or -1.

    Braces inside string literals are ignored, so a nested object at the
    end of an incomplete record is never mistaken for a record boundary.
    """
    depth = 0
    in_string = False
    escaped = False
    last = -1
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if ch == "}" and depth == 1:
                last = i
    return last


def _records(parsed: Any) -> list:
    if not isinstance(parsed, list):
        return []
    return [r for r in parsed if isinstance(r, dict)]


def _looks_like_banner(text: str) -> bool:
    first = text.find("{")
    head = text if first < 0 else text[:first]
    if _NON_PAYLOAD.search(head):
        return True
    return len(text) > _LONG_FRAGMENT and "type" not in text


def parse_partial_elements(text: Any) -> list[dict]:
    """Decode a possibly truncated JSON array of records.

    Returns the complete records found, or an empty list when the fragment
    is not an element payload at all.
    """
    s = text.strip() if isinstance(text, str) else ""
    if not s or not s.startswith("["):
        return []
    if _looks_like_banner(s):
        return []

    try:
        return _records(json.loads(s))
    except ValueError:
        pass

    last = _last_record_end(s)
    if last < 0:
        return []
    try:
        return _records(json.loads(s[: last + 1] + "]"))
    except ValueError:
        return []


def exclude_incomplete_last_item(items: list) -> list:
    """Drop the tail record of a non-final batch.

    A single record is treated as wholly unconfirmed and yields nothing.
    """
    if not items or len(items) <= 1:
        return []
    return items[:-1]
