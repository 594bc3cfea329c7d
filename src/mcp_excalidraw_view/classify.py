"""Split decoded records into camera instructions and drawable elements."""

from numbers import Real
from typing import Optional

from .models import VIEWPORT_TYPES, ViewportRect


def _viewport_from(record: dict) -> Optional[ViewportRect]:
    values = [record.get(k) for k in ("x", "y", "width", "height")]
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in values):
        return None
    return ViewportRect(*(float(v) for v in values))


def extract_viewport_and_elements(records: list) -> tuple[Optional[ViewportRect], list[dict]]:
    """Return the last camera record of the batch and the drawables in order.

    Camera records with missing or non-numeric geometry are ignored.
    """
    viewport = None
    draw_elements = []

    for record in records:
        if not isinstance(record, dict):
            continue
        if record.get("type") in VIEWPORT_TYPES:
            candidate = _viewport_from(record)
            if candidate is not None:
                viewport = candidate
        else:
            draw_elements.append(record)

    return viewport, draw_elements


def content_hash(elements: list) -> int:
    """Sum of the character codes of all element ids (signed 32-bit)."""
    total = 0
    for element in elements:
        element_id = element.get("id") if isinstance(element, dict) else None
        if not isinstance(element_id, str):
            continue
        for ch in element_id:
            total += ord(ch)
    total &= 0xFFFFFFFF
    return total - (1 << 32) if total >= (1 << 31) else total
