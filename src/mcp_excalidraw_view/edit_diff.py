"""
Compact descriptions of user edits.

A baseline is captured after the final render of a drawing pass. Later
editor states are compared against it and summarised as added, removed
and moved/resized elements, which is far smaller than the scene JSON.
"""

import copy
import json
from numbers import Real
from typing import Iterable, Optional


def fingerprint(elements: Iterable[dict]) -> str:
    """``id:version`` pairs of all elements, in order."""
    return json.dumps([f"{e.get('id')}:{e.get('version') or 0}" for e in elements if isinstance(e, dict)])


def _round(value) -> int:
    if isinstance(value, Real) and not isinstance(value, bool):
        return int(round(value))
    return 0


def _describe_added(element: dict) -> str:
    element_type = element.get("type") or "element"
    label = element.get("label")
    text = label.get("text") if isinstance(label, dict) else None
    text = text or element.get("text")
    position = f"({_round(element.get('x'))},{_round(element.get('y'))})"
    if text:
        return f'{element_type} "{text}" at {position}'
    return f"{element_type} at {position}"


def _geometry(element: dict) -> tuple[int, int, int, int]:
    return tuple(_round(element.get(k)) for k in ("x", "y", "width", "height"))


class EditDiffTracker:
    def __init__(self):
        self.snapshot: Optional[str] = None
        self.baseline: dict[str, dict] = {}

    @property
    def captured(self) -> bool:
        return self.snapshot is not None

    def capture_baseline(self, elements: Iterable[dict]) -> None:
        elements = [e for e in elements if isinstance(e, dict)]
        self.snapshot = fingerprint(elements)
        self.baseline = {
            e["id"]: copy.deepcopy(e) for e in elements if isinstance(e.get("id"), str)
        }

    def reset(self) -> None:
        self.snapshot = None
        self.baseline = {}

    def has_changed(self, elements: Iterable[dict]) -> bool:
        return fingerprint(elements) != self.snapshot

    def diff(self, elements: Iterable[dict]) -> str:
        """Describe ``elements`` relative to the baseline; empty when unchanged."""
        elements = [e for e in elements if isinstance(e, dict)]
        if fingerprint(elements) == self.snapshot:
            return ""

        live = [e for e in elements if not e.get("isDeleted")]
        current = {e["id"]: e for e in live if isinstance(e.get("id"), str)}

        added = [_describe_added(e) for element_id, e in current.items() if element_id not in self.baseline]
        removed = [element_id for element_id in self.baseline if element_id not in current]
        moved = []
        for element_id, element in current.items():
            before = self.baseline.get(element_id)
            if before is None:
                continue
            geometry = _geometry(element)
            if geometry != _geometry(before):
                x, y, w, h = geometry
                moved.append(f"{element_id} -> ({x},{y}) {w}x{h}")

        lines = []
        if added:
            lines.append("Added: " + "; ".join(added))
        if removed:
            lines.append("Removed: " + ", ".join(removed))
        if moved:
            lines.append("Moved/resized: " + "; ".join(moved))
        return "\n".join(lines)
