"""Messages sent from the diagram back to the model."""

import json
from dataclasses import dataclass
from typing import Any, Optional, Protocol

PNG_DATA_URL_PREFIX = "data:image/png;base64,"

# Bookkeeping fields that only add noise to the JSON handed to the model
VOLATILE_FIELDS = ("version", "versionNonce", "seed")


class Host(Protocol):
    """Operations the embedding host offers to a drawing session.

    ``update_model_context(content)`` is optional; hosts that lack it only
    get persisted edits, no edit notifications.
    """

    async def send_message(self, message: dict) -> Any: ...

    async def request_display_mode(self, mode: str) -> str: ...


@dataclass(frozen=True)
class Action:
    label: str
    prompt: str
    include_json: bool


ACTIONS = (
    Action(
        label="Ask Claude",
        prompt="Look at this diagram I drew. What do you see? Describe it and share any thoughts or suggestions.",
        include_json=False,
    ),
    Action(
        label="Refine",
        prompt=(
            "I sketched this rough diagram. Please clean it up and redraw it as a polished, "
            "well-organized diagram using the create_view tool. Keep the same concepts but "
            "improve the layout, colors, and styling."
        ),
        include_json=True,
    ),
    Action(
        label="Generate Code",
        prompt=(
            "Based on this diagram I drew, generate the code or implementation it represents. "
            "If it's a wireframe, generate the UI code. If it's an architecture diagram, generate "
            "the infrastructure/service code. If it's a flowchart, generate the logic."
        ),
        include_json=True,
    ),
    Action(
        label="Explain",
        prompt=(
            "Explain the concepts shown in this diagram step by step. Break down each component "
            "and how they relate to each other."
        ),
        include_json=False,
    ),
)


def get_action(label: str) -> Action:
    for action in ACTIONS:
        if action.label.lower() == label.lower():
            return action
    raise KeyError(f"Unknown action: {label}")


def strip_volatile(elements: list) -> list[dict]:
    return [
        {k: v for k, v in element.items() if k not in VOLATILE_FIELDS}
        for element in elements
        if isinstance(element, dict)
    ]


def image_block(screenshot: str) -> dict:
    data = screenshot[len(PNG_DATA_URL_PREFIX):] if screenshot.startswith(PNG_DATA_URL_PREFIX) else screenshot
    return {"type": "image", "data": data, "mimeType": "image/png"}


def build_message(
    elements: list,
    prompt: str,
    include_json: bool,
    screenshot: Optional[str] = None,
) -> dict:
    """User message with the screenshot first, then the prompt, then optional JSON."""
    content = []
    if screenshot:
        content.append(image_block(screenshot))
    content.append({"type": "text", "text": prompt})
    if include_json:
        payload = json.dumps(strip_volatile(elements), separators=(",", ":"))
        content.append({"type": "text", "text": f"Current Excalidraw elements JSON:\n{payload}"})
    return {"role": "user", "content": content}


def build_context_update(diff: str, screenshot: Optional[str] = None) -> list[dict]:
    """Content blocks for an edit notification."""
    content = []
    if screenshot:
        content.append(image_block(screenshot))
    content.append({"type": "text", "text": f"The user edited the diagram:\n{diff}"})
    return content
