"""Re-render gating for partial drawing passes."""

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from .classify import content_hash

SEED_RANGE = 1_000_000_000


@dataclass
class GateDecision:
    render: bool
    new_elements: list = field(default_factory=list)


class RenderGate:
    """Decides whether a partial batch changed enough to be drawn again.

    The batch is compared with the previous one by element count and by
    ``content_hash``. Elements at indexes past the previous count are
    reported to ``on_new_element`` with their type.
    """

    def __init__(self, on_new_element: Optional[Callable[[str], None]] = None):
        self.on_new_element = on_new_element
        self.count = 0
        self.fingerprint = 0

    def consider(self, drawables: list) -> GateDecision:
        fingerprint = content_hash(drawables)
        changed = len(drawables) != self.count or fingerprint != self.fingerprint
        if not drawables or not changed:
            return GateDecision(render=False)

        new_elements = drawables[self.count:]
        if self.on_new_element is not None:
            for element in new_elements:
                self.on_new_element(element.get("type") or "rectangle")

        self.count = len(drawables)
        self.fingerprint = fingerprint
        return GateDecision(render=True, new_elements=list(new_elements))

    def reset(self, drawables: Optional[list] = None) -> None:
        """Record a final pass (or forget everything when called bare)."""
        drawables = drawables or []
        self.count = len(drawables)
        self.fingerprint = content_hash(drawables)


def jitter_seeds(elements: list, rng: Optional[random.Random] = None) -> list[dict]:
    """Copies of ``elements`` with fresh hand-drawn jitter seeds."""
    rng = rng or random
    return [{**element, "seed": rng.randrange(SEED_RANGE)} for element in elements]
