"""Per-session scene accumulated across drawing passes."""

import copy
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def _element_id(element) -> Optional[str]:
    if not isinstance(element, dict):
        return None
    element_id = element.get("id")
    return element_id if isinstance(element_id, str) and element_id else None


class SceneSession:
    """Ordered ``id -> element`` map.

    Upserting a batch layers it on top: ids untouched by the batch keep
    their relative order and come first, the batch follows in its own
    order. Records without a usable id are not stored.
    """

    def __init__(self, elements: Optional[Iterable[dict]] = None):
        self._elements: dict[str, dict] = {}
        if elements:
            self.upsert(elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._elements

    def get(self, element_id: str) -> Optional[dict]:
        return self._elements.get(element_id)

    def elements(self) -> list[dict]:
        return list(self._elements.values())

    def _merged(self, batch: Iterable[dict]) -> dict[str, dict]:
        incoming: dict[str, dict] = {}
        for element in batch:
            element_id = _element_id(element)
            if element_id is None:
                continue
            # a repeated id inside one batch keeps its first position, last value
            incoming[element_id] = element

        merged = {k: v for k, v in self._elements.items() if k not in incoming}
        merged.update(incoming)
        return merged

    def preview(self, batch: Iterable[dict]) -> list[dict]:
        """Elements as they would be after ``upsert(batch)``, without storing."""
        return list(self._merged(batch).values())

    def upsert(self, batch: Iterable[dict]) -> list[dict]:
        # the new map is built fully before it replaces the old one
        self._elements = self._merged(batch)
        return self.elements()

    def clear(self) -> None:
        self._elements = {}

    def load_from(self, persisted: Optional[Iterable[dict]]) -> bool:
        """Seed the scene from persisted elements, only when it is empty."""
        if self._elements or not persisted:
            return False
        self.upsert(copy.deepcopy(list(persisted)))
        logger.debug("Resumed scene with %d elements", len(self._elements))
        return True
