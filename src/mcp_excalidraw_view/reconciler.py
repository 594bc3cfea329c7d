"""
Rendering of the scene onto the displayed SVG tree.

Every frame re-exports the whole scene and patches it onto the tree that
is already displayed. Element groups get a ``draw-on`` class the first
time they appear; the patch hint keeps that class on later frames even
though freshly exported nodes never carry it, so the draw-on animation
runs to completion instead of restarting.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Callable, Iterable, Optional

from .models import ViewportRect
from .morph import morph
from .outcome import FailureKind, Outcome, attempt, report
from .render import convert_to_excalidraw_elements, export_to_svg, svg_to_string
from .scheduler import Scheduler
from .viewport import ViewBox, ViewportAnimator, compute_scene_bounds

logger = logging.getLogger(__name__)

ANIMATION_CLASS = "draw-on"
ELEMENT_GROUP_PREFIX = "element-"


def preserve_class(existing: ET.Element, incoming: ET.Element) -> bool:
    """Keep an existing node's class when the incoming node has none."""
    current = existing.get("class")
    if current and not incoming.get("class"):
        incoming.set("class", current)
    return True


class VisualReconciler:
    def __init__(
        self,
        scheduler: Scheduler,
        drawing: Callable[[list], ET.Element] = export_to_svg,
        patch: Callable[..., ET.Element] = morph,
        convert: Callable[[list], list] = convert_to_excalidraw_elements,
    ):
        self.drawing = drawing
        self.patch = patch
        self.convert = convert
        self.displayed: Optional[ET.Element] = None
        self.animator = ViewportAnimator(scheduler, on_apply=self._apply_view_box)
        self._painted: set[str] = set()

    @property
    def has_content(self) -> bool:
        return self.displayed is not None

    def render(self, elements: list, viewport: Optional[ViewportRect], converted: bool = False) -> Outcome:
        """Paint elements and frame ``viewport``.

        Skeletons are converted first unless ``converted`` is set. A failure
        keeps the previously displayed tree untouched.
        """
        if not elements:
            return Outcome.success(None)
        outcome = report(attempt(FailureKind.RENDER, self._paint, elements, not converted, True), "render")
        if outcome.ok:
            self.animator.frame(viewport)
        return outcome

    def render_converted(self, elements: list) -> Outcome:
        """Paint elements that are already full Excalidraw elements (editor output)."""
        if not elements:
            return Outcome.success(None)
        return report(attempt(FailureKind.RENDER, self._paint, elements, False, False), "render edits")

    def reset(self) -> None:
        self.animator.cancel()
        self.animator.current = None
        self.displayed = None
        self._painted.clear()

    def to_string(self) -> Optional[str]:
        return svg_to_string(self.displayed) if self.displayed is not None else None

    def _paint(self, elements: Iterable[dict], convert: bool, hint: bool) -> ET.Element:
        elements = list(elements)
        bounds = compute_scene_bounds(elements)
        prepared = self.convert(elements) if convert else elements
        svg = self.drawing(prepared)

        svg.attrib.pop("width", None)
        svg.attrib.pop("height", None)
        svg.set("style", "width:100%;height:100%")
        self._mark_new(svg)

        if self.displayed is None:
            self.displayed = svg
        else:
            self.patch(self.displayed, svg, on_before_el_updated=preserve_class if hint else None)
        self.animator.scene_min = bounds
        return self.displayed

    def _mark_new(self, svg: ET.Element) -> None:
        for group in svg.iter("g"):
            group_id = group.get("id") or ""
            if not group_id.startswith(ELEMENT_GROUP_PREFIX) or group_id in self._painted:
                continue
            group.set("class", ANIMATION_CLASS)
            self._painted.add(group_id)

    def _apply_view_box(self, box: ViewBox) -> None:
        if self.displayed is not None:
            self.displayed.set("viewBox", str(box))
