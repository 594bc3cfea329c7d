"""
Smooth camera animation.

The animated viewport lives in scene coordinates, which are stable across
re-exports. It is translated into the exported SVG's frame (scene minimum
bound subtracted, export padding added) only when it is applied.
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .models import DEFAULT_VIEWPORT, ViewportRect
from .scheduler import Handle, Scheduler

EXPORT_PADDING = 20
SETTLE_DISTANCE = 0.5


@dataclass(frozen=True)
class ViewBox:
    x: float
    y: float
    w: float
    h: float

    def __str__(self) -> str:
        return f"{self.x:g} {self.y:g} {self.w:g} {self.h:g}"


def adaptive_lerp_speed(distance: float) -> float:
    """Large jumps move fast, small adjustments settle smoothly."""
    if distance > 500:
        return 0.08
    if distance > 100:
        return 0.05
    return 0.025


def _number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def compute_scene_bounds(elements: Iterable[dict]) -> tuple[float, float]:
    """Minimum x/y over all elements, including arrow and freedraw points."""
    min_x = math.inf
    min_y = math.inf
    for element in elements:
        x = _number(element.get("x"))
        y = _number(element.get("y"))
        if x is None or y is None:
            continue
        min_x = min(min_x, x)
        min_y = min(min_y, y)
        points = element.get("points")
        if isinstance(points, list):
            for point in points:
                if not isinstance(point, (list, tuple)) or len(point) < 2:
                    continue
                px, py = _number(point[0]), _number(point[1])
                if px is None or py is None:
                    continue
                min_x = min(min_x, x + px)
                min_y = min(min_y, y + py)
    return (
        min_x if math.isfinite(min_x) else 0.0,
        min_y if math.isfinite(min_y) else 0.0,
    )


def scene_to_svg_viewbox(
    viewport: ViewportRect, scene_min_x: float, scene_min_y: float, padding: float = EXPORT_PADDING
) -> ViewBox:
    return ViewBox(
        x=viewport.x - scene_min_x + padding,
        y=viewport.y - scene_min_y + padding,
        w=viewport.width,
        h=viewport.height,
    )


class ViewportAnimator:
    """Interpolates ``current`` toward ``target`` once per frame.

    Idle while ``target`` is None. A new target cancels the running
    animation and starts a fresh one; the very first target is applied
    directly.
    """

    def __init__(self, scheduler: Scheduler, on_apply: Optional[Callable[[ViewBox], None]] = None):
        self.scheduler = scheduler
        self.on_apply = on_apply
        self.current: Optional[ViewportRect] = None
        self.target: Optional[ViewportRect] = None
        self.scene_min = (0.0, 0.0)
        self._frame: Optional[Handle] = None

    @property
    def animating(self) -> bool:
        return self.target is not None

    def view_box(self) -> Optional[ViewBox]:
        if self.current is None:
            return None
        return scene_to_svg_viewbox(self.current, *self.scene_min)

    def apply(self) -> None:
        box = self.view_box()
        if box is not None and self.on_apply is not None:
            self.on_apply(box)

    def frame(self, viewport: Optional[ViewportRect]) -> None:
        """Point the camera at ``viewport``, or keep the default framing."""
        self._cancel_frame()
        if viewport is not None:
            self.target = viewport.copy()
            if self.current is None:
                self.current = viewport.copy()
            self.apply()
            self._frame = self.scheduler.request_frame(self.step)
            return

        if self.current is None:
            self.current = DEFAULT_VIEWPORT.copy()
        self.target = None
        self.apply()

    def step(self) -> bool:
        """Advance one frame. Returns True while another frame is scheduled."""
        self._frame = None
        current, target = self.current, self.target
        if current is None or target is None:
            return False

        distance = current.distance_to(target)
        speed = adaptive_lerp_speed(distance)
        current.x += (target.x - current.x) * speed
        current.y += (target.y - current.y) * speed
        current.width += (target.width - current.width) * speed
        current.height += (target.height - current.height) * speed
        self.apply()

        if distance > SETTLE_DISTANCE:
            self._frame = self.scheduler.request_frame(self.step)
            return True
        self.target = None
        return False

    def cancel(self) -> None:
        self._cancel_frame()
        self.target = None

    def _cancel_frame(self) -> None:
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None
