"""
Excalidraw element conversion and SVG export.

- convert_to_excalidraw_elements: fill defaults on skeleton elements and
  expand shape/arrow labels into bound text elements
- export_to_svg: draw full elements into an ElementTree <svg> with
  seed-driven hand-drawn jitter
"""

import math
import random
import time
import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from .viewport import EXPORT_PADDING, compute_scene_bounds

SVG_NS = "http://www.w3.org/2000/svg"

# fontFamily 1 in Excalidraw
HAND_DRAWN_FONT = "Virgil, Segoe UI Emoji"

LINEAR_TYPES = ("arrow", "line")

_DASH = {"dashed": "8 6", "dotted": "2 4"}
_ANCHOR = {"left": "start", "center": "middle", "right": "end"}


# ============================================================================
# Skeleton conversion
# ============================================================================

def _defaults(timestamp: int, rng: random.Random) -> dict:
    return {
        "strokeColor": "#1e1e1e",
        "backgroundColor": "transparent",
        "fillStyle": "solid",
        "strokeWidth": 2,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 100,
        "angle": 0,
        "seed": rng.randint(1, 999999999),
        "version": 1,
        "versionNonce": rng.randint(1, 999999999),
        "isDeleted": False,
        "groupIds": [],
        "frameId": None,
        "roundness": None,
        "boundElements": [],
        "updated": timestamp,
        "link": None,
        "locked": False,
    }


def _estimate_text_size(text: str, font_size: float) -> tuple[float, float]:
    lines = text.split("\n") or [""]
    width = max(len(line) for line in lines) * font_size * 0.5
    return width, len(lines) * font_size * 1.25


def _text_defaults(element: dict) -> dict:
    text = element.get("text") or ""
    font_size = element.get("fontSize") or 20
    width, height = _estimate_text_size(text, font_size)
    return {
        "text": text,
        "fontSize": font_size,
        "textAlign": "left",
        "verticalAlign": "top",
        "containerId": None,
        "originalText": text,
        "autoResize": True,
        "lineHeight": 1.25,
        "width": width,
        "height": height,
    }


def _linear_defaults(element: dict) -> dict:
    return {
        "points": [[0, 0], [element.get("width", 0), element.get("height", 0)]],
        "startBinding": None,
        "endBinding": None,
        "startArrowhead": None,
        "endArrowhead": "arrow" if element.get("type") == "arrow" else None,
        "elbowed": False,
    }


def _bound_label(container: dict, label: dict, timestamp: int, rng: random.Random) -> dict:
    """Text element for a container's label, positioned over the container."""
    label = {"textAlign": "center", "verticalAlign": "middle", **label}
    text = str(label.get("text", ""))
    font_size = label.get("fontSize") or 20
    text_w, text_h = _estimate_text_size(text, font_size)

    if container.get("type") in LINEAR_TYPES:
        points = container.get("points") or [[0, 0], [container.get("width", 0), 0]]
        mid_x = container.get("x", 0) + points[-1][0] / 2
        mid_y = container.get("y", 0) + points[-1][1] / 2
        x, y, w, h = mid_x - text_w / 2, mid_y - text_h / 2, text_w, text_h
    else:
        x, y = container.get("x", 0), container.get("y", 0)
        w, h = container.get("width", text_w), container.get("height", text_h)

    element = _defaults(timestamp, rng)
    element.update({
        "id": f"{container['id']}_text",
        "type": "text",
        "x": x,
        "y": y,
        "width": w,
        "height": h,
        "text": text,
        "originalText": text,
        "fontSize": font_size,
        "fontFamily": 1,
        "textAlign": label["textAlign"],
        "verticalAlign": label["verticalAlign"],
        "strokeColor": label.get("strokeColor", container.get("strokeColor", "#1e1e1e")),
        "strokeWidth": 1,
        "containerId": container["id"],
        "autoResize": True,
        "lineHeight": 1.25,
    })
    return element


def _add_bound(element: dict, kind: str, bound_id: str) -> None:
    bound = list(element.get("boundElements") or [])
    if not any(b.get("id") == bound_id for b in bound if isinstance(b, dict)):
        bound.append({"type": kind, "id": bound_id})
    element["boundElements"] = bound


def convert_to_excalidraw_elements(skeletons: Iterable[dict], rng: Optional[random.Random] = None) -> list[dict]:
    """Turn skeleton elements into full Excalidraw elements.

    Ids are kept as given. Values present on a skeleton always win over
    defaults, so already-converted elements pass through unchanged.
    """
    rng = rng or random.Random()
    timestamp = int(time.time() * 1000)

    elements = []
    element_map = {}

    for skeleton in skeletons:
        if not isinstance(skeleton, dict):
            continue
        skeleton = dict(skeleton)
        label = skeleton.pop("label", None)
        element_type = skeleton.get("type", "rectangle")

        element = _defaults(timestamp, rng)
        if element_type == "text":
            element.update(_text_defaults(skeleton))
        elif element_type in LINEAR_TYPES:
            element.update(_linear_defaults(skeleton))
        element.update(skeleton)
        if element_type == "text":
            element["fontFamily"] = 1

        if isinstance(element.get("id"), str) and element["id"] in element_map:
            # bound text already expanded from its container's label
            continue
        elements.append(element)
        if element.get("id"):
            element_map[element["id"]] = element

        if isinstance(label, dict) and label.get("text") and element.get("id"):
            text_element = _bound_label(element, label, timestamp, rng)
            _add_bound(element, "text", text_element["id"])
            previous = element_map.get(text_element["id"])
            if previous is not None:
                elements[elements.index(previous)] = text_element
            else:
                elements.append(text_element)
            element_map[text_element["id"]] = text_element

    # Arrows bound to shapes are listed on the shapes' boundElements
    for element in elements:
        if element.get("type") not in LINEAR_TYPES:
            continue
        for key in ("startBinding", "endBinding"):
            binding = element.get(key)
            if isinstance(binding, dict) and binding.get("elementId") in element_map:
                _add_bound(element_map[binding["elementId"]], "arrow", element["id"])

    return elements


# ============================================================================
# SVG export
# ============================================================================

def _coord(element: dict, key: str) -> float:
    value = element.get(key, 0 if key in ("width", "height") else None)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"Element {element.get('id')!r} has invalid {key}: {value!r}")
    return float(value)


def _points(element: dict) -> list[tuple[float, float]]:
    points = element.get("points")
    if points is None:
        return [(0.0, 0.0), (_coord(element, "width"), _coord(element, "height"))]
    result = []
    for point in points:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            raise ValueError(f"Element {element.get('id')!r} has a malformed point: {point!r}")
        result.append((float(point[0]), float(point[1])))
    if not result:
        raise ValueError(f"Element {element.get('id')!r} has no points")
    return result


def _scene_extent(elements: list[dict]) -> tuple[float, float]:
    max_x = -math.inf
    max_y = -math.inf
    for element in elements:
        x, y = _coord(element, "x"), _coord(element, "y")
        max_x = max(max_x, x + max(_coord(element, "width"), 0))
        max_y = max(max_y, y + max(_coord(element, "height"), 0))
        if element.get("type") in LINEAR_TYPES or element.get("type") == "freedraw":
            for px, py in _points(element):
                max_x = max(max_x, x + px)
                max_y = max(max_y, y + py)
    return max_x, max_y


def has_drawable_geometry(element: dict) -> bool:
    """Whether export_to_svg can place the element."""
    try:
        _scene_extent([element])
    except (TypeError, ValueError):
        return False
    return True


class _Jitter:
    """Hand-drawn offsets, reproducible from an element's seed."""

    def __init__(self, seed, roughness):
        self.rng = random.Random(seed if isinstance(seed, int) else 0)
        self.amount = float(roughness) if isinstance(roughness, (int, float)) else 1.0

    def __call__(self, value: float) -> float:
        if self.amount <= 0:
            return value
        return value + self.rng.uniform(-self.amount, self.amount)


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _path(points: list[tuple[float, float]], closed: bool = False) -> str:
    head, *rest = points
    d = f"M {_fmt(head[0])} {_fmt(head[1])}"
    for x, y in rest:
        d += f" L {_fmt(x)} {_fmt(y)}"
    return d + (" Z" if closed else "")


def _stroke_attrs(element: dict, filled: bool) -> dict:
    background = element.get("backgroundColor") or "transparent"
    attrs = {
        "stroke": element.get("strokeColor") or "#1e1e1e",
        "stroke-width": str(element.get("strokeWidth", 2)),
        "fill": "none" if not filled or background == "transparent" else background,
        "stroke-linecap": "round",
        "stroke-linejoin": "round",
    }
    dash = _DASH.get(element.get("strokeStyle"))
    if dash:
        attrs["stroke-dasharray"] = dash
    return attrs


def _draw_text(group: ET.Element, text: str, x: float, y: float, w: float, h: float, element: dict) -> None:
    font_size = element.get("fontSize") or 20
    line_height = font_size * (element.get("lineHeight") or 1.25)
    lines = text.split("\n")
    align = element.get("textAlign") or "left"
    valign = element.get("verticalAlign") or "top"

    if align == "center":
        anchor_x = x + w / 2
    elif align == "right":
        anchor_x = x + w
    else:
        anchor_x = x
    block = line_height * len(lines)
    if valign == "middle":
        top = y + (h - block) / 2
    elif valign == "bottom":
        top = y + h - block
    else:
        top = y

    node = ET.SubElement(group, "text", {
        "x": _fmt(anchor_x),
        "y": _fmt(top),
        "font-family": HAND_DRAWN_FONT,
        "font-size": _fmt(font_size),
        "fill": element.get("strokeColor") or "#1e1e1e",
        "text-anchor": _ANCHOR.get(align, "start"),
        "dominant-baseline": "hanging",
    })
    for i, line in enumerate(lines):
        span = ET.SubElement(node, "tspan", {"x": _fmt(anchor_x), "dy": "0" if i == 0 else _fmt(line_height)})
        span.text = line


def _draw_element(svg: ET.Element, element: dict, dx: float, dy: float) -> None:
    element_type = element.get("type") or "rectangle"
    x = _coord(element, "x") + dx
    y = _coord(element, "y") + dy
    w = _coord(element, "width")
    h = _coord(element, "height")
    jitter = _Jitter(element.get("seed"), element.get("roughness", 1))

    group = ET.SubElement(svg, "g", {"id": f"element-{element.get('id')}", "data-type": str(element_type)})
    opacity = element.get("opacity", 100)
    if isinstance(opacity, (int, float)) and opacity < 100:
        group.set("opacity", _fmt(max(opacity, 0) / 100))

    if element_type == "ellipse":
        ET.SubElement(group, "ellipse", {
            "cx": _fmt(jitter(x + w / 2)),
            "cy": _fmt(jitter(y + h / 2)),
            "rx": _fmt(abs(w) / 2),
            "ry": _fmt(abs(h) / 2),
            **_stroke_attrs(element, filled=True),
        })
    elif element_type == "diamond":
        corners = [(x + w / 2, y), (x + w, y + h / 2), (x + w / 2, y + h), (x, y + h / 2)]
        ET.SubElement(group, "path", {
            "d": _path([(jitter(px), jitter(py)) for px, py in corners], closed=True),
            **_stroke_attrs(element, filled=True),
        })
    elif element_type in LINEAR_TYPES:
        points = [(x + px, y + py) for px, py in _points(element)]
        # endpoints stay put so bindings still touch their shapes
        if len(points) > 2:
            points = [points[0], *((jitter(px), jitter(py)) for px, py in points[1:-1]), points[-1]]
        attrs = {"d": _path(points), **_stroke_attrs(element, filled=False)}
        if element_type == "arrow" and element.get("endArrowhead"):
            attrs["marker-end"] = "url(#arrowhead)"
        if element_type == "arrow" and element.get("startArrowhead"):
            attrs["marker-start"] = "url(#arrowhead-start)"
        ET.SubElement(group, "path", attrs)
    elif element_type == "freedraw":
        points = [(x + px, y + py) for px, py in _points(element)]
        ET.SubElement(group, "path", {"d": _path(points), **_stroke_attrs(element, filled=False)})
    elif element_type == "text":
        _draw_text(group, str(element.get("text") or ""), x, y, w, h, element)
    else:
        corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
        ET.SubElement(group, "path", {
            "d": _path([(jitter(px), jitter(py)) for px, py in corners], closed=True),
            **_stroke_attrs(element, filled=True),
        })

    # Skeleton labels not yet expanded into bound text
    label = element.get("label")
    if isinstance(label, dict) and label.get("text"):
        _draw_text(group, str(label["text"]), x, y, w, h,
                   {"textAlign": "center", "verticalAlign": "middle", **element, **label})


def _markers(svg: ET.Element) -> None:
    defs = ET.SubElement(svg, "defs")
    for marker_id, orient in (("arrowhead", "auto"), ("arrowhead-start", "auto-start-reverse")):
        marker = ET.SubElement(defs, "marker", {
            "id": marker_id,
            "markerWidth": "10",
            "markerHeight": "7",
            "refX": "9",
            "refY": "3.5",
            "orient": orient,
        })
        ET.SubElement(marker, "polygon", {"points": "0 0, 10 3.5, 0 7", "fill": "context-stroke"})


def export_to_svg(
    elements: Iterable[dict],
    padding: float = EXPORT_PADDING,
    background: Optional[str] = None,
) -> ET.Element:
    """Render elements to an <svg> tree.

    The scene's minimum bound maps to ``(padding, padding)``. Raises
    ValueError when an element's geometry is missing or not numeric.
    """
    live = [e for e in elements if isinstance(e, dict) and not e.get("isDeleted")]
    if not live:
        raise ValueError("Nothing to export")

    min_x, min_y = compute_scene_bounds(live)
    max_x, max_y = _scene_extent(live)
    width = max(max_x - min_x, 1) + padding * 2
    height = max(max_y - min_y, 1) + padding * 2

    svg = ET.Element("svg", {
        "xmlns": SVG_NS,
        "version": "1.1",
        "width": _fmt(width),
        "height": _fmt(height),
        "viewBox": f"0 0 {_fmt(width)} {_fmt(height)}",
    })
    _markers(svg)
    if background:
        ET.SubElement(svg, "rect", {"x": "0", "y": "0", "width": "100%", "height": "100%", "fill": background})

    dx = padding - min_x
    dy = padding - min_y
    for element in live:
        _draw_element(svg, element, dx, dy)
    return svg


def svg_to_string(svg: ET.Element) -> str:
    return ET.tostring(svg, encoding="unicode")
