#!/usr/bin/env python3
"""
MCP Excalidraw View - Server Implementation
===========================================

Streams hand-drawn Excalidraw diagrams into an MCP app widget.

Tools:
- read_me: Element format reference (call before drawing)
- create_view: Draw a diagram; its streamed arguments drive the widget
- check_drawing: Fetch a drawing sent from the standalone editor

Resources:
- ui://excalidraw/mcp-app.html: The widget the create_view tool renders into

HTTP routes (sse/http transports, or a companion app next to stdio):
- GET /excalidraw: Standalone editor page
- POST /api/drawing: Receive a drawing from the standalone editor
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from . import config
from .classify import extract_viewport_and_elements
from .models import VIEWPORT_TYPES, DrawElement, DrawingPost, StoredDrawing, ViewportRecord
from .persistence import DrawingStore

logger = logging.getLogger(__name__)

RESOURCE_URI = "ui://excalidraw/mcp-app.html"
RESOURCE_MIME_TYPE = "text/html;profile=mcp-app"

BLANK_CANVAS_MESSAGE = "Blank canvas displayed. User can enter fullscreen to draw from scratch."
DIAGRAM_MESSAGE = (
    "Diagram displayed. If the user edits the diagram in fullscreen, "
    "a summary of the edits is sent as model context."
)

# Drawings posted by the standalone editor, handed out once by check_drawing
drawing_store = DrawingStore(ttl=config.DRAWING_TTL_SECONDS)


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Initialize on startup, cleanup on shutdown."""
    config.PROJECT_DIR.mkdir(parents=True, exist_ok=True)
    if not (config.DIST_DIR / "mcp-app.html").exists():
        logger.warning("Widget not found in %s, the diagram view will be unavailable", config.DIST_DIR)
    yield


# Initialize the MCP server
mcp = FastMCP(
    "mcp-excalidraw-view",
    instructions="Call read_me once, then create_view to draw Excalidraw diagrams the user watches being drawn.",
    lifespan=server_lifespan,
)


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp


# ============================================================================
# Element format reference
# ============================================================================

CHEAT_SHEET = """# Excalidraw Element Format

You now have the full reference. Do not call read_me again in this conversation; use create_view to draw.

## Colors

Strokes and accents: blue `#4a9eed`, amber `#f59e0b`, green `#22c55e`, red `#ef4444`,
purple `#8b5cf6`, pink `#ec4899`, cyan `#06b6d4`, lime `#84cc16`.

Pastel fills for shapes: `#a5d8ff` (inputs), `#b2f2bb` (outputs, success), `#ffd8a8` (external),
`#d0bfff` (processing), `#ffc9c9` (errors), `#fff3bf` (notes, decisions), `#c3fae8` (storage).

Background zones (with `"opacity": 30`): `#dbe4ff` frontend, `#e5dbff` logic, `#d3f9d8` data.

## Elements

Every element needs `type`, `id` (unique string), `x`, `y`, `width`, `height`.
Defaults you can leave out: strokeColor `#1e1e1e`, backgroundColor `transparent`,
fillStyle `solid`, strokeWidth 2, roughness 1, opacity 100. The canvas is white.

- Rectangle: `{"type": "rectangle", "id": "r1", "x": 100, "y": 100, "width": 200, "height": 100}`
  Add `"roundness": {"type": 3}` for rounded corners.
- Ellipse: `{"type": "ellipse", "id": "e1", "x": 100, "y": 100, "width": 150, "height": 150}`
- Diamond: `{"type": "diamond", "id": "d1", "x": 100, "y": 100, "width": 150, "height": 150}`
- Labeled shape (preferred over separate text):
  `{"type": "rectangle", "id": "r1", "x": 100, "y": 100, "width": 200, "height": 80, "label": {"text": "Hello", "fontSize": 20}}`
- Text (titles and annotations): `{"type": "text", "id": "t1", "x": 150, "y": 138, "text": "Hello", "fontSize": 20}`
  `x` is the left edge; estimated width is `len(text) * fontSize * 0.5`.
- Arrow: `{"type": "arrow", "id": "a1", "x": 300, "y": 150, "width": 200, "height": 0, "points": [[0, 0], [200, 0]], "endArrowhead": "arrow"}`
  Points are offsets from `x`, `y`. Arrows accept a `label` too.
  Bind ends with `"startBinding": {"elementId": "r1", "fixedPoint": [1, 0.5]}`
  (top `[0.5, 0]`, bottom `[0.5, 1]`, left `[0, 0.5]`, right `[1, 0.5]`).

## Camera

`{"type": "cameraUpdate", "x": 0, "y": 0, "width": 800, "height": 600}` moves the view; the widget
glides to it while drawing. Use 4:3 sizes only: 400x300, 600x450, 800x600 (default), 1200x900, 1600x1200.
Leave padding around the content. Several camera updates in one diagram guide the viewer's attention.

## Drawing order

Array order is z-order and also the order things appear while streaming. Emit progressively:
background zone, shape, its arrows, next shape. Not all shapes first and all arrows last.

## Tips

- Font sizes: at least 16 for labels, 20 for titles.
- The inline view is about 700px wide; keep diagrams readable at that size.
- Keep arrow labels short, and keep text color distinct from its fill.
- No emoji; the hand-drawn font cannot render them.
- Pass `"[]"` to give the user a blank canvas to draw on.
"""


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
def read_me() -> str:
    """Returns the Excalidraw element format reference with color palettes, examples, and tips.

    Call this BEFORE using create_view for the first time.
    """
    return CHEAT_SHEET


# ============================================================================
# Drawing
# ============================================================================

def _validation_warnings(records: list) -> list[str]:
    """Human-readable problems with records that will be skipped or misdrawn."""
    warnings = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            warnings.append(f"Element {index} is not an object")
            continue
        model = ViewportRecord if record.get("type") in VIEWPORT_TYPES else DrawElement
        try:
            model.model_validate(record)
        except ValidationError as e:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
            name = record.get("id") or record.get("type") or index
            warnings.append(f"Element {name}: invalid or missing {', '.join(fields)}")
    return warnings


@mcp.tool(
    title="Draw Diagram",
    annotations=ToolAnnotations(readOnlyHint=True),
    meta={"ui": {"resourceUri": RESOURCE_URI}},
)
def create_view(
    elements: Annotated[str, Field(
        description="JSON array string of Excalidraw elements. Must be valid JSON: no comments, "
                    "no trailing commas. Keep compact. Pass \"[]\" for a blank canvas. "
                    "Call read_me first for format reference."
    )],
) -> str:
    """Renders a hand-drawn diagram using Excalidraw elements.

    Elements stream in one by one with draw-on animations.
    Call read_me first to learn the element format. Pass "[]" for elements
    to open a blank drawing canvas.

    Returns:
        JSON string with the display result and any element warnings
    """
    try:
        parsed = json.loads(elements)
    except json.JSONDecodeError as e:
        return json.dumps({
            "error": f"Invalid JSON in elements: {e}. Ensure no comments, no trailing commas, and proper quoting."
        })

    if not isinstance(parsed, list):
        return json.dumps({"error": "elements must be a JSON array"})

    if not parsed:
        return json.dumps({"success": True, "message": BLANK_CANVAS_MESSAGE, "element_count": 0})

    viewport, drawables = extract_viewport_and_elements(parsed)
    result = {
        "success": True,
        "message": DIAGRAM_MESSAGE,
        "element_count": len(drawables),
    }
    if viewport is not None:
        result["viewport"] = {
            "x": viewport.x,
            "y": viewport.y,
            "width": viewport.width,
            "height": viewport.height,
        }
    warnings = _validation_warnings(parsed)
    if warnings:
        result["warnings"] = warnings
    return json.dumps(result, indent=2)


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
def check_drawing() -> str:
    """Check if the user has sent a drawing from the standalone Excalidraw app.

    The standalone app runs at http://localhost:<PORT>/excalidraw. A drawing is
    handed out once; calling again returns nothing until the user sends another.

    Returns:
        JSON string with the screenshot as a base64 PNG image, the elements
        JSON, its age and the user's prompt
    """
    drawing = drawing_store.consume()
    if drawing is None:
        return json.dumps({
            "success": False,
            "message": "No drawing available. The user hasn't sent anything from the standalone Excalidraw app yet.",
        })

    return json.dumps({
        "success": True,
        "image": {
            "type": "image",
            "data": drawing.screenshot,
            "mimeType": "image/png",
        },
        "age_seconds": round(time.time() - drawing.timestamp),
        "elements": drawing.elements,
        "prompt": drawing.prompt,
    }, indent=2)


@mcp.resource(
    RESOURCE_URI,
    name="excalidraw-view",
    mime_type=RESOURCE_MIME_TYPE,
    # Excalidraw loads its fonts from esm.sh
    meta={"ui": {"csp": {"resourceDomains": ["https://esm.sh"], "connectDomains": ["https://esm.sh"]},
                 "prefersBorder": True}},
)
def app_resource() -> str:
    """The widget that renders create_view diagrams."""
    path = config.DIST_DIR / "mcp-app.html"
    if not path.exists():
        raise FileNotFoundError(f"Widget not found: {path}. Build the web assets first.")
    return path.read_text(encoding="utf-8")


# ============================================================================
# Standalone editor bridge (HTTP)
# ============================================================================

async def standalone_page(request: Request) -> Response:
    path = config.DIST_DIR / "standalone.html"
    try:
        html = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Failed to serve standalone app: %s", e)
        return PlainTextResponse("Standalone app not found. Build the web assets first.", status_code=500)
    return HTMLResponse(html)


async def post_drawing(request: Request) -> Response:
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return JSONResponse({"error": "Missing screenshot or elements"}, status_code=400)

    prompt = body.get("prompt")
    try:
        post = DrawingPost.model_validate({
            "screenshot": body.get("screenshot"),
            "elements": body.get("elements"),
            "prompt": prompt if isinstance(prompt, str) else "",
        })
    except ValidationError:
        return JSONResponse({"error": "Missing screenshot or elements"}, status_code=400)

    try:
        drawing_store.store(StoredDrawing(**post.model_dump(), timestamp=time.time()))
    except Exception as e:
        logger.error("Failed to store drawing: %s", e)
        return JSONResponse({"error": "Failed to store drawing"}, status_code=500)
    logger.info("Stored drawing from standalone app (%d bytes of elements)", len(post.elements))
    return JSONResponse({"ok": True})


mcp.custom_route("/excalidraw", methods=["GET"])(standalone_page)
mcp.custom_route("/api/drawing", methods=["POST"])(post_drawing)


def standalone_routes() -> list[Route]:
    return [
        Route("/excalidraw", endpoint=standalone_page, methods=["GET"]),
        Route("/api/drawing", endpoint=post_drawing, methods=["POST"]),
    ]


def create_standalone_app() -> Starlette:
    """The HTTP bridge on its own, served next to the stdio transport."""
    return Starlette(
        routes=standalone_routes(),
        middleware=[Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])],
    )
