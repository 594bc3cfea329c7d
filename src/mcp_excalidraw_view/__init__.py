"""
MCP Excalidraw View
===================

MCP server that streams hand-drawn Excalidraw diagrams into a widget.

Supports:
- Drawing while the tool arguments are still streaming, with a camera
  that glides between viewport updates
- Scenes that accumulate across tool calls and survive reloads
- Live editing, with compact edit summaries sent back to the model
- A standalone editor whose drawings the model can fetch

Transport modes:
- STDIO (default): For Claude Desktop and other MCP clients
- SSE: Server-Sent Events over HTTP
- HTTP: Streamable HTTP transport
"""

__version__ = "0.1.0"

from .decoder import exclude_incomplete_last_item, parse_partial_elements
from .classify import content_hash, extract_viewport_and_elements
from .scene import SceneSession
from .gate import RenderGate
from .viewport import ViewportAnimator
from .reconciler import VisualReconciler
from .edit_diff import EditDiffTracker
from .session import DrawingSession

__all__ = [
    "DrawingSession",
    "EditDiffTracker",
    "RenderGate",
    "SceneSession",
    "ViewportAnimator",
    "VisualReconciler",
    "content_hash",
    "exclude_incomplete_last_item",
    "extract_viewport_and_elements",
    "parse_partial_elements",
    "__version__",
]
