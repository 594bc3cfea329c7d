"""
Runtime configuration.

All settings come from environment variables and are read once at import.
The CLI (``__main__``) sets the relevant variables before importing the
server, so command line flags win over the inherited environment.
"""

import os
from pathlib import Path

PROJECT_DIR = Path(os.environ.get("MCP_PROJECT_DIR", os.getcwd())).resolve()

# Built widget assets (mcp-app.html, standalone.html)
DIST_DIR = Path(os.environ.get("EXCALIDRAW_DIST_DIR", str(PROJECT_DIR / "dist"))).resolve()

# Per-session scene persistence; in-memory when unset
SESSION_DIR = os.environ.get("EXCALIDRAW_SESSION_DIR") or None

PERSIST_DEBOUNCE_SECONDS = float(os.environ.get("EXCALIDRAW_PERSIST_DEBOUNCE", "3.0"))
DRAWING_TTL_SECONDS = int(os.environ.get("EXCALIDRAW_DRAWING_TTL", "3600"))
SCREENSHOT_MAX_WIDTH = int(os.environ.get("EXCALIDRAW_SCREENSHOT_WIDTH", "512"))
EDIT_SCREENSHOTS = os.environ.get("EXCALIDRAW_EDIT_SCREENSHOTS", "").lower() in ("1", "true", "yes")

LOG_LEVEL = os.environ.get("EXCALIDRAW_LOG_LEVEL", "WARNING").upper()

# Standalone editor port when running over stdio
STANDALONE_PORT = int(os.environ.get("PORT", "3001"))
