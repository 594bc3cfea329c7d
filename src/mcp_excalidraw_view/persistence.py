"""
Storage for session scenes and for drawings posted by the standalone editor.

Session stores are best-effort: callers wrap every call in an Outcome and
never let a storage failure reach the user.
"""

import json
import logging
import re
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from .models import StoredDrawing

logger = logging.getLogger(__name__)


def session_key(session_id: str) -> str:
    return f"excalidraw:{session_id}"


class SessionStore(Protocol):
    def load(self, key: str) -> Optional[list]: ...

    def save(self, key: str, elements: list) -> None: ...

    def clear(self, key: str) -> None: ...


class MemorySessionStore:
    def __init__(self):
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Optional[list]:
        raw = self._data.get(key)
        return json.loads(raw) if raw else None

    def save(self, key: str, elements: list) -> None:
        # serialised so later mutation of the live list does not leak in
        self._data[key] = json.dumps(elements)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileSessionStore:
    """One JSON file per session key under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", key)
        return self.root / f"{safe}.json"

    def load(self, key: str) -> Optional[list]:
        path = self._path(key)
        if not path.exists():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return data if isinstance(data, list) else None

    def save(self, key: str, elements: list) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(elements), encoding="utf-8")
        tmp_path.replace(path)

    def clear(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def create_session_store(session_dir: Optional[str]) -> SessionStore:
    if session_dir:
        logger.info("Persisting sessions to %s", session_dir)
        return FileSessionStore(Path(session_dir))
    return MemorySessionStore()


class DrawingStore:
    """Latest drawing sent from the standalone editor.

    A new post overwrites the previous one; entries expire after ``ttl``
    seconds and ``consume`` hands a drawing out at most once.
    """

    def __init__(self, ttl: float = 3600, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._drawing: Optional[StoredDrawing] = None
        self._lock = threading.Lock()

    def _live(self) -> Optional[StoredDrawing]:
        drawing = self._drawing
        if drawing is not None and self.clock() - drawing.timestamp > self.ttl:
            self._drawing = None
            return None
        return drawing

    def store(self, drawing: StoredDrawing) -> None:
        with self._lock:
            self._drawing = drawing

    def get(self) -> Optional[StoredDrawing]:
        with self._lock:
            return self._live()

    def consume(self) -> Optional[StoredDrawing]:
        with self._lock:
            drawing = self._live()
            self._drawing = None
            return drawing
