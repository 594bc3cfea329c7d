"""
One drawing session: the streamed tool input, the live editor and the host.

All state that the widget keeps between events lives on a
``DrawingSession`` instance. Event handlers are synchronous and run on
the event loop; work that has to await the host is spawned as tasks.
"""

import asyncio
import copy
import json
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from . import config
from .actions import Action, Host, build_context_update, build_message
from .classify import extract_viewport_and_elements
from .decoder import exclude_incomplete_last_item, parse_partial_elements
from .edit_diff import EditDiffTracker
from .gate import RenderGate, jitter_seeds
from .lifecycle import Effect, Event, Phase, transition
from .outcome import FailureKind, Outcome, attempt, report
from .persistence import SessionStore, create_session_store, session_key
from .reconciler import VisualReconciler
from .render import convert_to_excalidraw_elements, has_drawable_geometry
from .scene import SceneSession
from .scheduler import AsyncioScheduler, Debouncer, Scheduler
from .screenshot import capture_screenshot

logger = logging.getLogger(__name__)

INLINE = "inline"
FULLSCREEN = "fullscreen"

ERROR_TITLE = "Something went wrong rendering the diagram"


@dataclass
class LoadingView:
    pass


@dataclass
class BlankCanvasView:
    title: str = "Blank canvas"
    subtitle: str = "Draw from scratch and use the action buttons to send to Claude."


@dataclass
class DiagramView:
    svg: str


@dataclass
class EditorView:
    elements: list = field(default_factory=list)


@dataclass
class ErrorView:
    message: str
    title: str = ERROR_TITLE


def elements_text(payload: Any) -> Optional[str]:
    """The instruction array text carried by a tool-input payload."""
    if not isinstance(payload, dict):
        return None
    arguments = payload.get("arguments")
    if not isinstance(arguments, dict):
        arguments = payload
    value = arguments.get("elements")
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


class DrawingSession:
    def __init__(
        self,
        session_id: str = "session",
        host: Optional[Host] = None,
        scheduler: Optional[Scheduler] = None,
        store: Optional[SessionStore] = None,
        on_stroke: Optional[Callable[[str], None]] = None,
        screenshot: Callable[..., Awaitable[Optional[str]]] = capture_screenshot,
        persist_delay: Optional[float] = None,
        edit_screenshots: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ):
        self.session_id = session_id
        self.host = host
        self.scheduler = scheduler or AsyncioScheduler()
        self.store = store if store is not None else create_session_store(config.SESSION_DIR)
        self.screenshot = screenshot
        self.edit_screenshots = config.EDIT_SCREENSHOTS if edit_screenshots is None else edit_screenshots
        self.rng = rng

        self.phase = Phase.IDLE
        self.display_mode = INLINE
        self.scene = SceneSession()
        self.gate = RenderGate(on_new_element=on_stroke)
        self.reconciler = VisualReconciler(self.scheduler, convert=self._convert)
        self.tracker = EditDiffTracker()

        # editor-ready elements of the last final pass
        self.elements: list[dict] = []
        # latest live elements from the editor, None until the user edits
        self.user_edits: Optional[list[dict]] = None
        self.blank_canvas = False

        self._alive = True
        if persist_delay is None:
            persist_delay = config.PERSIST_DEBOUNCE_SECONDS
        self._persist = Debouncer(self.scheduler, persist_delay, self._persist_now)
        self._notify = Debouncer(self.scheduler, persist_delay, self._notify_now)
        self._tasks: set[asyncio.Task] = set()

    @property
    def key(self) -> str:
        return session_key(self.session_id)

    @property
    def alive(self) -> bool:
        return self._alive

    def current_elements(self) -> list[dict]:
        return self.user_edits if self.user_edits is not None else self.elements

    def _convert(self, skeletons: list) -> list[dict]:
        return convert_to_excalidraw_elements(skeletons, rng=self.rng)

    def _drawable(self, drawables: list[dict]) -> list[dict]:
        """Drop records the exporter would reject, so they never reach the scene."""
        kept = [e for e in drawables if has_drawable_geometry(e)]
        if len(kept) < len(drawables):
            dropped = [e.get("id") for e in drawables if not has_drawable_geometry(e)]
            logger.debug("Session %s: skipping elements with invalid geometry: %s", self.session_id, dropped)
        return kept

    def _advance(self, event: Event) -> tuple[Effect, ...]:
        step = transition(self.phase, event)
        if step.phase is not self.phase:
            logger.debug("Session %s: %s -> %s on %s", self.session_id, self.phase.value, step.phase.value, event.value)
        self.phase = step.phase
        return step.effects

    # -- streamed tool input -------------------------------------------------

    def on_partial_input(self, payload: Any) -> bool:
        """Draw the confirmed part of a partial payload; True when painted."""
        if not self._alive:
            return False
        text = elements_text(payload)
        if text is None:
            return False
        if Effect.RENDER not in self._advance(Event.PARTIAL_INPUT):
            return False

        # the last decoded record may still be growing
        records = exclude_incomplete_last_item(parse_partial_elements(text))
        viewport, drawables = extract_viewport_and_elements(records)
        drawables = self._drawable(drawables)
        if not self.gate.consider(drawables).render:
            return False

        frame = self.scene.preview(jitter_seeds(drawables, self.rng))
        return self.reconciler.render(frame, viewport).ok

    def on_final_input(self, payload: Any) -> bool:
        """Commit a complete drawing pass; True when something was painted."""
        if not self._alive:
            return False
        effects = self._advance(Event.FINAL_INPUT)
        if Effect.RENDER not in effects:
            return False

        if len(self.scene) == 0:
            loaded = report(attempt(FailureKind.PERSISTENCE, self.store.load, self.key), "load session")
            if loaded.ok:
                self.scene.load_from(loaded.value)

        text = elements_text(payload)
        records = parse_partial_elements(text) if text is not None else []
        viewport, drawables = extract_viewport_and_elements(records)
        drawables = self._drawable(drawables)
        self.gate.reset(drawables)
        if self.user_edits is not None:
            if self._notify.pending:
                self._notify.cancel()
                self._notify_now()
            # the editor state replaces the scene, deletions included
            self.scene.clear()
            self.scene.upsert(self._drawable(self.user_edits))
            self.user_edits = None
        scene_elements = self.scene.upsert(drawables)

        if not scene_elements:
            self.blank_canvas = True
            self.elements = []
            self.tracker.capture_baseline(self.elements)
            self.reconciler.reset()
            return False
        self.blank_canvas = False

        converted = report(attempt(FailureKind.RENDER, self._convert, scene_elements), "convert")
        if not converted.ok:
            return False
        self.elements = converted.value
        if Effect.CAPTURE_BASELINE in effects:
            self.tracker.capture_baseline(self.elements)

        painted = self.reconciler.render(converted.value, viewport, converted=True).ok
        if Effect.PERSIST in effects:
            self._persist.trigger()
        return painted

    # -- display mode --------------------------------------------------------

    def on_display_mode_changed(self, mode: str) -> None:
        if not self._alive:
            return
        effects = self._advance(Event.DISPLAY_INLINE if mode == INLINE else Event.DISPLAY_FULLSCREEN)
        self.display_mode = mode
        if Effect.RESTORE_EDITS in effects and self.user_edits is not None:
            self.elements = self.user_edits
            self.reconciler.render_converted(self.user_edits)
        if Effect.PERSIST in effects:
            self._persist.trigger()

    async def toggle_fullscreen(self) -> str:
        """Ask the host for the other display mode; returns the mode in effect."""
        target = INLINE if self.display_mode == FULLSCREEN else FULLSCREEN
        if self.host is None:
            return self.display_mode
        try:
            granted = await self.host.request_display_mode(target)
        except Exception as e:
            report(Outcome.failure(FailureKind.HOST, e), "request display mode")
            return self.display_mode
        self.on_display_mode_changed(granted or target)
        return self.display_mode

    # -- live editor ---------------------------------------------------------

    def on_editor_change(self, elements: list) -> bool:
        """Record an editor state; True when it differs from the baseline."""
        if not self._alive:
            return False
        elements = [e for e in elements if isinstance(e, dict)]
        if not self.tracker.has_changed(elements):
            return False
        self._advance(Event.EDIT)

        self.user_edits = copy.deepcopy([e for e in elements if not e.get("isDeleted")])
        self._persist.trigger()
        if self.host is not None and hasattr(self.host, "update_model_context"):
            self._notify.trigger()
        return True

    def _persist_now(self) -> None:
        if not self._alive:
            return
        report(
            attempt(FailureKind.PERSISTENCE, self.store.save, self.key, self.current_elements()),
            "save session",
        )

    def _notify_now(self) -> None:
        if not self._alive or self.user_edits is None:
            return
        diff = self.tracker.diff(self.user_edits)
        if diff:
            self._spawn(self._send_context_update(diff, list(self.user_edits)))

    async def _send_context_update(self, diff: str, elements: list) -> None:
        screenshot = None
        if self.edit_screenshots:
            screenshot = await self.screenshot(elements, config.SCREENSHOT_MAX_WIDTH)
        try:
            await self.host.update_model_context(build_context_update(diff, screenshot))
        except Exception as e:
            report(Outcome.failure(FailureKind.HOST, e), "update model context")

    def _spawn(self, coro) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, dropping %s", coro)
            coro.close()
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # -- actions -------------------------------------------------------------

    async def send_to_model(self, action: Action) -> bool:
        """Send the current drawing to the model; True when the host accepted it."""
        elements = self.current_elements()
        if not elements or self.host is None:
            return False
        screenshot = await self.screenshot(elements, config.SCREENSHOT_MAX_WIDTH)
        message = build_message(elements, action.prompt, action.include_json, screenshot)
        try:
            await self.host.send_message(message)
        except Exception as e:
            report(Outcome.failure(FailureKind.HOST, e), "send message")
            return False
        return True

    def clear_canvas(self) -> None:
        if not self._alive:
            return
        self._advance(Event.CLEAR)
        self._persist.cancel()
        self._notify.cancel()
        self.scene.clear()
        self.gate.reset()
        self.tracker.reset()
        self.reconciler.reset()
        self.elements = []
        self.user_edits = None
        self.blank_canvas = True
        report(attempt(FailureKind.PERSISTENCE, self.store.clear, self.key), "clear session")

    def on_teardown(self) -> None:
        effects = self._advance(Event.TEARDOWN)
        self._alive = False
        if Effect.CANCEL_TIMERS in effects:
            self._persist.cancel()
            self._notify.cancel()
            for task in list(self._tasks):
                task.cancel()
        if Effect.CANCEL_ANIMATION in effects:
            self.reconciler.animator.cancel()

    # -- view ----------------------------------------------------------------

    def view(self):
        """What the widget shows now; faults turn into an ErrorView."""
        try:
            return self._build_view()
        except Exception as e:
            report(Outcome.failure(FailureKind.VIEW, e), "view")
            return ErrorView(message=str(e))

    def _build_view(self):
        if self.display_mode == FULLSCREEN:
            return EditorView(elements=copy.deepcopy(self.current_elements()))
        if self.blank_canvas:
            return BlankCanvasView()
        if self.reconciler.has_content:
            return DiagramView(svg=self.reconciler.to_string())
        return LoadingView()
