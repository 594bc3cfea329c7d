"""
Session phases and the transitions between them.

``transition`` is pure: it names the next phase and the effects the
session has to carry out, and never performs them itself.
"""

from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FINAL = "final"
    EDITING = "editing"
    TORN_DOWN = "torn_down"


class Event(str, Enum):
    PARTIAL_INPUT = "partial_input"
    FINAL_INPUT = "final_input"
    EDIT = "edit"
    DISPLAY_INLINE = "display_inline"
    DISPLAY_FULLSCREEN = "display_fullscreen"
    CLEAR = "clear"
    TEARDOWN = "teardown"


class Effect(str, Enum):
    RENDER = "render"
    CAPTURE_BASELINE = "capture_baseline"
    PERSIST = "persist"
    CANCEL_ANIMATION = "cancel_animation"
    CANCEL_TIMERS = "cancel_timers"
    RESTORE_EDITS = "restore_edits"


@dataclass(frozen=True)
class Transition:
    phase: Phase
    effects: tuple[Effect, ...] = ()


def transition(phase: Phase, event: Event) -> Transition:
    if phase is Phase.TORN_DOWN:
        return Transition(Phase.TORN_DOWN)

    if event is Event.TEARDOWN:
        return Transition(Phase.TORN_DOWN, (Effect.CANCEL_TIMERS, Effect.CANCEL_ANIMATION))
    if event is Event.PARTIAL_INPUT:
        return Transition(Phase.STREAMING, (Effect.RENDER,))
    if event is Event.FINAL_INPUT:
        return Transition(Phase.FINAL, (Effect.RENDER, Effect.CAPTURE_BASELINE, Effect.PERSIST))
    if event is Event.EDIT:
        return Transition(Phase.EDITING, (Effect.PERSIST,))
    if event is Event.DISPLAY_INLINE:
        if phase is Phase.EDITING:
            return Transition(phase, (Effect.RESTORE_EDITS, Effect.PERSIST))
        return Transition(phase)
    if event is Event.DISPLAY_FULLSCREEN:
        return Transition(phase)
    if event is Event.CLEAR:
        return Transition(Phase.IDLE, (Effect.CANCEL_TIMERS, Effect.CANCEL_ANIMATION))
    raise ValueError(f"Unknown event: {event}")
