"""Shared fixtures: a manual clock standing in for the event loop."""

import sys
sys.path.insert(0, 'src')

import pytest

from mcp_excalidraw_view.scheduler import FRAME_INTERVAL


class FakeHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Runs timers and frames only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def request_frame(self, callback):
        return self.call_later(FRAME_INTERVAL, callback)

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        """Move the clock forward, firing due callbacks in time order."""
        end = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= end]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = end

    def run_frames(self, limit=10_000):
        """Fire scheduled callbacks one at a time until none are left."""
        fired = 0
        while self.pending and fired < limit:
            handle = min(self.pending, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
            fired += 1
        return fired


class FakeHost:
    def __init__(self, display_mode_error=None, send_error=None):
        self.messages = []
        self.context_updates = []
        self.mode_requests = []
        self.display_mode_error = display_mode_error
        self.send_error = send_error

    async def send_message(self, message):
        if self.send_error:
            raise self.send_error
        self.messages.append(message)
        return {}

    async def request_display_mode(self, mode):
        self.mode_requests.append(mode)
        if self.display_mode_error:
            raise self.display_mode_error
        return mode

    async def update_model_context(self, content):
        self.context_updates.append(content)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def host():
    return FakeHost()
