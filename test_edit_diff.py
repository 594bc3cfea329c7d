#!/usr/bin/env python3
"""Tests for edit summaries."""

import sys
sys.path.insert(0, 'src')

import json

from mcp_excalidraw_view.edit_diff import EditDiffTracker, fingerprint


def test_fingerprint_uses_id_and_version():
    assert json.loads(fingerprint([{"id": "a", "version": 3}, {"id": "b"}])) == ["a:3", "b:0"]


def test_diff_reports_added_and_removed_only():
    tracker = EditDiffTracker()
    tracker.capture_baseline([{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 10, "y": 10}])
    diff = tracker.diff([{"id": "a", "x": 0, "y": 0}, {"id": "c", "x": 5, "y": 5}])

    assert "Removed: b" in diff
    assert "Added:" in diff and "at (5,5)" in diff
    assert "a ->" not in diff
    assert "Moved/resized" not in diff


def test_diff_is_empty_when_nothing_changed():
    tracker = EditDiffTracker()
    elements = [{"id": "a", "x": 0, "y": 0, "version": 2}]
    tracker.capture_baseline(elements)
    assert tracker.diff(elements) == ""
    assert not tracker.has_changed(elements)


def test_diff_describes_added_text_and_labels():
    tracker = EditDiffTracker()
    tracker.capture_baseline([])
    diff = tracker.diff([
        {"id": "t", "type": "text", "text": "Hello", "x": 1.4, "y": 2.6},
        {"id": "r", "type": "rectangle", "label": {"text": "Box"}, "x": 0, "y": 0},
    ])
    assert diff == 'Added: text "Hello" at (1,3); rectangle "Box" at (0,0)'


def test_diff_reports_moves_with_rounded_geometry():
    tracker = EditDiffTracker()
    tracker.capture_baseline([{"id": "a", "x": 0, "y": 0, "width": 100, "height": 50, "version": 1}])
    diff = tracker.diff([{"id": "a", "x": 20.4, "y": 0, "width": 100, "height": 60.6, "version": 2}])
    assert diff == "Moved/resized: a -> (20,0) 100x61"

    # a version bump without visible change reports nothing
    assert tracker.diff([{"id": "a", "x": 0.2, "y": 0, "width": 100, "height": 50, "version": 5}]) == ""


def test_deleted_elements_count_as_removed():
    tracker = EditDiffTracker()
    tracker.capture_baseline([{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 0, "y": 0}])
    diff = tracker.diff([{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 0, "y": 0, "isDeleted": True, "version": 2}])
    assert diff == "Removed: b"


def test_baseline_is_a_snapshot():
    tracker = EditDiffTracker()
    elements = [{"id": "a", "x": 0, "y": 0}]
    tracker.capture_baseline(elements)
    elements[0]["x"] = 50
    elements[0]["version"] = 2
    assert tracker.diff(elements) == "Moved/resized: a -> (50,0) 0x0"


def test_reset_forgets_baseline():
    tracker = EditDiffTracker()
    tracker.capture_baseline([{"id": "a"}])
    tracker.reset()
    assert not tracker.captured
    assert tracker.has_changed([{"id": "a"}])
