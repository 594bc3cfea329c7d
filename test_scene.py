#!/usr/bin/env python3
"""Tests for the per-session scene."""

import sys
sys.path.insert(0, 'src')

from mcp_excalidraw_view.scene import SceneSession


def rect(element_id, x=0, **extra):
    return {"type": "rectangle", "id": element_id, "x": x, "y": 0, "width": 10, "height": 10, **extra}


def test_upsert_layers_batch_on_top():
    scene = SceneSession([rect("a"), rect("b"), rect("c")])
    result = scene.upsert([rect("b", x=99), rect("d")])
    assert [e["id"] for e in result] == ["a", "c", "b", "d"]
    assert scene.get("b")["x"] == 99


def test_upsert_is_idempotent():
    batch = [rect("a"), rect("b", x=5)]
    once = SceneSession([rect("z")])
    once.upsert(batch)
    twice = SceneSession([rect("z")])
    twice.upsert(batch)
    twice.upsert(batch)
    assert once.elements() == twice.elements()
    assert len(twice) == 3


def test_records_without_id_are_not_stored():
    scene = SceneSession()
    scene.upsert([{"type": "rectangle", "x": 0, "y": 0}, rect(""), rect("a")])
    assert [e["id"] for e in scene.elements()] == ["a"]


def test_repeated_id_in_one_batch_keeps_last_value():
    scene = SceneSession()
    scene.upsert([rect("a", x=1), rect("b"), rect("a", x=2)])
    assert [e["id"] for e in scene.elements()] == ["a", "b"]
    assert scene.get("a")["x"] == 2


def test_preview_does_not_store():
    scene = SceneSession([rect("a")])
    preview = scene.preview([rect("b")])
    assert [e["id"] for e in preview] == ["a", "b"]
    assert "b" not in scene


def test_load_from_only_seeds_an_empty_scene():
    persisted = [rect("p1"), rect("p2")]
    scene = SceneSession()
    assert scene.load_from(persisted) is True
    assert [e["id"] for e in scene.elements()] == ["p1", "p2"]

    # stored copies are independent of the caller's list
    persisted[0]["x"] = 500
    assert scene.get("p1")["x"] == 0

    assert scene.load_from([rect("other")]) is False
    assert "other" not in scene
    assert SceneSession().load_from(None) is False


def test_clear():
    scene = SceneSession([rect("a")])
    scene.clear()
    assert len(scene) == 0
    assert scene.elements() == []
