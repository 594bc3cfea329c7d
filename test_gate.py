#!/usr/bin/env python3
"""Tests for the render gate and seed jitter."""

import sys
sys.path.insert(0, 'src')

import random

from mcp_excalidraw_view.gate import RenderGate, jitter_seeds


def rect(element_id, x=0, **extra):
    return {"type": "rectangle", "id": element_id, "x": x, "y": 0, "width": 10, "height": 10, **extra}


def test_gate_skips_unchanged_batches():
    gate = RenderGate()
    batch = [rect("a"), rect("b")]
    assert gate.consider(batch).render is True
    # same ids, different geometry: still the same fingerprint
    assert gate.consider([rect("a", x=5), rect("b", x=7)]).render is False
    assert gate.consider(batch + [rect("c")]).render is True


def test_gate_never_renders_empty_batches():
    gate = RenderGate()
    assert gate.consider([]).render is False


def test_gate_reports_new_element_types():
    strokes = []
    gate = RenderGate(on_new_element=strokes.append)
    gate.consider([rect("a")])
    decision = gate.consider([rect("a"), {"id": "b", "type": "arrow"}, {"id": "c"}])
    assert [e["id"] for e in decision.new_elements] == ["b", "c"]
    assert strokes == ["rectangle", "arrow", "rectangle"]


def test_gate_reset_records_final_batch():
    gate = RenderGate()
    batch = [rect("a"), rect("b")]
    gate.reset(batch)
    assert gate.count == 2
    assert gate.consider(batch).render is False
    gate.reset()
    assert gate.count == 0
    assert gate.consider(batch).render is True


def test_jitter_seeds_copies_elements():
    elements = [rect("a", seed=1), rect("b")]
    jittered = jitter_seeds(elements, random.Random(7))
    assert elements[0]["seed"] == 1
    assert "seed" not in elements[1]
    assert all(0 <= e["seed"] < 1_000_000_000 for e in jittered)
    assert [e["id"] for e in jittered] == ["a", "b"]
