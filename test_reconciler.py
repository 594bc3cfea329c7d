#!/usr/bin/env python3
"""Tests for tree patching and the visual reconciler."""

import sys
sys.path.insert(0, 'src')

import xml.etree.ElementTree as ET

from mcp_excalidraw_view.models import ViewportRect
from mcp_excalidraw_view.morph import morph
from mcp_excalidraw_view.outcome import FailureKind
from mcp_excalidraw_view.reconciler import ANIMATION_CLASS, VisualReconciler, preserve_class


def tree(xml):
    return ET.fromstring(xml)


def rect(element_id, x=0):
    return {"type": "rectangle", "id": element_id, "x": x, "y": 0, "width": 10, "height": 10, "seed": 1}


def test_morph_reuses_keyed_nodes():
    existing = tree('<svg><g id="a" fill="red"><path d="1"/></g><g id="b"/></svg>')
    kept = existing.find("g[@id='a']")
    morph(existing, tree('<svg><g id="b"/><g id="a" fill="blue"><path d="2"/></g><g id="c"/></svg>'))

    assert [g.get("id") for g in existing] == ["b", "a", "c"]
    assert existing.find("g[@id='a']") is kept
    assert kept.get("fill") == "blue"
    assert kept.find("path").get("d") == "2"


def test_morph_removes_missing_nodes_and_attributes():
    existing = tree('<svg width="10"><g id="a"/><g id="b"/></svg>')
    morph(existing, tree('<svg><g id="b"/></svg>'))
    assert [g.get("id") for g in existing] == ["b"]
    assert existing.get("width") is None


def test_morph_replaces_nodes_whose_tag_changed():
    existing = tree('<svg><g><ellipse/></g></svg>')
    morph(existing, tree('<svg><g><path d="M 0 0"/></g></svg>'))
    assert existing.find("g/path").get("d") == "M 0 0"
    assert existing.find("g/ellipse") is None


def test_morph_hook_can_veto_updates():
    existing = tree('<svg><g id="a" fill="red"/></svg>')
    morph(existing, tree('<svg><g id="a" fill="blue"/></svg>'),
          on_before_el_updated=lambda old, new: False if old.get("id") == "a" else None)
    assert existing.find("g").get("fill") == "red"


def test_morph_does_not_alias_incoming_tree():
    incoming = tree('<svg><g id="new"><path d="x"/></g></svg>')
    existing = tree('<svg/>')
    morph(existing, incoming)
    existing.find("g").set("class", "changed")
    assert incoming.find("g").get("class") is None


def test_preserve_class_keeps_existing_animation_marker():
    existing = tree('<svg><g id="a" class="draw-on"/></svg>')
    morph(existing, tree('<svg><g id="a" fill="x"/></svg>'), on_before_el_updated=preserve_class)
    assert existing.find("g").get("class") == "draw-on"

    # without the hint the patch erases it
    morph(existing, tree('<svg><g id="a" fill="x"/></svg>'))
    assert existing.find("g").get("class") is None


def test_new_elements_get_draw_on_class_once(scheduler):
    reconciler = VisualReconciler(scheduler)
    assert reconciler.render([rect("a")], None).ok
    first = reconciler.displayed.find(".//g[@id='element-a']")
    assert first.get("class") == ANIMATION_CLASS

    assert reconciler.render([rect("a"), rect("b", x=50)], None).ok
    svg = reconciler.displayed
    # same node, still animating, new sibling marked too
    assert svg.find(".//g[@id='element-a']") is first
    assert first.get("class") == ANIMATION_CLASS
    assert svg.find(".//g[@id='element-b']").get("class") == ANIMATION_CLASS


def test_render_failure_keeps_previous_tree(scheduler):
    reconciler = VisualReconciler(scheduler)
    reconciler.render([rect("a")], None)
    before = reconciler.to_string()

    outcome = reconciler.render([rect("a"), {"type": "rectangle", "id": "bad", "x": None, "y": 0}], None)
    assert not outcome.ok
    assert outcome.kind is FailureKind.RENDER
    assert reconciler.to_string() == before


def test_viewport_sets_view_box(scheduler):
    reconciler = VisualReconciler(scheduler)
    reconciler.render([rect("a", x=100)], ViewportRect(0, 0, 800, 600))
    # scene min x is 100, padding 20
    assert reconciler.displayed.get("viewBox") == "-80 20 800 600"
    assert reconciler.animator.target == ViewportRect(0, 0, 800, 600)


def test_no_viewport_uses_default_framing(scheduler):
    reconciler = VisualReconciler(scheduler)
    reconciler.render([rect("a")], None)
    assert reconciler.displayed.get("viewBox") == "20 20 1024 768"


def test_empty_batch_paints_nothing(scheduler):
    reconciler = VisualReconciler(scheduler)
    assert reconciler.render([], None).ok
    assert not reconciler.has_content


def test_reset(scheduler):
    reconciler = VisualReconciler(scheduler)
    reconciler.render([rect("a")], ViewportRect(0, 0, 800, 600))
    reconciler.reset()
    assert not reconciler.has_content
    assert reconciler.animator.current is None
    assert scheduler.pending == []
