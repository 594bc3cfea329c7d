#!/usr/bin/env python3
"""Tests for decoding streamed element arrays and classifying the records."""

import sys
sys.path.insert(0, 'src')

import json

from mcp_excalidraw_view.classify import content_hash, extract_viewport_and_elements
from mcp_excalidraw_view.decoder import exclude_incomplete_last_item, parse_partial_elements
from mcp_excalidraw_view.models import ViewportRect

TRUNCATED = '[{"id":"1","type":"rectangle","x":0,"y":0,"width":10,"height":10},{"id":"2","type":"rec'

FINAL_PAYLOAD = json.dumps([
    {"type": "cameraUpdate", "x": 0, "y": 0, "width": 800, "height": 600},
    {"type": "rectangle", "id": "r1", "x": 10, "y": 10, "width": 100, "height": 50,
     "label": {"text": "Start {here}", "fontSize": 20}},
    {"type": "arrow", "id": "a1", "x": 110, "y": 35, "width": 100, "height": 0,
     "points": [[0, 0], [100, 0]], "endBinding": {"elementId": "r2", "fixedPoint": [0, 0.5]}},
    {"type": "rectangle", "id": "r2", "x": 210, "y": 10, "width": 100, "height": 50},
])


def test_complete_array_decodes_strictly():
    records = parse_partial_elements(FINAL_PAYLOAD)
    assert [r.get("id") for r in records] == [None, "r1", "a1", "r2"]


def test_truncated_second_record_is_dropped():
    records = parse_partial_elements(TRUNCATED)
    assert records == [{"id": "1", "type": "rectangle", "x": 0, "y": 0, "width": 10, "height": 10}]

    # the non-final path discards a lone record as unconfirmed
    confirmed = exclude_incomplete_last_item(records)
    viewport, drawables = extract_viewport_and_elements(confirmed)
    assert viewport is None
    assert drawables == []


def test_truncation_inside_nested_object_keeps_top_level_records():
    text = '[{"id":"a","type":"rectangle","x":0,"y":0},{"id":"b","type":"arrow","x":1,"y":1,"startBinding":{"elementId":"a"}'
    records = parse_partial_elements(text)
    assert [r["id"] for r in records] == ["a"]


def test_braces_inside_strings_are_not_boundaries():
    text = '[{"id":"a","type":"text","text":"}{","x":0,"y":0},{"id":"b","type":"text","text":"open } brace'
    records = parse_partial_elements(text)
    assert [r["id"] for r in records] == ["a"]
    assert records[0]["text"] == "}{"


def test_non_payloads_decode_to_nothing():
    assert parse_partial_elements("") == []
    assert parse_partial_elements(None) == []
    assert parse_partial_elements('{"id":"a"}') == []
    assert parse_partial_elements("<!DOCTYPE html><html>") == []
    assert parse_partial_elements("[Standalone app not found]") == []
    assert parse_partial_elements("[" + "x" * 400) == []
    assert parse_partial_elements("[") == []


def test_banner_words_inside_labels_are_allowed():
    text = '[{"id":"e","type":"text","x":0,"y":0,"text":"error handling"}]'
    assert len(parse_partial_elements(text)) == 1


def test_non_object_records_are_dropped():
    assert parse_partial_elements('[1, "two", {"id":"a","type":"ellipse","x":0,"y":0}, null]') == [
        {"id": "a", "type": "ellipse", "x": 0, "y": 0}
    ]


def test_decoding_is_monotonic_over_prefixes():
    previous = []
    for end in range(len(FINAL_PAYLOAD) + 1):
        records = parse_partial_elements(FINAL_PAYLOAD[:end])
        assert len(records) >= len(previous)
        # every record seen so far is identical to the final one
        assert records[:len(previous)] == previous
        previous = records
    assert len(previous) == 4


def test_exclude_incomplete_last_item():
    assert exclude_incomplete_last_item([]) == []
    assert exclude_incomplete_last_item([{"id": "a"}]) == []
    assert exclude_incomplete_last_item([{"id": "a"}, {"id": "b"}, {"id": "c"}]) == [{"id": "a"}, {"id": "b"}]


def test_camera_and_drawables_are_split():
    viewport, drawables = extract_viewport_and_elements(json.loads(
        '[{"type":"cameraUpdate","x":0,"y":0,"width":800,"height":600},'
        '{"type":"rectangle","id":"r1","x":10,"y":10,"width":100,"height":50}]'
    ))
    assert viewport == ViewportRect(0, 0, 800, 600)
    assert [d["id"] for d in drawables] == ["r1"]


def test_last_camera_record_wins():
    viewport, drawables = extract_viewport_and_elements([
        {"type": "cameraUpdate", "x": 0, "y": 0, "width": 400, "height": 300},
        {"type": "ellipse", "id": "e"},
        {"type": "viewportUpdate", "x": 50, "y": 60, "width": 800, "height": 600},
        {"type": "cameraUpdate", "x": "far", "y": 0, "width": 1, "height": 1},
    ])
    assert viewport == ViewportRect(50, 60, 800, 600)
    assert [d["id"] for d in drawables] == ["e"]


def test_content_hash_sums_id_characters():
    assert content_hash([]) == 0
    assert content_hash([{"id": "ab"}, {"id": "c"}]) == ord("a") + ord("b") + ord("c")
    assert content_hash([{"id": "ab"}]) == content_hash([{"id": "ba"}])
    assert content_hash([{"type": "rectangle"}]) == 0


def test_content_hash_wraps_to_signed_32_bit():
    big = [{"id": "\U0010ffff" * 4000}] * 600
    value = content_hash(big)
    assert -(1 << 31) <= value < (1 << 31)
