#!/usr/bin/env python3
"""Tests for the canned actions, model messages and screenshots."""

import sys
sys.path.insert(0, 'src')

import asyncio
import base64
import json

import pytest

from mcp_excalidraw_view.actions import ACTIONS, build_context_update, build_message, get_action, strip_volatile
from mcp_excalidraw_view.screenshot import capture_screenshot, scaled_size

ELEMENTS = [{"id": "a", "type": "rectangle", "x": 0, "y": 0, "width": 10, "height": 10, "version": 3, "seed": 9}]


def test_actions():
    assert [a.label for a in ACTIONS] == ["Ask Claude", "Refine", "Generate Code", "Explain"]
    assert [a.include_json for a in ACTIONS] == [False, True, True, False]
    assert get_action("refine").label == "Refine"
    with pytest.raises(KeyError):
        get_action("dance")


def test_build_message_puts_image_first_and_strips_volatile_fields():
    message = build_message(ELEMENTS, "Look", True, "data:image/png;base64,QUJD")
    assert message["role"] == "user"
    image, prompt, payload = message["content"]
    assert image == {"type": "image", "data": "QUJD", "mimeType": "image/png"}
    assert prompt == {"type": "text", "text": "Look"}
    sent = json.loads(payload["text"].split("\n", 1)[1])
    assert sent == [{"id": "a", "type": "rectangle", "x": 0, "y": 0, "width": 10, "height": 10}]


def test_build_message_without_screenshot_or_json():
    message = build_message(ELEMENTS, "Explain", False)
    assert message["content"] == [{"type": "text", "text": "Explain"}]
    assert strip_volatile([{"id": "a", "versionNonce": 1}, "junk"]) == [{"id": "a"}]


def test_context_update():
    content = build_context_update("Removed: b")
    assert content == [{"type": "text", "text": "The user edited the diagram:\nRemoved: b"}]


def test_scaled_size():
    assert scaled_size(1024, 512, 512) == (512, 256)
    assert scaled_size(100, 50, 512) == (100, 50)


def test_capture_screenshot_encodes_png():
    calls = []

    async def rasterize(svg, width, height):
        calls.append((svg, width, height))
        return b"\x89PNG"

    url = asyncio.run(capture_screenshot(ELEMENTS, max_width=25, rasterize=rasterize))
    assert url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    svg, width, height = calls[0]
    assert 'fill="#ffffff"' in svg
    # 10 wide plus padding on both sides, scaled down to 25
    assert (width, height) == (25, 25)


def test_capture_screenshot_failures_return_none():
    async def broken(svg, width, height):
        raise RuntimeError("no browser")

    assert asyncio.run(capture_screenshot(ELEMENTS, rasterize=broken)) is None
    assert asyncio.run(capture_screenshot([], rasterize=broken)) is None
    assert asyncio.run(capture_screenshot([{"id": "x", "type": "rectangle", "x": None}], rasterize=broken)) is None
