"""
PNG screenshots of a scene.

The scene is exported to SVG and rasterised in headless Chromium via
playwright. Screenshots are optional garnish on messages: every failure
ends up as ``None``.
"""

import base64
import math
from typing import Awaitable, Callable, Optional

from .actions import PNG_DATA_URL_PREFIX
from .outcome import FailureKind, Outcome, report
from .render import EXPORT_PADDING, export_to_svg, svg_to_string

Rasterizer = Callable[[str, int, int], Awaitable[bytes]]


def _page_html(svg: str, width: int, height: int) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <style>
        html, body {{ margin: 0; padding: 0; background: #ffffff; }}
        svg {{ display: block; width: {width}px; height: {height}px; }}
    </style>
</head>
<body>{svg}</body>
</html>"""


async def rasterize_svg(svg: str, width: int, height: int) -> bytes:
    """Screenshot ``svg`` drawn at ``width`` x ``height`` pixels."""
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = await p.chromium.launch()
        try:
            page = await browser.new_page(viewport={"width": width, "height": height})
            await page.set_content(_page_html(svg, width, height))
            return await page.screenshot(type="png", full_page=False)
        finally:
            await browser.close()


def scaled_size(width: float, height: float, max_width: int) -> tuple[int, int]:
    scale = min(1.0, max_width / width) if width > 0 else 1.0
    return max(1, round(width * scale)), max(1, round(height * scale))


async def capture_screenshot(
    elements: list,
    max_width: int = 512,
    rasterize: Optional[Rasterizer] = None,
) -> Optional[str]:
    """PNG data URL of ``elements``, at most ``max_width`` pixels wide, or None."""
    if not elements:
        return None
    rasterize = rasterize or rasterize_svg
    try:
        svg = export_to_svg(elements, padding=EXPORT_PADDING, background="#ffffff")
        width, height = float(svg.get("width")), float(svg.get("height"))
        if not (math.isfinite(width) and math.isfinite(height)):
            raise ValueError("Scene has no finite size")
        png = await rasterize(svg_to_string(svg), *scaled_size(width, height, max_width))
    except Exception as e:
        report(Outcome.failure(FailureKind.SCREENSHOT, e), "screenshot")
        return None
    return PNG_DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")
