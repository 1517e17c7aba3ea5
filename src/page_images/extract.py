"""Image inventory extraction for a single page.

Opens a page on an already-acquired browser, records every network response
that looks like an image while the page loads and renders, measures each
candidate with the page's own image decoder, and returns the deduplicated
inventory in discovery order.
"""

from __future__ import annotations

import os
from typing import Callable

from playwright.async_api import Browser, Response

from .classify import classify_response, dedupe_images
from .logging import jlog, logging_context
from .models import ImageRecord
from .playwright import DEFAULT_DECODE_TIMEOUT_MS, close_page, decode_images, render_full_page

DEFAULT_PAGE_TIMEOUT_MS = int(os.getenv("PAGE_TIMEOUT_MS", "30000"))
DEFAULT_WAIT_UNTIL = os.getenv("PAGE_WAIT_UNTIL", "load")


def _response_collector(images: list[ImageRecord]) -> Callable[[Response], None]:
    """Build a ``response`` handler that appends image records to ``images``."""

    def on_response(response: Response) -> None:
        url = None
        try:
            url = response.url
            record = classify_response(url, response.headers)
        except Exception as exc:
            jlog("warning", event="response_classify_error", response_url=url, error=str(exc))
            return
        if record is not None:
            images.append(record)

    return on_response


async def extract_images_from_url(
    browser: Browser,
    url: str,
    *,
    wait_until: str = DEFAULT_WAIT_UNTIL,
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS,
    decode_timeout_ms: int = DEFAULT_DECODE_TIMEOUT_MS,
) -> list[ImageRecord]:
    """Return the unique images loaded by ``url``.

    Page creation, navigation and the render pass raise straight through to
    the caller; the page is closed either way.
    """

    with logging_context(url=url):
        jlog("info", event="extract_start", wait_until=wait_until)
        collected: list[ImageRecord] = []
        on_response = _response_collector(collected)

        page = await browser.new_page()
        try:
            page.on("response", on_response)
            await page.goto(url, wait_until=wait_until, timeout=page_timeout_ms)
            await render_full_page(page, timeout_ms=page_timeout_ms)
            # Responses after the render pass (including the decode step's own
            # image loads) are not part of the inventory.
            page.remove_listener("response", on_response)
            candidates = list(collected)
            await decode_images(page, candidates, timeout_ms=decode_timeout_ms)
        finally:
            await close_page(page)

        images = dedupe_images(candidates)
        jlog(
            "info",
            event="extract_done",
            candidates=len(candidates),
            images=len(images),
            decoded=sum(1 for image in images if image.decoded),
        )
        return images


__all__ = ["DEFAULT_PAGE_TIMEOUT_MS", "DEFAULT_WAIT_UNTIL", "extract_images_from_url"]
