"""Playwright page helpers used by the image extractor."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .logging import jlog
from .models import ImageRecord

DEFAULT_DECODE_TIMEOUT_MS = int(os.getenv("DECODE_TIMEOUT_MS", "10000"))
# Headroom on top of the in-page per-image timeout before the whole evaluate is abandoned.
DECODE_EVALUATE_GRACE_MS = 5000

DECODE_IMAGES_JS = """
async ({ sources, timeoutMs }) => {
    const decodeOne = (src) => new Promise((resolve) => {
        let settled = false;
        const finish = (outcome) => {
            if (settled) return;
            settled = true;
            clearTimeout(timer);
            resolve(outcome);
        };
        const timer = setTimeout(() => finish({ decoded: false, timedOut: true }), timeoutMs);
        try {
            const img = new Image();
            img.src = src;
            img.decode().then(
                () => finish({ decoded: true, width: img.naturalWidth, height: img.naturalHeight }),
                (err) => finish({ decoded: false, error: String(err) }),
            );
        } catch (err) {
            finish({ decoded: false, error: String(err) });
        }
    });
    return Promise.all(sources.map(decodeOne));
}
"""


async def render_full_page(page: Page, *, timeout_ms: float | None = None) -> None:
    """Force a full-page render so lazy images issue their requests.

    The screenshot bytes are discarded.
    """

    await page.screenshot(full_page=True, timeout=timeout_ms)


async def decode_images(
    page: Page,
    images: Sequence[ImageRecord],
    *,
    timeout_ms: int = DEFAULT_DECODE_TIMEOUT_MS,
) -> int:
    """Decode every record's ``src`` in the page and record natural dimensions.

    Decodes run concurrently inside the page, each bounded by ``timeout_ms``.
    A failed or timed-out decode leaves its record untouched, and a failed
    evaluate leaves every record untouched. Returns the number of records
    marked decoded.
    """

    if not images:
        return 0
    sources = list(dict.fromkeys(image.src for image in images))
    budget_s = (timeout_ms + DECODE_EVALUATE_GRACE_MS) / 1000.0
    try:
        outcomes = await asyncio.wait_for(
            page.evaluate(DECODE_IMAGES_JS, {"sources": sources, "timeoutMs": timeout_ms}),
            timeout=budget_s,
        )
    except asyncio.TimeoutError:
        jlog("warning", event="decode_timeout", candidates=len(sources), budget_s=budget_s)
        return 0
    except PlaywrightError as exc:
        # e.g. the execution context was destroyed by a late client-side redirect
        jlog("warning", event="decode_failed", candidates=len(sources), error=str(exc))
        return 0

    by_src = dict(zip(sources, outcomes or []))
    decoded = 0
    timed_out = 0
    for image in images:
        outcome = by_src.get(image.src)
        if not isinstance(outcome, dict):
            continue
        if outcome.get("decoded"):
            image.mark_decoded(outcome.get("width"), outcome.get("height"))
            decoded += 1
        elif outcome.get("timedOut"):
            timed_out += 1
    if timed_out:
        jlog("warning", event="decode_timeout", candidates=timed_out, timeout_ms=timeout_ms)
    return decoded


async def close_page(page: Page) -> None:
    """Close the page; a close failure is logged, never raised."""

    try:
        await page.close()
    except Exception as exc:
        jlog("warning", event="page_close_error", error=str(exc))


__all__ = [
    "DECODE_IMAGES_JS",
    "DEFAULT_DECODE_TIMEOUT_MS",
    "close_page",
    "decode_images",
    "render_full_page",
]
