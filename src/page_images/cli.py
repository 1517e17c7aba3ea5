"""Command-line entrypoint: print the image inventory of a URL as JSON.

Usage (examples)
----------------
# Reuse or launch a session on a remote browser-rendering pool
page-images https://example.com \
  --pool-url https://browser.example.workers.dev --pool-token "$BROWSER_POOL_TOKEN"

# Connect straight to a CDP endpoint (e.g. a local chrome --remote-debugging-port)
page-images https://example.com --ws-endpoint ws://127.0.0.1:9222/devtools/browser/<id> --pretty
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from dataclasses import dataclass

from playwright.async_api import async_playwright

from .extract import DEFAULT_PAGE_TIMEOUT_MS, DEFAULT_WAIT_UNTIL, extract_images_from_url
from .logging import configure_logging, jlog, logging_context, set_global_context
from .models import ImageRecord
from .playwright import DEFAULT_DECODE_TIMEOUT_MS
from .pool import DEFAULT_HTTP_TIMEOUT_S, DEFAULT_POOL_TOKEN, DEFAULT_POOL_URL, BrowserPool
from .sessions import get_browser
from .versioning import TOOL_NAME, get_extractor_version

DEFAULT_WS_ENDPOINT = os.getenv("BROWSER_WS_ENDPOINT") or None
WAIT_UNTIL_CHOICES = ["commit", "domcontentloaded", "load", "networkidle"]

EXIT_OK = 0
EXIT_EXTRACT_FAILED = 1
EXIT_NO_BROWSER = 2


@dataclass(frozen=True)
class CliArgs:
    url: str
    pool_url: str | None
    pool_token: str | None
    pool_timeout_s: float
    ws_endpoint: str | None
    wait_until: str
    page_timeout_ms: int
    decode_timeout_ms: int
    min_width: int
    decoded_only: bool
    pretty: bool


def validate_args(args: argparse.Namespace) -> None:
    if not args.pool_url and not args.ws_endpoint:
        raise ValueError("supply --pool-url or --ws-endpoint (or BROWSER_POOL_URL / BROWSER_WS_ENDPOINT)")
    if args.page_timeout_ms <= 0 or args.decode_timeout_ms <= 0:
        raise ValueError("timeouts must be positive")
    if args.min_width < 0:
        raise ValueError("--min-width must be >= 0")


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(prog=TOOL_NAME, description="List the images a web page loads, with decoded dimensions")
    p.add_argument("url", help="Page to load")
    p.add_argument("--pool-url", default=DEFAULT_POOL_URL, help="Browser pool base URL (default from BROWSER_POOL_URL env).")
    p.add_argument("--pool-token", default=DEFAULT_POOL_TOKEN, help="Bearer token for the pool (default from BROWSER_POOL_TOKEN env).")
    p.add_argument("--pool-timeout-s", type=float, default=DEFAULT_HTTP_TIMEOUT_S)
    p.add_argument(
        "--ws-endpoint",
        default=DEFAULT_WS_ENDPOINT,
        help="CDP WebSocket endpoint used when the pool yields no browser (default from BROWSER_WS_ENDPOINT env).",
    )
    p.add_argument("--wait-until", choices=WAIT_UNTIL_CHOICES, default=DEFAULT_WAIT_UNTIL)
    p.add_argument(
        "--page-timeout-ms",
        type=int,
        default=DEFAULT_PAGE_TIMEOUT_MS,
        help="Timeout (ms) for navigation and the render pass (default from PAGE_TIMEOUT_MS env or 30000).",
    )
    p.add_argument(
        "--decode-timeout-ms",
        type=int,
        default=DEFAULT_DECODE_TIMEOUT_MS,
        help="Per-image decode timeout in ms (default from DECODE_TIMEOUT_MS env or 10000).",
    )
    p.add_argument("--min-width", type=int, default=0, help="Only print images at least this wide.")
    p.add_argument("--decoded-only", action="store_true", help="Only print images that decoded in the page.")
    p.add_argument("--pretty", action="store_true", help="Indent the JSON output.")

    ns = p.parse_args(argv)
    try:
        validate_args(ns)
    except ValueError as exc:
        p.error(str(exc))

    return CliArgs(
        url=ns.url,
        pool_url=ns.pool_url,
        pool_token=ns.pool_token,
        pool_timeout_s=ns.pool_timeout_s,
        ws_endpoint=ns.ws_endpoint,
        wait_until=ns.wait_until,
        page_timeout_ms=ns.page_timeout_ms,
        decode_timeout_ms=ns.decode_timeout_ms,
        min_width=ns.min_width,
        decoded_only=ns.decoded_only,
        pretty=ns.pretty,
    )


def filter_images(images: list[ImageRecord], *, min_width: int = 0, decoded_only: bool = False) -> list[ImageRecord]:
    out = []
    for image in images:
        if decoded_only and not image.decoded:
            continue
        if min_width and image.width < min_width:
            continue
        out.append(image)
    return out


def render_json(images: list[ImageRecord], *, pretty: bool = False) -> str:
    return json.dumps([image.to_dict() for image in images], indent=2 if pretty else None, ensure_ascii=False)


async def run(args: CliArgs) -> int:
    """Acquire a browser, extract, print JSON; returns the process exit code."""

    pool = BrowserPool(args.pool_url, token=args.pool_token, timeout_s=args.pool_timeout_s) if args.pool_url else None
    async with async_playwright() as pw:
        browser = await get_browser(pw, pool, args.ws_endpoint)
        if browser is None:
            return EXIT_NO_BROWSER
        try:
            images = await extract_images_from_url(
                browser,
                args.url,
                wait_until=args.wait_until,
                page_timeout_ms=args.page_timeout_ms,
                decode_timeout_ms=args.decode_timeout_ms,
            )
        except Exception as exc:
            jlog("error", event="extract_failed", url=args.url, error=str(exc))
            return EXIT_EXTRACT_FAILED
        finally:
            # Disconnects this client; pool sessions stay alive for reuse.
            try:
                await browser.close()
            except Exception:
                pass

    images = filter_images(images, min_width=args.min_width, decoded_only=args.decoded_only)
    sys.stdout.write(render_json(images, pretty=args.pretty) + "\n")
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and print the page's image inventory."""
    configure_logging()
    set_global_context(app=TOOL_NAME)
    with logging_context(version=get_extractor_version()):
        args = parse_args(argv)
        sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
