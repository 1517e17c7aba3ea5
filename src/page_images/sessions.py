"""Browser acquisition with ordered fallback across discovery paths.

Remote instances are expensive and rate limited, so the search prefers idle
pool sessions, then sessions already serving a connection, then a freshly
launched instance, and only then a directly supplied CDP endpoint. Every
attempt is independently fallible; only the final "no browser" outcome is
visible to the caller, as ``None``.
"""

from __future__ import annotations

from collections.abc import Iterable

from playwright.async_api import Browser, Playwright

from .logging import jlog
from .pool import BrowserPool

SESSION_KEEP_ALIVE_MS = 600_000

PATH_IDLE = "idle"
PATH_ACTIVE = "active"
PATH_LAUNCH = "launch"
PATH_DIRECT = "direct"


async def _attach_first(
    pw: Playwright,
    pool: BrowserPool,
    session_ids: Iterable[str],
    *,
    path: str,
) -> Browser | None:
    for session_id in session_ids:
        jlog("info", event="session_attach_attempt", path=path, session_id=session_id)
        try:
            return await pw.chromium.connect_over_cdp(
                pool.devtools_url(session_id),
                headers=pool.connect_headers or None,
            )
        except Exception as exc:
            jlog("warning", event="session_attach_failed", path=path, session_id=session_id, error=str(exc))
    return None


async def _from_idle_sessions(pw: Playwright, pool: BrowserPool) -> Browser | None:
    try:
        sessions = await pool.list_sessions()
    except Exception as exc:
        jlog("warning", event="session_list_failed", path=PATH_IDLE, error=str(exc))
        return None
    idle = [s.session_id for s in sessions if s.is_idle]
    return await _attach_first(pw, pool, idle, path=PATH_IDLE)


async def _from_active_sessions(pw: Playwright, pool: BrowserPool) -> Browser | None:
    try:
        limits = await pool.limits()
    except Exception as exc:
        jlog("warning", event="session_list_failed", path=PATH_ACTIVE, error=str(exc))
        return None
    return await _attach_first(pw, pool, limits.active_sessions, path=PATH_ACTIVE)


async def _launch(pw: Playwright, pool: BrowserPool) -> Browser | None:
    jlog("info", event="browser_launch_attempt", keep_alive_ms=SESSION_KEEP_ALIVE_MS)
    try:
        session_id = await pool.acquire(SESSION_KEEP_ALIVE_MS)
        return await pw.chromium.connect_over_cdp(
            pool.devtools_url(session_id),
            headers=pool.connect_headers or None,
        )
    except Exception as exc:
        jlog("error", event="browser_launch_failed", error=str(exc))
        return None


async def _connect_direct(pw: Playwright, ws_endpoint: str) -> Browser | None:
    jlog("info", event="direct_connect_attempt", ws_endpoint=ws_endpoint)
    try:
        return await pw.chromium.connect_over_cdp(ws_endpoint)
    except Exception as exc:
        jlog("error", event="direct_connect_failed", ws_endpoint=ws_endpoint, error=str(exc))
        return None


async def get_browser(
    pw: Playwright,
    pool: BrowserPool | None = None,
    ws_endpoint: str | None = None,
) -> Browser | None:
    """Return a connected browser, or None when every path is exhausted."""

    if pool is not None:
        pool_paths = (
            (PATH_IDLE, _from_idle_sessions),
            (PATH_ACTIVE, _from_active_sessions),
            (PATH_LAUNCH, _launch),
        )
        for path, attempt in pool_paths:
            browser = await attempt(pw, pool)
            if browser is not None:
                jlog("info", event="browser_acquired", path=path)
                return browser

    if ws_endpoint:
        browser = await _connect_direct(pw, ws_endpoint)
        if browser is not None:
            jlog("info", event="browser_acquired", path=PATH_DIRECT)
            return browser

    jlog("error", event="browser_unavailable", pool=repr(pool) if pool else None, ws_endpoint=ws_endpoint)
    return None


__all__ = [
    "PATH_ACTIVE",
    "PATH_DIRECT",
    "PATH_IDLE",
    "PATH_LAUNCH",
    "SESSION_KEEP_ALIVE_MS",
    "get_browser",
]
