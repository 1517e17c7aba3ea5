"""HTTP client for a remote browser-rendering pool.

The pool speaks the Cloudflare Browser Rendering worker protocol: sessions are
listed under ``/v1/sessions``, concurrency limits under ``/v1/limits``, new
instances are acquired with ``/v1/acquire`` and each session exposes a CDP
WebSocket at ``/v1/connectDevtools?browser_session=<id>``.
"""

from __future__ import annotations

import asyncio
import os
import urllib.parse
from dataclasses import dataclass, field
from typing import Any

import requests

DEFAULT_POOL_URL = os.getenv("BROWSER_POOL_URL") or None
DEFAULT_POOL_TOKEN = os.getenv("BROWSER_POOL_TOKEN") or None
DEFAULT_HTTP_TIMEOUT_S = float(os.getenv("POOL_HTTP_TIMEOUT_S", "15"))
DEFAULT_USER_AGENT = "page-images/1.0"


class BrowserPoolError(RuntimeError):
    """Raised when the pool answers with an error status or a malformed payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    start_time: int | None = None
    connection_id: str | None = None
    connection_start_time: int | None = None

    @property
    def is_idle(self) -> bool:
        return not self.connection_id


@dataclass(frozen=True)
class PoolLimits:
    active_sessions: list[str] = field(default_factory=list)
    max_concurrent_sessions: int | None = None
    allowed_browser_acquisitions: int | None = None
    time_until_next_allowed_browser_acquisition: int | None = None


def _require_mapping(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise BrowserPoolError(f"unexpected {what} payload: {type(payload).__name__}")
    return payload


def parse_sessions(payload: Any) -> list[SessionInfo]:
    data = _require_mapping(payload, "sessions")
    raw = data.get("sessions")
    if not isinstance(raw, list):
        raise BrowserPoolError("sessions payload has no 'sessions' list")
    sessions: list[SessionInfo] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("sessionId"):
            continue
        sessions.append(
            SessionInfo(
                session_id=str(item["sessionId"]),
                start_time=item.get("startTime"),
                connection_id=item.get("connectionId") or None,
                connection_start_time=item.get("connectionStartTime"),
            )
        )
    return sessions


def parse_limits(payload: Any) -> PoolLimits:
    data = _require_mapping(payload, "limits")
    active = data.get("activeSessions") or []
    if not isinstance(active, list):
        raise BrowserPoolError("limits payload 'activeSessions' is not a list")
    ids = [str(item["id"]) for item in active if isinstance(item, dict) and item.get("id")]
    return PoolLimits(
        active_sessions=ids,
        max_concurrent_sessions=data.get("maxConcurrentSessions"),
        allowed_browser_acquisitions=data.get("allowedBrowserAcquisitions"),
        time_until_next_allowed_browser_acquisition=data.get("timeUntilNextAllowedBrowserAcquisition"),
    )


class BrowserPool:
    """Thin client over the pool's session-management endpoints.

    Blocking ``requests`` calls run in a worker thread so the async acquirer
    never stalls the event loop.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
        http: requests.Session | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("BrowserPool requires a base_url")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.token = token
        self.http = http or _make_http(token)

    def __repr__(self) -> str:
        return f"BrowserPool({self.base_url!r})"

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.get(url, params=params, timeout=self.timeout_s)
        except requests.RequestException as exc:
            raise BrowserPoolError(f"GET {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise BrowserPoolError(
                f"GET {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise BrowserPoolError(f"GET {path} returned invalid JSON") from exc

    async def list_sessions(self) -> list[SessionInfo]:
        payload = await asyncio.to_thread(self._get_json, "/v1/sessions")
        return parse_sessions(payload)

    async def limits(self) -> PoolLimits:
        payload = await asyncio.to_thread(self._get_json, "/v1/limits")
        return parse_limits(payload)

    async def acquire(self, keep_alive_ms: int) -> str:
        payload = await asyncio.to_thread(self._get_json, "/v1/acquire", {"keep_alive": keep_alive_ms})
        data = _require_mapping(payload, "acquire")
        session_id = data.get("sessionId")
        if not session_id:
            raise BrowserPoolError("acquire payload has no sessionId")
        return str(session_id)

    @property
    def connect_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def devtools_url(self, session_id: str) -> str:
        parsed = urllib.parse.urlparse(self.base_url)
        scheme = "wss" if parsed.scheme == "https" else "ws"
        query = urllib.parse.urlencode({"browser_session": session_id})
        path = f"{parsed.path.rstrip('/')}/v1/connectDevtools"
        return urllib.parse.urlunparse((scheme, parsed.netloc, path, "", query, ""))


def _make_http(token: str | None) -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"})
    if token:
        s.headers["Authorization"] = f"Bearer {token}"
    return s


__all__ = [
    "BrowserPool",
    "BrowserPoolError",
    "DEFAULT_POOL_TOKEN",
    "DEFAULT_POOL_URL",
    "PoolLimits",
    "SessionInfo",
    "parse_limits",
    "parse_sessions",
]
