import asyncio

import pytest
import requests

from page_images.pool import BrowserPool, BrowserPoolError, parse_limits, parse_sessions


class FakeResp:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttp:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        resp = self.responses[url]
        if isinstance(resp, Exception):
            raise resp
        return resp


BASE = "https://browser.example.workers.dev"


def test_parse_sessions_marks_idle_sessions():
    sessions = parse_sessions(
        {
            "sessions": [
                {"sessionId": "a", "startTime": 1},
                {"sessionId": "b", "connectionId": "c1", "connectionStartTime": 2},
                {"connectionId": "orphan"},
            ]
        }
    )
    assert [s.session_id for s in sessions] == ["a", "b"]
    assert sessions[0].is_idle
    assert not sessions[1].is_idle


def test_parse_sessions_rejects_malformed_payload():
    with pytest.raises(BrowserPoolError):
        parse_sessions(["a"])
    with pytest.raises(BrowserPoolError):
        parse_sessions({"sessions": None})


def test_parse_limits_collects_active_ids_in_order():
    limits = parse_limits(
        {
            "activeSessions": [{"id": "x"}, {"id": "y"}, {}],
            "maxConcurrentSessions": 2,
            "allowedBrowserAcquisitions": 0,
            "timeUntilNextAllowedBrowserAcquisition": 1500,
        }
    )
    assert limits.active_sessions == ["x", "y"]
    assert limits.max_concurrent_sessions == 2
    assert limits.time_until_next_allowed_browser_acquisition == 1500


def test_parse_limits_without_active_sessions():
    assert parse_limits({}).active_sessions == []


def test_list_sessions_goes_through_http():
    http = FakeHttp({f"{BASE}/v1/sessions": FakeResp(payload={"sessions": [{"sessionId": "s1"}]})})
    pool = BrowserPool(BASE + "/", http=http, timeout_s=3)
    sessions = asyncio.run(pool.list_sessions())
    assert [s.session_id for s in sessions] == ["s1"]
    assert http.calls == [(f"{BASE}/v1/sessions", None, 3)]


def test_acquire_passes_keep_alive_and_returns_session_id():
    http = FakeHttp({f"{BASE}/v1/acquire": FakeResp(payload={"sessionId": "new-1"})})
    pool = BrowserPool(BASE, http=http)
    assert asyncio.run(pool.acquire(600_000)) == "new-1"
    assert http.calls[0][1] == {"keep_alive": 600_000}


def test_acquire_without_session_id_raises():
    http = FakeHttp({f"{BASE}/v1/acquire": FakeResp(payload={})})
    with pytest.raises(BrowserPoolError):
        asyncio.run(BrowserPool(BASE, http=http).acquire(1))


def test_error_status_raises_with_status_code():
    http = FakeHttp({f"{BASE}/v1/limits": FakeResp(status_code=429, text="rate limited")})
    with pytest.raises(BrowserPoolError) as excinfo:
        asyncio.run(BrowserPool(BASE, http=http).limits())
    assert excinfo.value.status_code == 429


def test_transport_error_and_bad_json_become_pool_errors():
    http = FakeHttp(
        {
            f"{BASE}/v1/sessions": requests.ConnectionError("refused"),
            f"{BASE}/v1/limits": FakeResp(payload=ValueError("no json")),
        }
    )
    pool = BrowserPool(BASE, http=http)
    with pytest.raises(BrowserPoolError):
        asyncio.run(pool.list_sessions())
    with pytest.raises(BrowserPoolError):
        asyncio.run(pool.limits())


def test_devtools_url_uses_websocket_scheme():
    assert BrowserPool("https://pool.example/base").devtools_url("abc") == (
        "wss://pool.example/base/v1/connectDevtools?browser_session=abc"
    )
    assert BrowserPool("http://127.0.0.1:8787").devtools_url("abc") == (
        "ws://127.0.0.1:8787/v1/connectDevtools?browser_session=abc"
    )


def test_token_sets_authorization_headers():
    pool = BrowserPool(BASE, token="t0k")
    assert pool.http.headers["Authorization"] == "Bearer t0k"
    assert pool.connect_headers == {"Authorization": "Bearer t0k"}
    assert BrowserPool(BASE).connect_headers == {}


def test_base_url_is_required():
    with pytest.raises(ValueError):
        BrowserPool("")
