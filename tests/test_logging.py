import asyncio
import json
import logging

from page_images.logging import add_listener, capture_events, jlog, logging_context, remove_listener, set_global_context


def test_jlog_emits_sorted_json_with_context(caplog):
    with caplog.at_level(logging.INFO, logger="page_images"):
        with logging_context(url="https://site.example/", skipped=None):
            jlog("info", event="extract_start", wait_until="load")
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "extract_start"
    assert payload["url"] == "https://site.example/"
    assert payload["level"] == "info"
    assert "skipped" not in payload
    assert "ts" in payload


def test_context_is_popped_after_block():
    with capture_events() as events:
        with logging_context(url="https://a/"):
            jlog("info", event="inside")
        jlog("info", event="outside")
    assert events[0]["url"] == "https://a/"
    assert "url" not in events[1]


def test_global_context_applies_to_every_record():
    set_global_context(app="page-images-test")
    with capture_events() as events:
        jlog("debug", event="x")
    assert events[0]["app"] == "page-images-test"


def test_listeners_can_be_removed():
    seen = []
    add_listener(seen.append)
    jlog("info", event="one")
    remove_listener(seen.append)
    remove_listener(seen.append)
    jlog("info", event="two")
    assert [e["event"] for e in seen] == ["one"]


def test_scoped_context_is_per_task():
    async def tagged(url, delay_s):
        with logging_context(url=url):
            await asyncio.sleep(delay_s)
            jlog("info", event="tagged")

    async def both():
        await asyncio.gather(tagged("https://a/", 0.05), tagged("https://b/", 0.01))

    with capture_events() as events:
        asyncio.run(both())
        jlog("info", event="after")
    assert [e["url"] for e in events if e["event"] == "tagged"] == ["https://b/", "https://a/"]
    assert "url" not in events[-1]


def test_nested_contexts_merge_and_unwind():
    with capture_events() as events:
        with logging_context(url="https://a/", phase="outer"):
            with logging_context(phase="inner"):
                jlog("info", event="inner")
            jlog("info", event="outer")
    assert (events[0]["url"], events[0]["phase"]) == ("https://a/", "inner")
    assert events[1]["phase"] == "outer"
