"""Structured event logging for browser acquisition and image extraction.

Every decision point emits one JSON record through :func:`jlog`. Besides the
``page_images`` logger, records are handed to any registered listeners so a
caller can tell which acquisition path produced its browser (or why none did)
without parsing log output.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "page_images"
_configured = False
_base_context: dict[str, Any] = {}
# Per-task scope so concurrent extractions keep their own fields.
_scoped_context: ContextVar[tuple[tuple[str, Any], ...]] = ContextVar("page_images_log_context", default=())
_listeners: list[Callable[[dict[str, Any]], None]] = []

EventListener = Callable[[dict[str, Any]], None]


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the global logging formatter once."""

    global _configured
    if _configured:
        return
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def set_global_context(**fields: Any) -> None:
    """Add persistent fields (app name, version) to every structured record."""

    _base_context.update({k: v for k, v in fields.items() if v is not None})


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Scope extra fields, e.g. the target URL, to the enclosed block."""

    ctx = tuple((k, v) for k, v in fields.items() if v is not None)
    token = _scoped_context.set(_scoped_context.get() + ctx)
    try:
        yield
    finally:
        _scoped_context.reset(token)


def add_listener(listener: EventListener) -> None:
    _listeners.append(listener)


def remove_listener(listener: EventListener) -> None:
    try:
        _listeners.remove(listener)
    except ValueError:
        pass


@contextmanager
def capture_events() -> Iterator[list[dict[str, Any]]]:
    """Collect every record emitted inside the block into a list."""

    events: list[dict[str, Any]] = []
    add_listener(events.append)
    try:
        yield events
    finally:
        remove_listener(events.append)


def _merged_context() -> dict[str, Any]:
    merged: dict[str, Any] = {}
    merged.update(_base_context)
    merged.update(_scoped_context.get())
    return merged


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def jlog(level: str, /, **fields: Any) -> None:
    """Emit a structured JSON record and notify listeners."""

    record = {"ts": _utcnow_iso(), "level": level.lower(), **_merged_context(), **fields}
    log = logging.getLogger(_LOGGER_NAME)
    getattr(log, level.lower())(json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))
    for listener in list(_listeners):
        try:
            listener(record)
        except Exception:  # pragma: no cover - logging only
            log.exception("event listener failed")


__all__ = [
    "EventListener",
    "add_listener",
    "capture_events",
    "configure_logging",
    "jlog",
    "logging_context",
    "remove_listener",
    "set_global_context",
]
