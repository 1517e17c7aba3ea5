"""Image inventory extraction for web pages rendered in a remote browser."""

from .classify import classify_response, dedupe_images, is_image_url, mime_type_from_url
from .extract import extract_images_from_url
from .logging import capture_events, configure_logging, jlog, logging_context, set_global_context
from .models import UNKNOWN_MIME_TYPE, ImageRecord
from .pool import BrowserPool, BrowserPoolError, PoolLimits, SessionInfo
from .sessions import SESSION_KEEP_ALIVE_MS, get_browser
from .versioning import get_extractor_version

__all__ = [
    "BrowserPool",
    "BrowserPoolError",
    "ImageRecord",
    "PoolLimits",
    "SESSION_KEEP_ALIVE_MS",
    "SessionInfo",
    "UNKNOWN_MIME_TYPE",
    "capture_events",
    "classify_response",
    "configure_logging",
    "dedupe_images",
    "extract_images_from_url",
    "get_browser",
    "get_extractor_version",
    "is_image_url",
    "jlog",
    "logging_context",
    "mime_type_from_url",
    "set_global_context",
]
