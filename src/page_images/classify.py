"""Response classification helpers for image extraction."""

from __future__ import annotations

import urllib.parse
from collections.abc import Iterable, Mapping

from .models import UNKNOWN_MIME_TYPE, ImageRecord

IMAGE_EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",
}
IMAGE_EXTENSIONS = tuple(IMAGE_EXTENSION_MIME_TYPES)


def _url_path(url: str) -> str:
    if url.startswith("data:"):
        return url
    try:
        return urllib.parse.urlparse(url).path or ""
    except ValueError:
        return url


def _extension(url: str) -> str | None:
    path = _url_path(url or "").lower()
    for ext in IMAGE_EXTENSIONS:
        if path.endswith(ext):
            return ext
    return None


def is_image_url(url: str) -> bool:
    return _extension(url) is not None


def mime_type_from_url(url: str) -> str | None:
    ext = _extension(url)
    if ext is None:
        return None
    return IMAGE_EXTENSION_MIME_TYPES[ext]


def _header(headers: Mapping[str, str] | None, name: str) -> str | None:
    if not headers:
        return None
    value = headers.get(name)
    if value is None:
        # Playwright lower-cases header names; other sources may not.
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_image_response(url: str, headers: Mapping[str, str] | None) -> bool:
    content_type = _header(headers, "content-type")
    if content_type and content_type.startswith("image"):
        return True
    return is_image_url(url)


def response_size(url: str, headers: Mapping[str, str] | None) -> int:
    """Byte size from content-length; ``data:`` URIs use their own length."""

    if url.startswith("data:"):
        return len(url)
    raw = _header(headers, "content-length")
    if raw is None:
        return 0
    try:
        size = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(size, 0)


def resolve_mime_type(url: str, headers: Mapping[str, str] | None) -> str:
    return _header(headers, "content-type") or mime_type_from_url(url) or UNKNOWN_MIME_TYPE


def classify_response(url: str, headers: Mapping[str, str] | None) -> ImageRecord | None:
    """Return a fresh undecoded record for image responses, else None."""

    if not url or not is_image_response(url, headers):
        return None
    return ImageRecord(
        src=url,
        size=response_size(url, headers),
        mime_type=resolve_mime_type(url, headers),
    )


def dedupe_images(images: Iterable[ImageRecord]) -> list[ImageRecord]:
    """Keep the first record for each (src, mime type) pair, in order."""

    seen: set[tuple[str, str]] = set()
    unique: list[ImageRecord] = []
    for image in images:
        if image.key in seen:
            continue
        seen.add(image.key)
        unique.append(image)
    return unique


__all__ = [
    "IMAGE_EXTENSIONS",
    "IMAGE_EXTENSION_MIME_TYPES",
    "classify_response",
    "dedupe_images",
    "is_image_response",
    "is_image_url",
    "mime_type_from_url",
    "resolve_mime_type",
    "response_size",
]
