"""Tool version resolution helpers."""

from __future__ import annotations

import os

TOOL_NAME = "page-images"
TOOL_VERSION = "2026-10-17.1"


def get_extractor_version(tool_name: str = TOOL_NAME, tool_version: str = TOOL_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("PAGE_IMAGES_VERSION", f"{tool_name}:{tool_version}")


__all__ = ["TOOL_NAME", "TOOL_VERSION", "get_extractor_version"]
