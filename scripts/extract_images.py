#!/usr/bin/env python3
"""CLI shim for the page image extractor.

Keeps a script entrypoint for automation that executes
``scripts/extract_images.py`` directly; the implementation lives in
``page_images.cli``.
"""
from __future__ import annotations

from page_images.cli import main

if __name__ == "__main__":
    main()
