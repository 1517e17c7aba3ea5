"""Data types produced by image extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

UNKNOWN_MIME_TYPE = "image/unknown"


@dataclass
class ImageRecord:
    """One image observed on the network while a page rendered.

    ``width``/``height`` stay 0 and ``decoded`` stays False unless the
    in-page decode step succeeded for this record.
    """

    src: str
    size: int
    mime_type: str
    width: int = 0
    height: int = 0
    decoded: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return self.src, self.mime_type

    def mark_decoded(self, width: Any, height: Any) -> None:
        self.width = _as_dimension(width)
        self.height = _as_dimension(height)
        self.decoded = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "src": self.src,
            "size": self.size,
            "mimeType": self.mime_type,
            "width": self.width,
            "height": self.height,
            "decoded": self.decoded,
        }


def _as_dimension(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


__all__ = ["ImageRecord", "UNKNOWN_MIME_TYPE"]
