"""docmedic: link, image and component integrity for Markdown/MDX corpora."""

from __future__ import annotations

__all__ = [
    "comparisons",
    "components",
    "config",
    "engine",
    "images",
    "io_utils",
    "links",
    "markup",
    "paths",
    "records",
    "reporter",
    "run",
    "scanner",
    "transclusion",
]
