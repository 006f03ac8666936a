"""Audit records produced by the resolver."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import Any


class Category(str, enum.Enum):
    IMAGE = "image"
    COMPONENT = "component"
    BROKEN_LINK = "brokenLink"
    REPAIRED_LINK = "repairedLink"


@dataclass(frozen=True)
class RewriteRecord:
    """One rewrite decision.

    ``replacement`` is None when the reference was removed (a stripped link).
    ``text`` carries the visible link text for links, the image subpath for
    images, and the disabled identifier for components. ``detail`` holds
    category-specific extras such as the import kind and module path.
    """

    file: str
    category: Category
    original: str
    replacement: str | None
    text: str
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["category"] = self.category.value
        return out
