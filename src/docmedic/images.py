"""Canonicalize ``../images/`` references to site-relative image paths.

The subpath below ``images/`` is kept, so ``../images/x/y.png`` and
``../../images/x/y.png`` both become ``<image_prefix>/x/y.png``.
"""

from __future__ import annotations

from .markup import Image, apply_edits, find_images
from .records import Category, RewriteRecord


def canonical_image(image: Image, prefix: str) -> str:
    target = f"{prefix}/{image.path}"
    if image.syntax == "attribute":
        return f"src={{require('{target}').default}}"
    if image.syntax == "require":
        return f"require('{target}')"
    attrs = f'alt="{_attr(image.alt)}"'
    if image.title:
        attrs += f' title="{_attr(image.title)}"'
    return f"<img src={{require('{target}').default}} {attrs} />"


def _attr(value: str) -> str:
    return value.replace('"', "&quot;")


def canonicalize_images(text: str, file: str, prefix: str) -> tuple[str, list[RewriteRecord]]:
    edits = []
    records = []
    for image in find_images(text):
        new = canonical_image(image, prefix)
        edits.append((image.start, image.end, new))
        records.append(
            RewriteRecord(
                file=file,
                category=Category.IMAGE,
                original=image.raw,
                replacement=new,
                text=image.path,
                detail=image.syntax,
            )
        )
    if not edits:
        return text, records
    return apply_edits(text, edits), records
