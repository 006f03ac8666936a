"""Keep ``<=`` and ``>=`` in prose from being parsed as JSX.

MDX reads a bare ``<`` in running text as the start of a tag, and earlier
tooling escaped such text as ``&lt;``/``&gt;`` even inside real tags. This
pass undoes entity escaping inside tags and puts comparisons followed by a
number, such as ``must be <= 63``, in inline code. Code and comments are
left alone, and already-wrapped operators do not match again.
"""

from __future__ import annotations

import re

from .markup import protected_regions, sub_unprotected

_CLOSING_TAG_ENTITY = re.compile(r"&lt;/")
_SELF_CLOSING_ENTITY = re.compile(r"/&gt;")
_TAG = re.compile(r"<[^>]*>")
_ENTITY_BEFORE_TAG = re.compile(r"&gt;(\s*\n\s*<)")
# An operator already escaped as a JSX expression is folded into the same form.
_COMPARISON = re.compile(r"(\w+\s+)(?:\{`(<=|>=)`\}|(<=|>=))(\s+\d+)")
_INDENTED = re.compile(r"^[ \t]{4,}")
_TAG_START = re.compile(r"<[a-zA-Z]")
_MARKUP_HINTS = ("class=", "src=", "alt=", "className=", "/>", "</")


def restore_tag_entities(text: str) -> str:
    text = sub_unprotected(_CLOSING_TAG_ENTITY, lambda m: "</", text)
    text = sub_unprotected(_SELF_CLOSING_ENTITY, lambda m: "/>", text)
    text = sub_unprotected(
        _TAG,
        lambda m: m.group(0).replace("&gt;", ">").replace("&lt;", "<"),
        text,
    )
    return sub_unprotected(_ENTITY_BEFORE_TAG, lambda m: ">" + m.group(1), text)


def _skip_line(line: str) -> bool:
    if "<" in line and ">" in line:
        if any(hint in line for hint in _MARKUP_HINTS) or _TAG_START.search(line):
            return True
    return line.strip().startswith("```") or bool(_INDENTED.match(line))


def _wrapped(m: re.Match[str], protected: bool) -> str:
    if protected:
        return m.group(0)
    operator = m.group(2) or m.group(3)
    return f"{m.group(1)}`{operator}`{m.group(4)}"


def wrap_comparisons(text: str) -> str:
    regions = protected_regions(text)
    out: list[str] = []
    offset = 0
    for line in text.splitlines(keepends=True):
        start = offset
        offset += len(line)
        if _skip_line(line):
            out.append(line)
            continue
        out.append(_COMPARISON.sub(lambda m: _wrapped(m, regions.covers(start + m.end(1))), line))
    return "".join(out)


def sanitize_comparisons(text: str) -> str:
    return wrap_comparisons(restore_tag_entities(text))
