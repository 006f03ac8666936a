"""Located references inside Markdown/MDX text.

Documents stay raw text. Each reference found in them (link, image, import,
component usage) carries its ``[start, end)`` span so a rewrite can replace
it in place without touching anything around it.

Some regions are never references: fenced code blocks, inline code, HTML
comments and MDX ``{/* ... */}`` comments, plus the markers this package
writes when it disables a constant. Finders skip any match that starts in
one of those regions.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

_FENCE_OPEN = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})")
_INLINE_PROTECTED = re.compile(
    r"""
    (?P<comment>\{/\*[\s\S]*?\*/\})
    | (?P<html_comment><!--[\s\S]*?-->)
    | (?P<constant>/\*\s*[\w$.]+\s+-\s+Constant\ not\ available\s*\*/)
    | (?P<code>(?<!`)(?P<ticks>`+)(?!`)[^\n]*?(?<!`)(?P=ticks)(?!`))
    """,
    re.VERBOSE,
)

LINK_RE = re.compile(
    r"""
    (?<![!\\])\[
    (?P<text>(?:[^\[\]\n]|\n(?!\s*\n)|\[[^\[\]]*\])+)
    \]\(
    (?P<target>[^()\s<>]+)
    (?P<title>\s+(?:"[^"]*"|'[^']*'))?
    \)
    """,
    re.VERBOSE,
)

IMPORT_RE = re.compile(
    r"""
    ^import\s+
    (?P<clause>[\w$]+(?:\s*,\s*\{[^}]*\})?|\{[^}]*\})
    \s+from\s+
    (?P<quote>["'])(?P<module>[^"'\n]+)(?P=quote)
    [ \t]*;?
    """,
    re.VERBOSE | re.MULTILINE,
)

_IMAGE_TAIL = r"(?:\.\./)+images/(?P<path>[^\"'\s)]+)"
IMAGE_ATTRIBUTE_RE = re.compile(
    r"src=\{\s*require\((?P<quote>[\"'])" + _IMAGE_TAIL + r"(?P=quote)\)\.default\s*\}"
)
IMAGE_REQUIRE_RE = re.compile(r"require\((?P<quote>[\"'])" + _IMAGE_TAIL + r"(?P=quote)\)")
IMAGE_MARKDOWN_RE = re.compile(
    r"!\[(?P<alt>[^\]\n]*)\]\(" + _IMAGE_TAIL + r"(?P<title>\s+\"[^\"]*\")?\)"
)


@dataclass(frozen=True)
class Span:
    start: int
    end: int


@dataclass(frozen=True)
class Link:
    start: int
    end: int
    text: str
    target: str
    title: str = ""

    def render(self, target: str, text: str | None = None) -> str:
        return f"[{self.text if text is None else text}]({target}{self.title})"


@dataclass(frozen=True)
class Image:
    start: int
    end: int
    raw: str
    path: str
    syntax: str  # "attribute" | "require" | "markdown"
    alt: str = ""
    title: str = ""


@dataclass(frozen=True)
class ImportStatement:
    start: int
    end: int
    raw: str
    module: str
    default: str | None
    named: tuple[str, ...]

    @property
    def identifiers(self) -> tuple[str, ...]:
        names = (self.default,) if self.default else ()
        return names + self.named


@dataclass(frozen=True)
class ComponentUsage:
    start: int
    end: int
    raw: str
    name: str


class ProtectedRegions:
    def __init__(self, spans: Iterable[Span]) -> None:
        ordered = sorted(spans, key=lambda s: s.start)
        self._starts = [s.start for s in ordered]
        self._ends = [s.end for s in ordered]

    def covers(self, pos: int) -> bool:
        idx = bisect.bisect_right(self._starts, pos) - 1
        return idx >= 0 and pos < self._ends[idx]

    def __len__(self) -> int:
        return len(self._starts)


def _fence_spans(text: str) -> list[Span]:
    spans: list[Span] = []
    offset = 0
    open_start: int | None = None
    fence = ""
    for line in text.splitlines(keepends=True):
        m = _FENCE_OPEN.match(line)
        if open_start is None:
            if m:
                open_start = offset
                fence = m.group(1)
        elif m and m.group(1)[0] == fence[0] and len(m.group(1)) >= len(fence) and not line.strip().strip(fence[0]):
            spans.append(Span(open_start, offset + len(line)))
            open_start = None
        offset += len(line)
    if open_start is not None:
        spans.append(Span(open_start, len(text)))
    return spans


def protected_regions(text: str) -> ProtectedRegions:
    fences = _fence_spans(text)
    fence_regions = ProtectedRegions(fences)
    spans = list(fences)
    for m in _INLINE_PROTECTED.finditer(text):
        if not fence_regions.covers(m.start()):
            spans.append(Span(m.start(), m.end()))
    return ProtectedRegions(_merge(spans))


def _merge(spans: list[Span]) -> list[Span]:
    merged: list[Span] = []
    for span in sorted(spans, key=lambda s: s.start):
        if merged and span.start < merged[-1].end:
            last = merged[-1]
            merged[-1] = Span(last.start, max(last.end, span.end))
        else:
            merged.append(span)
    return merged


def iter_unprotected(
    pattern: re.Pattern[str], text: str, regions: ProtectedRegions | None = None
) -> Iterator[re.Match[str]]:
    regions = regions if regions is not None else protected_regions(text)
    for m in pattern.finditer(text):
        if not regions.covers(m.start()):
            yield m


def sub_unprotected(
    pattern: re.Pattern[str],
    repl: Callable[[re.Match[str]], str],
    text: str,
    regions: ProtectedRegions | None = None,
) -> str:
    regions = regions if regions is not None else protected_regions(text)

    def _guarded(m: re.Match[str]) -> str:
        if regions.covers(m.start()):
            return m.group(0)
        return repl(m)

    return pattern.sub(_guarded, text)


def apply_edits(text: str, edits: Iterable[tuple[int, int, str]]) -> str:
    """Replace non-overlapping ``(start, end, replacement)`` spans."""
    out: list[str] = []
    cursor = 0
    for start, end, replacement in sorted(edits, key=lambda e: e[0]):
        if start < cursor:
            raise ValueError(f"Overlapping edit at offset {start}")
        out.append(text[cursor:start])
        out.append(replacement)
        cursor = end
    out.append(text[cursor:])
    return "".join(out)


def find_links(text: str, regions: ProtectedRegions | None = None) -> list[Link]:
    return [
        Link(
            start=m.start(),
            end=m.end(),
            text=m.group("text"),
            target=m.group("target"),
            title=m.group("title") or "",
        )
        for m in iter_unprotected(LINK_RE, text, regions)
    ]


def _parse_clause(clause: str) -> tuple[str | None, tuple[str, ...]]:
    default: str | None = None
    named: list[str] = []
    head, _, rest = clause.partition("{")
    head = head.strip().rstrip(",").strip()
    if head:
        default = head
    for item in rest.rstrip("}").split(","):
        item = item.strip().rstrip("}").strip()
        if not item:
            continue
        # "A as B" binds B locally
        named.append(item.split(" as ")[-1].strip())
    return default, tuple(named)


def find_imports(text: str, regions: ProtectedRegions | None = None) -> list[ImportStatement]:
    found = []
    for m in iter_unprotected(IMPORT_RE, text, regions):
        default, named = _parse_clause(m.group("clause"))
        found.append(
            ImportStatement(
                start=m.start(),
                end=m.end(),
                raw=m.group(0),
                module=m.group("module"),
                default=default,
                named=named,
            )
        )
    return found


def find_images(text: str, regions: ProtectedRegions | None = None) -> list[Image]:
    """Find ``../images/`` references in all three surface syntaxes.

    ``require(...)`` inside an attribute belongs to the attribute match.
    """
    regions = regions if regions is not None else protected_regions(text)
    found: list[Image] = []
    taken: list[Span] = []

    def _overlaps(m: re.Match[str]) -> bool:
        return any(m.start() < s.end and s.start < m.end() for s in taken)

    for syntax, pattern in (
        ("attribute", IMAGE_ATTRIBUTE_RE),
        ("require", IMAGE_REQUIRE_RE),
        ("markdown", IMAGE_MARKDOWN_RE),
    ):
        for m in iter_unprotected(pattern, text, regions):
            if _overlaps(m):
                continue
            alt = title = ""
            if syntax == "markdown":
                alt = m.group("alt")
                title = (m.group("title") or "").strip()[1:-1]
            found.append(Image(m.start(), m.end(), m.group(0), m.group("path"), syntax, alt, title))
        taken = [Span(i.start, i.end) for i in found]
    return sorted(found, key=lambda i: i.start)
