"""Disable site-local component and constant imports and their usages.

Disabled text is wrapped in MDX comments instead of being deleted, so
maintainers can still see what was there. Tag matching closes on the nearest
``</Name>``; nested tags sharing the same name are not supported.

Constant usages are matched anywhere outside protected regions, not only
inside JSX expressions. A bare ``NAME`` in prose is rewritten as well and then
renders as the literal ``/* NAME - Constant not available */`` text.
"""

from __future__ import annotations

import re

from .config import EngineConfig
from .markup import apply_edits, find_imports, sub_unprotected
from .records import Category, RewriteRecord

COMPONENT_NOTE = "Component not available"
CONSTANT_NOTE = "Constant not available"

_ATTRS = r"""(?:[^<>"'{}]|"[^"]*"|'[^']*'|\{[^{}]*\})*?"""


def import_marker(raw: str) -> str:
    return "{/* DISABLED: " + _comment_safe(raw) + " */}"


def _comment_safe(raw: str) -> str:
    return raw.replace("*/", "*\\/")


def tag_pattern(name: str) -> re.Pattern[str]:
    n = re.escape(name)
    return re.compile(rf"<{n}(?=[\s/>]){_ATTRS}(?:/>|(?<!/)>[\s\S]*?</{n}\s*>)")


def constant_pattern(name: str) -> re.Pattern[str]:
    n = re.escape(name)
    return re.compile(rf"(?<![\w$.]){n}(?:\.[\w$]+)*(?![\w$])")


def _matches_source(module: str, sources: tuple[str, ...]) -> bool:
    return any(module.startswith(source) for source in sources)


def disable_components(text: str, file: str, cfg: EngineConfig) -> tuple[str, list[RewriteRecord]]:
    components: list[str] = []
    constants: list[str] = []
    edits = []
    records: list[RewriteRecord] = []
    for stmt in find_imports(text):
        if _matches_source(stmt.module, cfg.component_sources):
            kind, names = "component", stmt.identifiers
            components.extend(names)
        elif _matches_source(stmt.module, cfg.constant_sources):
            kind, names = "constant", stmt.identifiers
            constants.extend(names)
        else:
            continue
        marker = import_marker(stmt.raw)
        edits.append((stmt.start, stmt.end, marker))
        for name in names:
            records.append(
                RewriteRecord(
                    file=file,
                    category=Category.COMPONENT,
                    original=stmt.raw,
                    replacement=marker,
                    text=name,
                    detail=f"{kind} {stmt.module}",
                )
            )
    if not edits:
        return text, records

    text = apply_edits(text, edits)
    for name in components:
        text = sub_unprotected(
            tag_pattern(name),
            lambda m: "{/* " + _comment_safe(m.group(0)) + f" - {COMPONENT_NOTE} */}}",
            text,
        )
    for name in constants:
        text = sub_unprotected(
            constant_pattern(name),
            lambda m: f"/* {m.group(0)} - {CONSTANT_NOTE} */",
            text,
        )
    return text, records
