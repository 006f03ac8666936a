"""Link validity, repair and stripping.

Every candidate link (not external, not anchor-only) ends in one of three
states: left as is because it resolves, rewritten to a path that resolves,
or replaced by its visible text. A link resolves when its target exists
relative to at least one context directory of the document; partials get
the directories of all their importers as extra contexts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from .config import EngineConfig
from .markup import apply_edits, find_links
from .paths import (
    exists_with_extensions,
    is_anchor,
    is_external,
    resolve_reference,
    split_fragment,
)
from .records import Category, RewriteRecord
from .scanner import Document
from .transclusion import TransclusionMap, context_dirs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkResolver:
    root: Path
    cfg: EngineConfig
    tmap: TransclusionMap

    def target_exists(self, target: str, context: Path) -> bool:
        path, _ = split_fragment(target)
        path = path.split("?", 1)[0]
        if not path:
            return True
        exts = self.cfg.markdown_extensions
        resolved = resolve_reference(path, context, self.root, self.cfg.root_aliases)
        if resolved is not None and exists_with_extensions(resolved, path, exts):
            return True
        if path.startswith("../"):
            name = Path(unquote(path).rstrip("/")).name
            if name and name != "..":
                return exists_with_extensions(context / name, name, exts)
        return False

    def is_valid(self, target: str, contexts: tuple[Path, ...]) -> bool:
        return any(self.target_exists(target, ctx) for ctx in contexts)

    def configured_replacement(self, target: str) -> str | None:
        for pattern in self.cfg.patterns:
            replaced = pattern.apply(target)
            if replaced is not None:
                return replaced
        table = self.cfg.replacements
        with_slash = target if target.startswith("/") else "/" + target
        without_slash = target.lstrip("/")
        for key in (target, with_slash, without_slash):
            if key in table:
                return table[key]
        return None

    def repair(self, target: str, contexts: tuple[Path, ...]) -> str | None:
        path, fragment = split_fragment(target)
        for rule in self.cfg.repair_patterns:
            candidate = rule.apply(path)
            if candidate is None or candidate == path:
                continue
            if self.is_valid(candidate, contexts):
                return candidate + fragment
        return None

    def resolve_links(self, text: str, doc: Document) -> tuple[str, list[RewriteRecord]]:
        records: list[RewriteRecord] = []
        out = self._resolve(text, doc, context_dirs(doc, self.tmap), records)
        return out, records

    def _resolve(
        self,
        text: str,
        doc: Document,
        contexts: tuple[Path, ...],
        records: list[RewriteRecord],
    ) -> str:
        edits = []
        for link in find_links(text):
            target = link.target
            # Link text may itself hold link markup; every inner link gets its own verdict.
            inner = self._resolve(link.text, doc, contexts, records) if "[" in link.text else link.text
            if is_external(target) or is_anchor(target):
                if inner != link.text:
                    edits.append((link.start, link.end, link.render(target, inner)))
                continue

            replaced = self.configured_replacement(target)
            if replaced is not None and replaced != target and (
                is_external(replaced) or is_anchor(replaced) or self.is_valid(replaced, contexts)
            ):
                edits.append((link.start, link.end, link.render(replaced, inner)))
                records.append(self._repaired(doc, link.text, target, replaced, "replacement"))
                continue
            if self.is_valid(target, contexts):
                if inner != link.text:
                    edits.append((link.start, link.end, link.render(target, inner)))
                continue

            fixed = self.repair(target, contexts)
            if fixed is not None:
                edits.append((link.start, link.end, link.render(fixed, inner)))
                records.append(self._repaired(doc, link.text, target, fixed, "repair pattern"))
                continue

            edits.append((link.start, link.end, inner))
            records.append(
                RewriteRecord(
                    file=doc.rel_path,
                    category=Category.BROKEN_LINK,
                    original=target,
                    replacement=None,
                    text=link.text,
                )
            )
            logger.debug("%s: removed broken link %s", doc.rel_path, target)
        return apply_edits(text, edits) if edits else text

    def _repaired(self, doc: Document, text: str, original: str, new: str, how: str) -> RewriteRecord:
        logger.debug("%s: %s %s -> %s", doc.rel_path, how, original, new)
        return RewriteRecord(
            file=doc.rel_path,
            category=Category.REPAIRED_LINK,
            original=original,
            replacement=new,
            text=text,
            detail=how,
        )
