"""Partial -> importer relation and the link-resolution contexts it implies."""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from .config import EngineConfig
from .io_utils import read_text
from .markup import ImportStatement, apply_edits, find_imports
from .paths import relative_module_path, resolve_reference
from .scanner import Document

logger = logging.getLogger(__name__)

TransclusionMap = Mapping[Path, frozenset[Path]]


def references_partials(module: str, cfg: EngineConfig) -> bool:
    return cfg.partials_dir in module.split("/")


def import_target(stmt: ImportStatement, doc: Document, root: Path, cfg: EngineConfig) -> Path | None:
    if not references_partials(stmt.module, cfg):
        return None
    return resolve_reference(stmt.module, doc.directory, root, cfg.root_aliases)


def build_transclusion_map(
    documents: Iterable[Document], root: Path, cfg: EngineConfig
) -> TransclusionMap:
    """Map every imported partial to the set of regular documents importing it.

    Imports whose target is not a scanned partial add no edge. The returned
    mapping is read-only.
    """
    docs = list(documents)
    partials = {d.path for d in docs if d.is_partial}
    edges: dict[Path, set[Path]] = {}
    for doc in docs:
        if doc.is_partial:
            continue
        text = read_text(doc.path)
        if text is None:
            continue
        for stmt in find_imports(text):
            target = import_target(stmt, doc, root, cfg)
            if target is None or target not in partials:
                continue
            edges.setdefault(target, set()).add(doc.path)
    frozen = {path: frozenset(importers) for path, importers in sorted(edges.items())}
    logger.debug("Transclusion map: %d partial(s) with importers", len(frozen))
    return MappingProxyType(frozen)


def context_dirs(doc: Document, tmap: TransclusionMap) -> tuple[Path, ...]:
    dirs = {doc.directory}
    if doc.is_partial:
        dirs.update(importer.parent for importer in tmap.get(doc.path, ()))
    return tuple(sorted(dirs))


def orphan_partials(documents: Iterable[Document], tmap: TransclusionMap) -> list[Document]:
    return [d for d in documents if d.is_partial and d.path not in tmap]


def normalize_partial_imports(text: str, doc: Document, root: Path, cfg: EngineConfig) -> str:
    """Rewrite root-absolute partial imports relative to the importing document.

    Only imports whose target file exists are rewritten; relative imports are
    left alone, so a second pass is a no-op.
    """
    edits = []
    for stmt in find_imports(text):
        if not stmt.module.startswith("/"):
            continue
        target = import_target(stmt, doc, root, cfg)
        if target is None or not target.is_file():
            continue
        rel = relative_module_path(target, doc.directory)
        module_at = stmt.raw.rindex(stmt.module)
        raw = stmt.raw[:module_at] + rel + stmt.raw[module_at + len(stmt.module):]
        edits.append((stmt.start, stmt.end, raw))
    return apply_edits(text, edits) if edits else text
