"""Whole-corpus pass: scan, build the transclusion map, then resolve each document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .comparisons import sanitize_comparisons
from .components import disable_components
from .config import EngineConfig
from .images import canonicalize_images
from .io_utils import read_text, write_text
from .links import LinkResolver
from .records import Category, RewriteRecord
from .scanner import Document, canonical_root, scan_corpus
from .transclusion import (
    TransclusionMap,
    build_transclusion_map,
    normalize_partial_imports,
    orphan_partials,
)

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    root: Path
    documents: list[Document]
    transclusion: TransclusionMap
    records: list[RewriteRecord] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)

    def by_category(self, category: Category) -> list[RewriteRecord]:
        return [r for r in self.records if r.category is category]


def process_document(
    text: str, doc: Document, root: Path, cfg: EngineConfig, resolver: LinkResolver
) -> tuple[str, list[RewriteRecord]]:
    """Apply every rewrite to one document's text; nothing is written here."""
    text = sanitize_comparisons(text)
    text = normalize_partial_imports(text, doc, root, cfg)
    text, image_records = canonicalize_images(text, doc.rel_path, cfg.image_prefix)
    text, component_records = disable_components(text, doc.rel_path, cfg)
    text, link_records = resolver.resolve_links(text, doc)
    return text, image_records + component_records + link_records


def run_corpus(root: Path, cfg: EngineConfig, *, dry_run: bool = False) -> RunResult:
    root = canonical_root(root)
    documents = scan_corpus(root, cfg)
    print(f"[docmedic] Found {len(documents)} file(s) to process under {root}")

    # The map must be complete before any document is resolved.
    tmap = build_transclusion_map(documents, root, cfg)
    if tmap:
        print(f"[docmedic] Found {len(tmap)} partial file(s) with imports")
    for orphan in orphan_partials(documents, tmap):
        logger.info("Partial %s has no importers; resolving against its own directory", orphan.rel_path)

    result = RunResult(root=root, documents=documents, transclusion=tmap)
    resolver = LinkResolver(root=root, cfg=cfg, tmap=tmap)
    for doc in documents:
        text = read_text(doc.path)
        if text is None:
            result.skipped_files.append(doc.rel_path)
            continue
        new_text, records = process_document(text, doc, root, cfg, resolver)
        result.records.extend(records)
        if new_text == text:
            continue
        if dry_run or write_text(doc.path, new_text):
            result.changed_files.append(doc.rel_path)
        else:
            result.skipped_files.append(doc.rel_path)
    return result
