"""Corpus scanning and Partial/Regular classification."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config import EngineConfig

logger = logging.getLogger(__name__)


class CorpusRootMissingError(RuntimeError):
    """Raised when the corpus root is not a readable directory."""


class DocumentKind(str, enum.Enum):
    PARTIAL = "partial"
    REGULAR = "regular"


@dataclass(frozen=True)
class Document:
    path: Path
    kind: DocumentKind
    rel_path: str

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def is_partial(self) -> bool:
        return self.kind is DocumentKind.PARTIAL


def canonical_root(root: Path) -> Path:
    resolved = root.expanduser().resolve()
    if not resolved.is_dir():
        raise CorpusRootMissingError(f"Corpus root is not a directory: {root}")
    return resolved


def _iter_dir(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", directory, exc)
        return []


def _walk(directory: Path, in_partials: bool, cfg: EngineConfig, out: list[tuple[Path, bool]]) -> None:
    for entry in _iter_dir(directory):
        name = entry.name
        if name.startswith("."):
            continue
        if entry.is_dir():
            if entry.is_symlink():
                continue
            if name == cfg.partials_dir:
                _walk(entry, True, cfg, out)
            elif not (cfg.reserved_prefix and name.startswith(cfg.reserved_prefix)) or in_partials:
                _walk(entry, in_partials, cfg, out)
            continue
        if not entry.is_file():
            continue
        if entry.suffix.lower() not in cfg.markdown_extensions:
            continue
        if cfg.reserved_prefix and name.startswith(cfg.reserved_prefix) and not in_partials:
            continue
        out.append((entry, in_partials))


def scan_corpus(root: Path, cfg: EngineConfig) -> list[Document]:
    """Collect every Markdown/MDX document under the configured content dirs.

    Missing content directories are skipped with a warning; only a missing
    corpus root is fatal. Documents come back sorted by path, each exactly once.
    """
    root = canonical_root(root)
    found: list[tuple[Path, bool]] = []
    for rel_dir in cfg.content_dirs:
        start = Path(os.path.normpath(root / rel_dir))
        try:
            start.relative_to(root)
        except ValueError:
            logger.warning("Content directory %s is outside the corpus root; skipping", rel_dir)
            continue
        if not start.is_dir():
            logger.warning("Content directory %s not found under %s; skipping", rel_dir, root)
            continue
        rel_parts = start.relative_to(root).parts
        _walk(start, cfg.partials_dir in rel_parts, cfg, found)

    documents: dict[Path, Document] = {}
    for path, in_partials in found:
        if path in documents:
            continue
        kind = DocumentKind.PARTIAL if in_partials else DocumentKind.REGULAR
        documents[path] = Document(path=path, kind=kind, rel_path=path.relative_to(root).as_posix())
    return [documents[p] for p in sorted(documents)]
