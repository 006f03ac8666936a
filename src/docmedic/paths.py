"""Path helpers shared by the map builder and the link resolver."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping
from urllib.parse import unquote

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


def is_external(target: str) -> bool:
    return bool(_SCHEME.match(target)) or target.startswith("//")


def is_anchor(target: str) -> bool:
    return target.startswith("#")


def split_fragment(target: str) -> tuple[str, str]:
    """``"a/b.md#x"`` -> ``("a/b.md", "#x")``; the fragment keeps its ``#``."""
    path, sep, fragment = target.partition("#")
    return path, sep + fragment


def apply_root_alias(path: str, aliases: Mapping[str, str]) -> str:
    # Longest alias first so "/service/x/" wins over "/service/".
    for prefix in sorted(aliases, key=len, reverse=True):
        if path.startswith(prefix):
            return aliases[prefix] + path[len(prefix):]
    return path


def within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def resolve_reference(
    path: str, base_dir: Path, root: Path, aliases: Mapping[str, str] | None = None
) -> Path | None:
    """Resolve a fragment-free reference to a normalized absolute path.

    A leading ``/`` means the corpus root and ignores ``base_dir``. Returns
    None when the result escapes the corpus root.
    """
    path = unquote(path)
    if path.startswith("/"):
        path = apply_root_alias(path, aliases or {})
        candidate = root / path.lstrip("/")
    else:
        candidate = base_dir / path
    resolved = Path(os.path.normpath(candidate))
    if not within(resolved, root):
        return None
    return resolved


def exists_with_extensions(candidate: Path, raw: str, extensions: tuple[str, ...]) -> bool:
    if candidate.exists():
        return True
    if Path(raw.rstrip("/")).suffix:
        return False
    return any(candidate.with_name(candidate.name + ext).is_file() for ext in extensions)


def relative_module_path(target: Path, from_dir: Path) -> str:
    rel = os.path.relpath(target, from_dir).replace(os.sep, "/")
    if not rel.startswith("."):
        rel = "./" + rel
    return rel
