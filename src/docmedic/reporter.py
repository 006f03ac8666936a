"""Maintainer audit logs and console summary."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from .config import EngineConfig
from .engine import RunResult
from .io_utils import utc_now_iso, write_json
from .records import Category, RewriteRecord

IMAGE_LOG = "image-path-fixes.log"
COMPONENT_LOG = "component-import-fixes.log"
BROKEN_LINK_LOG = "broken-links-removed.log"
REPAIR_LOG = "link-repairs.log"
SUMMARY_JSON = "summary.json"
MAX_EXAMPLES = 10


def _image_entry(r: RewriteRecord) -> str:
    return f"File: {r.file}\n  Original: {r.original}\n  New: {r.replacement}\n  Image: {r.text}\n"


def _component_entry(r: RewriteRecord) -> str:
    kind, _, path = r.detail.partition(" ")
    return (
        f"File: {r.file}\n  Type: {kind}\n  Name: {r.text}\n  Path: {path}\n"
        f"  Import: {r.original.strip()}\n"
    )


def _broken_entry(r: RewriteRecord) -> str:
    return f"File: {r.file}\n  Link Text: {r.text}\n  Broken Link: {r.original}\n"


def _repair_entry(r: RewriteRecord) -> str:
    return (
        f"File: {r.file}\n  Link Text: {r.text}\n  Original: {r.original}\n"
        f"  New: {r.replacement}\n  Via: {r.detail}\n"
    )


LOGS: list[tuple[Category, str, str, Callable[[RewriteRecord], str]]] = [
    (Category.IMAGE, IMAGE_LOG, "Image Path Fixes", _image_entry),
    (Category.COMPONENT, COMPONENT_LOG, "Component Import Fixes", _component_entry),
    (Category.BROKEN_LINK, BROKEN_LINK_LOG, "Broken Links Removed", _broken_entry),
    (Category.REPAIRED_LINK, REPAIR_LOG, "Link Repairs", _repair_entry),
]


def render_log(title: str, records: list[RewriteRecord], entry: Callable[[RewriteRecord], str]) -> str:
    body = "\n".join(entry(r) for r in records)
    return f"{title} ({len(records)} total)\n{'=' * 80}\n\n{body}"


def write_reports(result: RunResult, logs_dir: Path, cfg: EngineConfig | None = None) -> dict[str, Path]:
    """Regenerate every log file; a category with no records gets an empty log."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    for category, name, title, entry in LOGS:
        path = logs_dir / name
        path.write_text(render_log(title, result.by_category(category), entry), encoding="utf-8")
        written[category.value] = path

    summary = {
        "created_utc": utc_now_iso(),
        "root": str(result.root),
        "config_path": str(cfg.source) if cfg and cfg.source else None,
        "config_hash": cfg.config_hash if cfg else None,
        "documents": len(result.documents),
        "partials_with_importers": len(result.transclusion),
        "changed_files": sorted(result.changed_files),
        "skipped_files": sorted(result.skipped_files),
        "counts": {category.value: len(result.by_category(category)) for category, *_ in LOGS},
    }
    write_json(logs_dir / SUMMARY_JSON, summary)
    written["summary"] = logs_dir / SUMMARY_JSON
    return written


def summary_lines(result: RunResult, logs_dir: Path) -> list[str]:
    images = result.by_category(Category.IMAGE)
    components = result.by_category(Category.COMPONENT)
    broken = result.by_category(Category.BROKEN_LINK)
    repaired = result.by_category(Category.REPAIRED_LINK)

    lines: list[str] = []
    if images:
        lines.append(f"   Fixed {len(images)} image path(s)")
        lines.append(f"      Details written to {logs_dir / IMAGE_LOG}")
    if components:
        lines.append(f"   Commented out {len(components)} missing component import(s)")
        lines.append(f"      Details written to {logs_dir / COMPONENT_LOG}")
    if repaired:
        lines.append(f"   Repaired {len(repaired)} link(s)")
        lines.append(f"      Details written to {logs_dir / REPAIR_LOG}")
    if broken:
        lines.append(f"   Found and removed {len(broken)} broken link(s)")
        lines.append(f"      Details written to {logs_dir / BROKEN_LINK_LOG}")
        for r in broken[:MAX_EXAMPLES]:
            lines.append(f"      - {r.file}: [{r.text}]({r.original})")
        if len(broken) > MAX_EXAMPLES:
            lines.append(f"      ... and {len(broken) - MAX_EXAMPLES} more")
    if result.skipped_files:
        lines.append(f"   Skipped {len(result.skipped_files)} unreadable or unwritable file(s)")
    if not (images or components or broken or repaired):
        lines.append("   No transformations needed")
    return lines


def print_summary(result: RunResult, logs_dir: Path) -> None:
    print(f"[docmedic] Processed {len(result.documents)} file(s), rewrote {len(result.changed_files)}")
    for line in summary_lines(result, logs_dir):
        print(line)
