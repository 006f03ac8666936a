"""CLI for a full docmedic pass over a docs corpus."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_engine_config, parse_override
from .engine import run_corpus
from .reporter import print_summary, write_reports
from .scanner import CorpusRootMissingError


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Validate, repair or strip links, images and component references in a docs corpus."
    )
    p.add_argument("--docs_dir", default="docs", help="Corpus root (default: docs).")
    p.add_argument(
        "--project_root",
        default=".",
        help="Directory searched for link-replacements.yaml and holding the logs dir.",
    )
    p.add_argument("--config", default=None, help="Explicit config YAML; skips discovery.")
    p.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Dot-key config override, value parsed as YAML. May be provided multiple times.",
    )
    p.add_argument("--logs_dir", default=None, help="Where audit logs are written.")
    p.add_argument(
        "--dry_run",
        action="store_true",
        help="Report what would change without rewriting any document.",
    )
    p.add_argument("--verbose", action="store_true", help="Log every per-link decision.")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    project_root = Path(args.project_root).resolve()
    try:
        overrides = dict(parse_override(spec) for spec in args.overrides)
        cfg = load_engine_config(
            project_root,
            config_path=Path(args.config).resolve() if args.config else None,
            overrides=overrides,
        )
    except (OSError, TypeError, ValueError) as exc:
        print(f"[docmedic] config error: {exc}", file=sys.stderr)
        return 2

    docs_dir = Path(args.docs_dir)
    if not docs_dir.is_absolute():
        docs_dir = project_root / docs_dir
    try:
        result = run_corpus(docs_dir, cfg, dry_run=bool(args.dry_run))
    except CorpusRootMissingError as exc:
        print(f"[docmedic] {exc}", file=sys.stderr)
        return 2

    logs_dir = Path(args.logs_dir) if args.logs_dir else project_root / cfg.logs_dir
    write_reports(result, logs_dir.resolve(), cfg)
    print_summary(result, logs_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
