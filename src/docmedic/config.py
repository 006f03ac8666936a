"""Configuration loading, validation, hashing, and override utilities."""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_CANDIDATES = [
    Path("_maintainers") / "link-replacements.yaml",
    Path("link-replacements.yaml"),
]
SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "config.schema.json"

DEFAULTS: dict[str, Any] = {
    "replacements": {},
    "patterns": [],
    "repair_patterns": [],
    "content_dirs": ["."],
    "partials_dir": "_partials",
    "reserved_prefix": "_",
    "markdown_extensions": [".md", ".mdx"],
    "root_aliases": {},
    "image_prefix": "@site/static/img",
    "component_sources": ["@site/src/components/"],
    "constant_sources": ["@site/src/plugins/"],
    "logs_dir": "_maintainers/logs",
}

_REGEX_CHARS = re.compile(r"[?^${}()|\[\]\\]")


def load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML file must parse to an object: {path}")
    return data


def load_json(path: Path) -> dict[str, Any]:
    obj = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"JSON file must parse to an object: {path}")
    return obj


def validate_with_schema(instance: dict[str, Any], schema: dict[str, Any], name: str) -> None:
    try:
        from jsonschema import Draft7Validator  # type: ignore
    except Exception as exc:  # pragma: no cover - dependency issue path
        raise RuntimeError(
            "jsonschema is required for config validation. Install dependencies first."
        ) from exc

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if not errors:
        return

    lines = []
    for err in errors[:20]:
        location = "/".join(str(x) for x in err.path)
        if location:
            lines.append(f"{name}:{location}: {err.message}")
        else:
            lines.append(f"{name}: {err.message}")
    raise ValueError("Config validation failed:\n" + "\n".join(lines))


def stable_json_hash(payload: Any) -> str:
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def apply_dot_override(config: dict[str, Any], dot_key: str, value: Any) -> None:
    parts = dot_key.split(".")
    if not dot_key or not all(parts):
        raise ValueError("override key must not be empty")
    node: dict[str, Any] = config
    for part in parts[:-1]:
        if part not in node:
            node[part] = {}
        next_node = node[part]
        if not isinstance(next_node, dict):
            raise TypeError(
                f"Cannot apply override '{dot_key}': '{part}' is not a mapping in config."
            )
        node = next_node
    node[parts[-1]] = value


def apply_overrides(base_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base_config)
    for key in sorted(overrides.keys()):
        apply_dot_override(merged, key, overrides[key])
    return merged


def parse_override(spec: str) -> tuple[str, Any]:
    """Split a ``key=value`` CLI override; the value is parsed as YAML."""
    key, sep, raw = spec.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Override must look like key=value: {spec!r}")
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Override value for {key.strip()!r} is not valid YAML: {exc}") from exc
    return key.strip(), value


def find_config_path(project_root: Path) -> Path | None:
    for rel in CONFIG_CANDIDATES:
        candidate = project_root / rel
        if candidate.is_file():
            return candidate
    return None


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a replacement pattern the way maintainers write them.

    A plain string is a prefix match. Otherwise ``*`` becomes ``.*`` and a
    literal ``.+`` is kept as a regex quantifier; everything else that looks
    like regex syntax is escaped.
    """
    if "*" not in pattern and not _REGEX_CHARS.search(pattern) and not pattern.endswith(".+"):
        body = re.escape(pattern) + ".*"
    else:
        body = _REGEX_CHARS.sub(lambda m: "\\" + m.group(0), pattern)
        body = body.replace("*", ".*")
    return re.compile("^" + body)


@dataclass(frozen=True)
class LinkPattern:
    pattern: str
    replacement: str
    extract_path: bool = False
    description: str = ""
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", pattern_to_regex(self.pattern))

    def apply(self, target: str) -> str | None:
        if not self.regex.match(target):
            return None
        if not self.extract_path:
            return self.replacement
        # Cut at the literal prefix: everything before the first wildcard.
        base = self.pattern[:-2] if self.pattern.endswith(".+") else self.pattern
        base = base.split("*", 1)[0]
        return self.replacement + target[len(base):]


@dataclass(frozen=True)
class RepairPattern:
    regex: re.Pattern[str]
    replacement: str

    def apply(self, path: str) -> str | None:
        if not self.regex.search(path):
            return None
        return self.regex.sub(self.replacement, path, count=1)


def _compile_repair(pattern: str, source: Path | None) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        where = source or "<config>"
        raise ValueError(f"{where}: invalid repair pattern {pattern!r}: {exc}") from exc


# Known content migrations: tried in order after any configured repair_patterns.
BUILTIN_REPAIR_PATTERNS: tuple[RepairPattern, ...] = (
    RepairPattern(re.compile(r"^\.\./\.\./ethereum/concepts/(.+)$"), r"/services/concepts/\1"),
    RepairPattern(re.compile(r"^\.\./ethereum/concepts/(.+)$"), r"/services/concepts/\1"),
)


@dataclass(frozen=True)
class EngineConfig:
    replacements: dict[str, str]
    patterns: tuple[LinkPattern, ...]
    repair_patterns: tuple[RepairPattern, ...]
    content_dirs: tuple[str, ...]
    partials_dir: str
    reserved_prefix: str
    markdown_extensions: tuple[str, ...]
    root_aliases: dict[str, str]
    image_prefix: str
    component_sources: tuple[str, ...]
    constant_sources: tuple[str, ...]
    logs_dir: str
    source: Path | None = None
    config_hash: str = ""

    @classmethod
    def from_mapping(cls, raw: dict[str, Any], *, source: Path | None = None) -> "EngineConfig":
        merged = {**copy.deepcopy(DEFAULTS), **raw}
        patterns = tuple(
            LinkPattern(
                pattern=str(p["pattern"]),
                replacement=str(p["replacement"]),
                extract_path=bool(p.get("extractPath", False)),
                description=str(p.get("description", "")),
            )
            for p in merged["patterns"]
            if p.get("pattern") and p.get("replacement")
        )
        repairs = tuple(
            RepairPattern(_compile_repair(str(p["pattern"]), source), str(p["replacement"]))
            for p in merged["repair_patterns"]
        )
        return cls(
            replacements={str(k): str(v) for k, v in (merged["replacements"] or {}).items()},
            patterns=patterns,
            repair_patterns=repairs + BUILTIN_REPAIR_PATTERNS,
            content_dirs=tuple(str(x) for x in merged["content_dirs"]),
            partials_dir=str(merged["partials_dir"]),
            reserved_prefix=str(merged["reserved_prefix"]),
            markdown_extensions=tuple(str(x).lower() for x in merged["markdown_extensions"]),
            root_aliases={str(k): str(v) for k, v in (merged["root_aliases"] or {}).items()},
            image_prefix=str(merged["image_prefix"]).rstrip("/"),
            component_sources=tuple(str(x) for x in merged["component_sources"]),
            constant_sources=tuple(str(x) for x in merged["constant_sources"]),
            logs_dir=str(merged["logs_dir"]),
            source=source,
            config_hash=stable_json_hash(merged),
        )


def load_engine_config(
    project_root: Path,
    *,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> EngineConfig:
    path = config_path if config_path is not None else find_config_path(project_root)
    if path is None:
        logger.info("No link-replacements.yaml under %s; using defaults", project_root)
        raw: dict[str, Any] = {}
    else:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        raw = load_yaml(path)
    if overrides:
        raw = apply_overrides(raw, overrides)
    validate_with_schema(raw, load_json(SCHEMA_PATH), str(path or "<defaults>"))
    return EngineConfig.from_mapping(raw, source=path)
