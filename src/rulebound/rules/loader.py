"""
Rule loader -- reads markdown rule files with YAML front matter.

Layout of a rules directory:

    rules/
      security/
        no-secrets.md        -> id "security.no-secrets", category "security"
      testing/coverage.md    -> id "testing.coverage"

A rule file:

    ---
    title: No Hardcoded Secrets
    severity: error
    modality: must
    tags: [secrets, api-keys]
    stack: [python]
    ---
    Never hardcode API keys, passwords, or tokens in source code.
    - Use environment variables for all secrets
"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .models import DEFAULT_MODALITY, DEFAULT_SEVERITY, Rule

logger = logging.getLogger(__name__)

FRONT_MATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n?(.*)$", re.DOTALL)

RULES_DIR_CANDIDATES = (
    Path(".rulebound") / "rules",
    Path("rules"),
    Path("examples") / "rules",
)


def parse_front_matter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a rule file into (metadata, body). Malformed metadata yields {}."""
    match = FRONT_MATTER.match(raw)
    if not match:
        return {}, raw.strip()

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        logger.warning(f"[RuleLoader] Ignoring malformed front matter: {e}")
        return {}, raw.strip()

    if not isinstance(meta, dict):
        return {}, match.group(2).strip()
    return meta, match.group(2).strip()


def _as_list(value: Any) -> tuple[str, ...]:
    """Accept a YAML list or a comma-separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.strip().strip("[]").split(",")
    elif isinstance(value, (list, tuple, set)):
        items = [str(v) for v in value]
    else:
        items = [str(value)]
    return tuple(item.strip().strip("\"'") for item in items if item.strip())


def _as_str(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value).strip()


def rule_id_from_path(rel_path: Path) -> str:
    """security/no-secrets.md -> security.no-secrets"""
    return ".".join(rel_path.with_suffix("").parts)


def build_rule(meta: dict[str, Any], body: str, rel_path: Path) -> Rule:
    """Normalize front-matter metadata into a Rule."""
    default_category = rel_path.parts[0] if len(rel_path.parts) > 1 else "general"
    return Rule(
        id=rule_id_from_path(rel_path),
        title=_as_str(meta.get("title"), rel_path.with_suffix("").as_posix()),
        content=body,
        category=_as_str(meta.get("category"), default_category),
        tags=_as_list(meta.get("tags")),
        severity=_as_str(meta.get("severity"), DEFAULT_SEVERITY).lower(),
        modality=_as_str(meta.get("modality"), DEFAULT_MODALITY).lower(),
        stack=_as_list(meta.get("stack")),
        scope=_as_list(meta.get("scope")),
        team=_as_list(meta.get("team")),
        change_types=_as_list(meta.get("changeTypes", meta.get("change_types"))),
        file_path=rel_path.as_posix(),
    )


def load_local_rules(rules_dir: Path | str) -> list[Rule]:
    """Load every *.md rule under rules_dir (recursively, sorted by path)."""
    root = Path(rules_dir)
    if not root.is_dir():
        logger.debug(f"[RuleLoader] Not a directory: {root}")
        return []

    rules = []
    for path in sorted(root.rglob("*.md")):
        rel_path = path.relative_to(root)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"[RuleLoader] Could not read {rel_path}: {e}")
            continue
        meta, body = parse_front_matter(raw)
        rules.append(build_rule(meta, body, rel_path))

    logger.debug(f"[RuleLoader] Loaded {len(rules)} rules from {root}")
    return rules


def find_rules_dir(cwd: Path | str) -> Path | None:
    """First existing rules directory under cwd, or None."""
    base = Path(cwd)
    for candidate in RULES_DIR_CANDIDATES:
        path = base / candidate
        if path.is_dir():
            return path
    return None


def filter_rules(
    rules: list[Rule],
    title: str | None = None,
    category: str | None = None,
    tags: str | None = None,
    task: str | None = None,
) -> list[Rule]:
    """
    Narrow a rule list for lookups.

    Args:
        title: Substring matched against title and content.
        category: Exact category (case-insensitive).
        tags: Comma-separated tags; a rule matches if it has any of them.
        task: Free text; a rule matches if its text contains any task word
              longer than 3 chars.
    """
    filtered = list(rules)

    if title:
        q = title.lower()
        filtered = [r for r in filtered if q in r.title.lower() or q in r.content.lower()]

    if category:
        cat = category.lower()
        filtered = [r for r in filtered if r.category.lower() == cat]

    if tags:
        wanted = {t.strip().lower() for t in tags.split(",") if t.strip()}
        filtered = [r for r in filtered if wanted & {t.lower() for t in r.tags}]

    if task:
        task_words = [w for w in task.lower().split() if len(w) > 3]
        filtered = [
            r for r in filtered
            if any(word in r.searchable_text.lower() for word in task_words)
        ]

    return filtered
