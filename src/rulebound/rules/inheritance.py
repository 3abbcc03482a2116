"""
RuleResolver -- composes a rule set from shared (extended) sources and the
project's own rules.

Resolution order:
  1. Each "extends" source, in declared order
  2. The local rules directory, always last

Every source is merged into a map keyed by rule id, so a later source replaces
an earlier rule with the same id wholesale. Because local rules merge last,
local customization always wins.

Usage:
    config = load_config(cwd)
    resolver = RuleResolver(config, cwd)
    rules = resolver.resolve()
    applicable = match_rules_by_context(rules, config.project_context, plan)
"""

import dataclasses
import importlib.util
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .loader import find_rules_dir, load_local_rules
from .models import Rule

if TYPE_CHECKING:
    from ..config import RuleboundConfig

logger = logging.getLogger(__name__)

INHERITED_PREFIX = "[inherited] "
PACKAGE_RULE_DIRS = (Path("rules"), Path(".rulebound") / "rules")

RuleLoader = Callable[[Path], list[Rule]]


def _package_dir(name: str) -> Path | None:
    """Directory of an importable Python package, if the name is one."""
    if not all(part.isidentifier() for part in name.split(".")):
        return None
    try:
        spec = importlib.util.find_spec(name)
    except (ImportError, ValueError):
        return None
    if spec is None or not spec.submodule_search_locations:
        return None
    return Path(next(iter(spec.submodule_search_locations)))


def resolve_extend_path(cwd: Path, extend_path: str) -> Path | None:
    """
    Locate an extends source.

    "./shared/rules", "../x", "/abs/path" -> relative to cwd (or absolute)
    "company_rules"                        -> <package dir>/rules or
                                              <package dir>/.rulebound/rules
    "@company/rules"                       -> node_modules/@company/rules/rules
                                              (or .rulebound/rules)
    """
    if extend_path.startswith((".", "/")):
        path = (cwd / extend_path).resolve()
        return path if path.is_dir() else None

    roots = [cwd / "node_modules" / extend_path]
    package_dir = _package_dir(extend_path)
    if package_dir is not None:
        roots.insert(0, package_dir)

    for root in roots:
        for sub in PACKAGE_RULE_DIRS:
            candidate = root / sub
            if candidate.is_dir():
                return candidate
    return None


class RuleResolver:
    """Loads and merges rule sets across inheritance boundaries."""

    def __init__(
        self,
        config: "RuleboundConfig",
        cwd: Path | str,
        loader: RuleLoader = load_local_rules,
    ):
        self._config = config
        self._cwd = Path(cwd)
        self._loader = loader

    def local_rules_dir(self, override_dir: Path | str | None = None) -> Path | None:
        if override_dir is not None:
            return Path(override_dir)
        if self._config.rules_dir:
            return self._cwd / self._config.rules_dir
        return find_rules_dir(self._cwd)

    def resolve(self, override_dir: Path | str | None = None) -> list[Rule]:
        """Return the merged rule set. Unresolvable extends are skipped."""
        merged: dict[str, Rule] = {}

        for extend_path in self._config.extends:
            source = resolve_extend_path(self._cwd, extend_path)
            if source is None:
                logger.debug(f"[Resolver] Skipping unresolvable extends: {extend_path}")
                continue
            inherited = self._loader(source)
            for rule in inherited:
                merged[rule.id] = dataclasses.replace(
                    rule, file_path=f"{INHERITED_PREFIX}{rule.file_path}"
                )
            logger.debug(f"[Resolver] {len(inherited)} rules inherited from {extend_path}")

        local_dir = self.local_rules_dir(override_dir)
        local: list[Rule] = self._loader(local_dir) if local_dir is not None else []
        overridden = sum(1 for rule in local if rule.id in merged)
        for rule in local:
            merged[rule.id] = rule

        logger.info(
            f"[Resolver] Resolved {len(merged)} rules "
            f"({len(local)} local, {overridden} overriding inherited)"
        )
        return list(merged.values())
