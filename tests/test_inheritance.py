"""RuleResolver -- extends sources first, local rules last, local wins."""

from pathlib import Path

from rulebound.config import RuleboundConfig
from rulebound.rules.inheritance import INHERITED_PREFIX, RuleResolver, resolve_extend_path


def _rule_file(root: Path, rel: str, title: str) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\ntitle: {title}\n---\nBody of {title}", encoding="utf-8")


class TestResolveExtendPath:
    def test_relative_path(self, tmp_path):
        (tmp_path / "shared").mkdir()
        assert resolve_extend_path(tmp_path, "./shared") == (tmp_path / "shared").resolve()

    def test_node_modules_package(self, tmp_path):
        target = tmp_path / "node_modules" / "@acme" / "rules" / "rules"
        target.mkdir(parents=True)
        assert resolve_extend_path(tmp_path, "@acme/rules") == target

    def test_unresolvable(self, tmp_path):
        assert resolve_extend_path(tmp_path, "./missing") is None
        assert resolve_extend_path(tmp_path, "no_such_rules_package") is None


class TestRuleResolver:
    def test_local_overrides_inherited_without_duplicates(self, tmp_path):
        _rule_file(tmp_path / "base", "security/no-secrets.md", "Base Secrets")
        _rule_file(tmp_path / "base", "style/naming.md", "Base Naming")
        _rule_file(tmp_path / ".rulebound" / "rules", "security/no-secrets.md", "Local Secrets")

        config = RuleboundConfig(extends=["./base"])
        rules = RuleResolver(config, tmp_path).resolve()

        ids = [r.id for r in rules]
        assert sorted(ids) == ["security.no-secrets", "style.naming"]
        assert len(ids) == len(set(ids))

        by_id = {r.id: r for r in rules}
        assert by_id["security.no-secrets"].title == "Local Secrets"
        assert not by_id["security.no-secrets"].file_path.startswith(INHERITED_PREFIX)
        assert by_id["style.naming"].file_path == f"{INHERITED_PREFIX}style/naming.md"

    def test_later_extends_replace_earlier(self, tmp_path):
        _rule_file(tmp_path / "one", "r.md", "From One")
        _rule_file(tmp_path / "two", "r.md", "From Two")
        config = RuleboundConfig(extends=["./one", "./two"])
        [rule] = RuleResolver(config, tmp_path).resolve()
        assert rule.title == "From Two"

    def test_unresolvable_extends_skipped(self, tmp_path):
        _rule_file(tmp_path / "rules", "r.md", "Local")
        config = RuleboundConfig(extends=["./gone", "missing-package"])
        assert [r.title for r in RuleResolver(config, tmp_path).resolve()] == ["Local"]

    def test_override_dir_and_configured_rules_dir(self, tmp_path):
        _rule_file(tmp_path / "custom", "a.md", "Configured")
        _rule_file(tmp_path / "override", "b.md", "Override")
        resolver = RuleResolver(RuleboundConfig(rulesDir="custom"), tmp_path)

        assert [r.title for r in resolver.resolve()] == ["Configured"]
        assert [r.title for r in resolver.resolve(tmp_path / "override")] == ["Override"]

    def test_injectable_loader(self, tmp_path, make_rule):
        (tmp_path / "rules").mkdir()
        seen = []

        def loader(path):
            seen.append(path)
            return [make_rule(id="fake")]

        rules = RuleResolver(RuleboundConfig(), tmp_path, loader=loader).resolve()
        assert seen == [tmp_path / "rules"]
        assert [r.id for r in rules] == ["fake"]
