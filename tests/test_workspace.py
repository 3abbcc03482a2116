"""Workspace loading -- config, rules, enforcement, and agents from one directory."""

from rulebound.workspace import load_workspace


class TestLoadWorkspace:
    def test_loads_everything(self, project_dir):
        ws = load_workspace(project_dir)
        assert sorted(r.id for r in ws.rules) == ["auth.jwt", "security.no-secrets"]
        assert ws.enforcement.mode == "moderate"
        assert [a.name for a in ws.agents] == ["security-bot", "reviewer"]
        assert ws.project.stack == ("python",)

    def test_explicit_rules_dir(self, project_dir):
        ws = load_workspace(project_dir, project_dir / ".rulebound" / "rules" / "auth")
        assert [r.id for r in ws.rules] == ["jwt"]

    def test_applicable_filters_by_plan(self, project_dir, secret_plan, unrelated_plan):
        ws = load_workspace(project_dir)
        assert [r.id for r in ws.applicable(secret_plan)] == ["security.no-secrets"]
        assert ws.applicable(unrelated_plan) == []

    def test_empty_directory(self, tmp_path):
        ws = load_workspace(tmp_path)
        assert ws.rules == []
        assert ws.agents == []
        assert ws.enforcement.mode == "advisory"
