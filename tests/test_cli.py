"""CLI -- exit codes and output formats."""

import json

import pytest
from typer.testing import CliRunner

from rulebound.cli import app

runner = CliRunner()


@pytest.fixture
def in_project(project_dir, monkeypatch):
    monkeypatch.chdir(project_dir)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return project_dir


class TestValidate:
    def test_must_violation_exits_1(self, in_project, secret_plan):
        result = runner.invoke(app, ["validate", "--plan", secret_plan])
        assert result.exit_code == 1
        assert "FAILED" in result.stdout

    def test_clean_plan_exits_0(self, in_project, unrelated_plan):
        result = runner.invoke(app, ["validate", "--plan", unrelated_plan])
        assert result.exit_code == 0

    def test_json_output(self, in_project, secret_plan):
        result = runner.invoke(app, ["validate", "--plan", secret_plan, "--json"])
        data = json.loads(result.stdout)
        assert data["status"] == "FAILED"
        assert data["score"] == 0

    def test_plan_from_file(self, in_project, secret_plan, tmp_path):
        plan_file = tmp_path / "plan.md"
        plan_file.write_text(secret_plan, encoding="utf-8")
        assert runner.invoke(app, ["validate", "--file", str(plan_file)]).exit_code == 1

    def test_missing_plan(self, in_project):
        assert runner.invoke(app, ["validate"]).exit_code == 1

    def test_llm_unavailable_exits_2(self, in_project, secret_plan):
        assert runner.invoke(app, ["validate", "--plan", secret_plan, "--llm"]).exit_code == 2

    def test_no_rules_exits_2(self, tmp_path, monkeypatch, secret_plan):
        monkeypatch.chdir(tmp_path)
        assert runner.invoke(app, ["validate", "--plan", secret_plan]).exit_code == 2


class TestCi:
    def _diff(self, tmp_path, secret_plan):
        diff = tmp_path / "change.diff"
        diff.write_text(
            "--- a/settings.py\n+++ b/settings.py\n@@ -0,0 +1 @@\n+" + secret_plan + "\n",
            encoding="utf-8",
        )
        return diff

    def test_github_annotations_and_block(self, in_project, tmp_path, secret_plan):
        diff = self._diff(tmp_path, secret_plan)
        result = runner.invoke(app, ["ci", "--diff-file", str(diff), "--format", "github"])
        assert result.exit_code == 1
        assert "::error::MUST violation: No Hardcoded Secrets" in result.stdout
        assert "Score: 0/100" in result.stdout

    def test_json_lists_changed_files(self, in_project, tmp_path, secret_plan):
        diff = self._diff(tmp_path, secret_plan)
        result = runner.invoke(app, ["ci", "--diff-file", str(diff), "--format", "json"])
        data = json.loads(result.stdout)
        assert data["files_changed"] == ["settings.py"]
        assert data["blocked"] is True

    def test_empty_diff_passes(self, in_project, tmp_path):
        diff = tmp_path / "empty.diff"
        diff.write_text("", encoding="utf-8")
        result = runner.invoke(app, ["ci", "--diff-file", str(diff), "--format", "github"])
        assert result.exit_code == 0
        assert "No changes detected" in result.stdout

    def test_no_matching_rules_passes(self, in_project, unrelated_plan):
        result = runner.invoke(app, ["ci", "--plan", unrelated_plan])
        assert result.exit_code == 0


class TestReview:
    def test_consensus_fail_exits_1(self, in_project, secret_plan):
        result = runner.invoke(app, ["review", "--plan", secret_plan, "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["status"] == "FAIL"

    def test_agent_filter(self, in_project, secret_plan):
        result = runner.invoke(app, ["review", "--plan", secret_plan, "--agents", "ghost"])
        assert result.exit_code == 1


class TestFindRulesAndEnforce:
    def test_find_rules_json(self, in_project):
        result = runner.invoke(app, ["find-rules", "--tags", "secrets", "--json"])
        assert result.exit_code == 0
        assert [r["id"] for r in json.loads(result.stdout)] == ["security.no-secrets"]

    def test_enforce_shows_mode(self, in_project):
        result = runner.invoke(app, ["enforce"])
        assert result.exit_code == 0
        assert "moderate" in result.stdout


class TestRuleQuality:
    def test_lint_json_scores_each_rule(self, in_project):
        result = runner.invoke(app, ["lint", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert sorted(r["id"] for r in data) == ["auth.jwt", "security.no-secrets"]
        assert all(r["total"] == 87 for r in data)
        assert all("Missing code examples" in r["issues"] for r in data)

    def test_lint_pretty(self, in_project):
        result = runner.invoke(app, ["lint"])
        assert result.exit_code == 0
        assert "RULE QUALITY REPORT" in result.stdout
        assert "Average: 87%" in result.stdout

    def test_score_json(self, in_project):
        result = runner.invoke(app, ["score", "--json", "--no-badge"])
        data = json.loads(result.stdout)
        assert data["score"] == 87
        assert data["grade"] == "B"
        assert data["categories"] == {
            "auth": {"count": 1, "score": 87},
            "security": {"count": 1, "score": 87},
        }

    def test_score_writes_badge(self, in_project, tmp_path):
        badge = tmp_path / "badge.md"
        result = runner.invoke(app, ["score", "--output", str(badge)])
        assert result.exit_code == 0
        assert badge.read_text(encoding="utf-8").startswith(
            "![Rulebound Score](https://img.shields.io/badge/rulebound-87%25-4c1"
        )

    def test_no_rules_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert runner.invoke(app, ["lint"]).exit_code == 1


class TestAgents:
    def test_lists_profiles(self, in_project):
        result = runner.invoke(app, ["agents", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [a["name"] for a in data] == ["security-bot", "reviewer"]
        assert data[0]["enforcement"] == "strict"

    def test_none_configured(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["agents"])
        assert result.exit_code == 0
        assert "No agents configured" in result.stdout
