"""Validation report, status, and CI output helpers."""

import pytest

from rulebound.matchers.models import MatchResult, PipelineResult
from rulebound.validation import (
    ValidationResult,
    build_report,
    extract_added_lines,
    extract_changed_files,
    format_annotation,
    validate_with_pipeline,
)


def _row(status, modality="must", title="No Secrets", reason="why"):
    return ValidationResult(
        rule_id="r", rule_title=title, severity="error",
        modality=modality, status=status, reason=reason,
    )


class TestBuildReport:
    def test_status_and_counts(self, secrets_rule, auth_rule):
        pipeline_result = PipelineResult(
            results=[
                MatchResult("security.no-secrets", "PASS", 0.7, "ok"),
                MatchResult("auth.jwt", "VIOLATED", 0.6, "bad", "fix it"),
            ],
            layers=["keyword"],
        )
        report = build_report("x" * 150, [secrets_rule, auth_rule], pipeline_result)

        assert report.task == "x" * 100
        assert report.status == "PASSED_WITH_WARNINGS"
        assert report.rules_matched == 2
        assert report.rules_total == 2
        assert report.summary.to_dict() == {"pass": 1, "violated": 1, "not_covered": 0}
        assert report.results[1].modality == "should"
        assert report.results[1].confidence == 0.6
        assert report.has_should_violation
        assert not report.failed

    def test_must_violation_fails(self, secrets_rule):
        pipeline_result = PipelineResult(
            results=[MatchResult("security.no-secrets", "VIOLATED", 0.6, "bad")]
        )
        report = build_report("plan", [secrets_rule], pipeline_result, task="label")
        assert report.status == "FAILED"
        assert report.failed
        assert report.task == "label"

    def test_not_covered_not_counted_as_matched(self, secrets_rule):
        pipeline_result = PipelineResult(
            results=[MatchResult("security.no-secrets", "NOT_COVERED", 0.3, "n/a")]
        )
        report = build_report("plan", [secrets_rule], pipeline_result)
        assert report.rules_matched == 0
        assert report.status == "PASSED_WITH_WARNINGS"

    @pytest.mark.asyncio
    async def test_no_rules_passes(self):
        report = await validate_with_pipeline("anything", [])
        assert report.status == "PASSED"
        assert report.results == []
        assert report.layers == ["keyword", "semantic"]

    @pytest.mark.asyncio
    async def test_to_dict(self, secrets_rule, secret_plan):
        data = (await validate_with_pipeline(secret_plan, [secrets_rule])).to_dict()
        assert data["status"] == "FAILED"
        assert data["results"][0]["rule_id"] == "security.no-secrets"
        assert set(data) == {
            "task", "rules_matched", "rules_total", "results", "summary", "status", "layers",
        }


class TestAnnotations:
    def test_pass_has_no_annotation(self):
        assert format_annotation(_row("PASS")) == ""

    def test_violation_is_error(self):
        assert format_annotation(_row("VIOLATED")) == "::error::MUST violation: No Secrets - why"

    def test_not_covered_is_warning(self):
        row = _row("NOT_COVERED", modality="should")
        assert format_annotation(row) == "::warning::SHOULD: No Secrets - why"


class TestDiffHelpers:
    DIFF = (
        "diff --git a/app.py b/app.py\n"
        "--- a/app.py\n"
        "+++ b/app.py\n"
        "@@ -1,2 +1,3 @@\n"
        " import os\n"
        "-KEY = None\n"
        '+KEY = "sk_live_abc123"\n'
        "+print(KEY)\n"
    )

    def test_added_lines(self):
        assert extract_added_lines(self.DIFF) == 'KEY = "sk_live_abc123"\nprint(KEY)'

    def test_changed_files(self):
        assert extract_changed_files(self.DIFF) == ["app.py"]
