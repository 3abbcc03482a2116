"""Enforcement policy -- block, warn, promote, score."""

import pytest

from rulebound.enforcement import (
    DEFAULT_ENFORCEMENT,
    BlockCheckInput,
    EnforcementConfig,
    calculate_score,
    parse_enforcement_config,
    should_block,
    should_suggest_promotion,
    should_warn,
)
from rulebound.validation import ReportSummary, ValidationReport, ValidationResult


def _report(*statuses):
    results = [
        ValidationResult(
            rule_id=f"r{i}", rule_title=f"R{i}", severity="warning",
            modality="should", status=status, reason="",
        )
        for i, status in enumerate(statuses)
    ]
    summary = ReportSummary(
        pass_count=statuses.count("PASS"),
        violated=statuses.count("VIOLATED"),
        not_covered=statuses.count("NOT_COVERED"),
    )
    return ValidationReport(
        task="t", rules_matched=0, rules_total=len(results), results=results, summary=summary
    )


class TestShouldBlock:
    @pytest.mark.parametrize("must", [True, False])
    @pytest.mark.parametrize("should", [True, False])
    @pytest.mark.parametrize("score", [0, 69, 70, 100])
    def test_advisory_never_blocks(self, must, should, score):
        config = EnforcementConfig(mode="advisory")
        assert not should_block(config, BlockCheckInput(must, score, should))

    @pytest.mark.parametrize("mode", ["moderate", "strict"])
    @pytest.mark.parametrize("score", [0, 70, 100])
    def test_must_violation_always_blocks(self, mode, score):
        config = EnforcementConfig(mode=mode)
        assert should_block(config, BlockCheckInput(has_must_violation=True, score=score))

    @pytest.mark.parametrize("mode", ["moderate", "strict"])
    def test_low_score_always_blocks(self, mode):
        config = EnforcementConfig(mode=mode, score_threshold=80)
        assert should_block(config, BlockCheckInput(has_must_violation=False, score=79))
        assert not should_block(config, BlockCheckInput(has_must_violation=False, score=80))

    def test_strict_blocks_on_should_violation(self):
        check = BlockCheckInput(has_must_violation=False, score=100, has_should_violation=True)
        assert should_block(EnforcementConfig(mode="strict"), check)
        assert not should_block(EnforcementConfig(mode="moderate"), check)


class TestWarnAndPromote:
    def test_warn_only_in_strict(self):
        assert should_warn(EnforcementConfig(mode="strict"), True)
        assert not should_warn(EnforcementConfig(mode="strict"), False)
        assert not should_warn(EnforcementConfig(mode="moderate"), True)

    def test_promotion(self):
        assert should_suggest_promotion(DEFAULT_ENFORCEMENT, 90)
        assert not should_suggest_promotion(DEFAULT_ENFORCEMENT, 89)
        assert not should_suggest_promotion(EnforcementConfig(mode="strict"), 100)
        assert not should_suggest_promotion(EnforcementConfig(auto_promote=False), 100)


class TestCalculateScore:
    def test_empty_report_scores_100(self):
        assert calculate_score(_report()) == 100

    def test_weighted(self):
        assert calculate_score(_report("PASS", "NOT_COVERED", "VIOLATED", "VIOLATED")) == 38

    def test_halves_round_up(self):
        statuses = ("PASS",) + ("VIOLATED",) * 7
        assert calculate_score(_report(*statuses)) == 13


class TestParseEnforcementConfig:
    def test_defaults(self):
        assert parse_enforcement_config(None) == DEFAULT_ENFORCEMENT
        assert DEFAULT_ENFORCEMENT == EnforcementConfig("advisory", 70, True)

    def test_camel_case(self):
        config = parse_enforcement_config(
            {"mode": "strict", "scoreThreshold": 85, "autoPromote": False}
        )
        assert config == EnforcementConfig(mode="strict", score_threshold=85, auto_promote=False)

    def test_unknown_mode_rejected_at_boundary(self):
        assert parse_enforcement_config({"mode": "block-everything"}).mode == "advisory"

    def test_out_of_range_threshold(self):
        assert parse_enforcement_config({"scoreThreshold": 150}).score_threshold == 70
        assert parse_enforcement_config({"scoreThreshold": True}).score_threshold == 70

    def test_config_is_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_ENFORCEMENT.mode = "strict"
