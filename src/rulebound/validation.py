"""
Validation -- run the matcher pipeline over a plan and build the report.

Usage:
    report = await validate_with_pipeline(plan, rules)
    report.status        # "PASSED" | "PASSED_WITH_WARNINGS" | "FAILED"
    report.failed        # True when any MUST rule is violated
    for row in report.results:
        print(format_annotation(row))  # GitHub Actions annotation or ""
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from .matchers.delegated import DelegatedMatcher
from .matchers.keyword import KeywordMatcher
from .matchers.models import (
    NOT_COVERED,
    PASS,
    VIOLATED,
    Matcher,
    MatcherContext,
    MatchStatus,
    PipelineResult,
)
from .matchers.pipeline import ValidationPipeline
from .matchers.semantic import SemanticMatcher
from .rules.models import DEFAULT_MODALITY, DEFAULT_SEVERITY, Rule

logger = logging.getLogger(__name__)

ReportStatus = Literal["PASSED", "PASSED_WITH_WARNINGS", "FAILED"]

TASK_LABEL_LENGTH = 100


# =============================================================================
# REPORT MODELS
# =============================================================================


@dataclass
class ValidationResult:
    """One rule's merged verdict, joined with the rule's display fields."""

    rule_id: str
    rule_title: str
    severity: str
    modality: str
    status: MatchStatus
    reason: str
    suggested_fix: str | None = None
    confidence: float = 0.0


@dataclass
class ReportSummary:
    pass_count: int = 0
    violated: int = 0
    not_covered: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"pass": self.pass_count, "violated": self.violated, "not_covered": self.not_covered}


@dataclass
class ValidationReport:
    """Outcome of validating one plan against a rule set."""

    task: str
    rules_matched: int
    rules_total: int
    results: list[ValidationResult] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    status: ReportStatus = "PASSED"
    layers: list[str] = field(default_factory=list)

    @property
    def has_must_violation(self) -> bool:
        return any(r.status == VIOLATED and r.modality == "must" for r in self.results)

    @property
    def has_should_violation(self) -> bool:
        return any(r.status == VIOLATED and r.modality == "should" for r in self.results)

    @property
    def failed(self) -> bool:
        return self.status == "FAILED"

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task,
            "rules_matched": self.rules_matched,
            "rules_total": self.rules_total,
            "results": [asdict(r) for r in self.results],
            "summary": self.summary.to_dict(),
            "status": self.status,
            "layers": list(self.layers),
        }


# =============================================================================
# REPORT BUILDING
# =============================================================================


def summarize(results: list[ValidationResult]) -> ReportSummary:
    summary = ReportSummary()
    for result in results:
        if result.status == PASS:
            summary.pass_count += 1
        elif result.status == VIOLATED:
            summary.violated += 1
        elif result.status == NOT_COVERED:
            summary.not_covered += 1
    return summary


def determine_status(results: list[ValidationResult]) -> ReportStatus:
    """MUST violation fails; any other violation or gap passes with warnings."""
    if any(r.status == VIOLATED and r.modality == "must" for r in results):
        return "FAILED"
    if any(r.status in (VIOLATED, NOT_COVERED) for r in results):
        return "PASSED_WITH_WARNINGS"
    return "PASSED"


def build_report(
    plan: str,
    rules: list[Rule],
    pipeline_result: PipelineResult,
    task: str | None = None,
) -> ValidationReport:
    """Join merged MatchResults with their rules and compute summary and status."""
    by_id = {rule.id: rule for rule in rules}
    results = []
    for match in pipeline_result.results:
        rule = by_id.get(match.rule_id)
        results.append(
            ValidationResult(
                rule_id=match.rule_id,
                rule_title=rule.title if rule else match.rule_id,
                severity=rule.severity if rule else DEFAULT_SEVERITY,
                modality=rule.modality if rule else DEFAULT_MODALITY,
                status=match.status,
                reason=match.reason,
                suggested_fix=match.suggested_fix,
                confidence=match.confidence,
            )
        )

    return ValidationReport(
        task=task if task is not None else plan[:TASK_LABEL_LENGTH],
        rules_matched=sum(1 for r in results if r.status != NOT_COVERED),
        rules_total=len(rules),
        results=results,
        summary=summarize(results),
        status=determine_status(results),
        layers=list(pipeline_result.layers),
    )


def default_matchers(
    use_llm: bool = False,
    llm_provider: str | None = None,
    llm_model: str | None = None,
) -> list[Matcher]:
    """keyword + semantic, plus the delegated layer when requested."""
    matchers: list[Matcher] = [KeywordMatcher(), SemanticMatcher()]
    if use_llm:
        matchers.append(DelegatedMatcher(provider=llm_provider, model=llm_model))
    return matchers


async def validate_with_pipeline(
    plan: str,
    rules: list[Rule],
    task: str | None = None,
    use_llm: bool = False,
    llm_provider: str | None = None,
    llm_model: str | None = None,
    matchers: list[Matcher] | None = None,
) -> ValidationReport:
    """
    Validate a plan against rules and return the report.

    Raises:
        LLMUnavailableError, LLMCallError, DelegatedResponseError: from the
            delegated layer when use_llm is set. Never downgraded.
    """
    if matchers is None:
        matchers = default_matchers(use_llm, llm_provider, llm_model)

    pipeline = ValidationPipeline(matchers)
    pipeline_result = await pipeline.run(
        MatcherContext(plan=plan, rules=tuple(rules), task=task)
    )
    report = build_report(plan, list(rules), pipeline_result, task=task)
    logger.info(
        f"[Validation] {report.status}: {report.summary.pass_count} pass, "
        f"{report.summary.violated} violated, {report.summary.not_covered} not covered"
    )
    return report


# =============================================================================
# CI OUTPUT
# =============================================================================


def format_annotation(result: ValidationResult) -> str:
    """GitHub Actions annotation for one result. PASS produces no annotation."""
    modality = result.modality.upper()
    if result.status == VIOLATED:
        return f"::error::{modality} violation: {result.rule_title} - {result.reason}"
    if result.status == NOT_COVERED:
        return f"::warning::{modality}: {result.rule_title} - {result.reason}"
    return ""


def extract_added_lines(diff_text: str) -> str:
    """Added lines of a unified diff, without the leading '+'. File headers are skipped."""
    return "\n".join(
        line[1:]
        for line in diff_text.split("\n")
        if line.startswith("+") and not line.startswith("+++")
    )


def extract_changed_files(diff_text: str) -> list[str]:
    """Paths from '+++ b/<path>' headers of a unified diff."""
    prefix = "+++ b/"
    return [line[len(prefix):] for line in diff_text.split("\n") if line.startswith(prefix)]
