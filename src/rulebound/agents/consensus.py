"""
Consensus -- combine several agents' reviews of the same plan into one verdict.

  FAIL  any agent reports a VIOLATED rule
  PASS  every reported result is PASS (and there is at least one)
  WARN  otherwise (some rule NOT_COVERED, or nothing evaluated)

Usage:
    consensus = await review_with_agents(plan, agents, rules, project=ctx)
    consensus.status   # "PASS" | "FAIL" | "WARN"
    consensus.summary  # "FAIL: Violations found by security-bot"
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from ..matchers.models import NOT_COVERED, PASS, VIOLATED, Matcher, MatchResult
from ..rules.context import match_rules_by_context
from ..rules.models import ProjectContext, Rule
from ..validation import ValidationReport, validate_with_pipeline
from .registry import AgentProfile, resolve_agent_rules

logger = logging.getLogger(__name__)

ConsensusStatus = Literal["PASS", "FAIL", "WARN"]


@dataclass
class AgentReviewResult:
    agent_name: str
    roles: list[str] = field(default_factory=list)
    results: list[MatchResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "roles": list(self.roles),
            "results": [
                {
                    "rule_id": r.rule_id,
                    "status": r.status,
                    "confidence": r.confidence,
                    "reason": r.reason,
                    "suggested_fix": r.suggested_fix,
                }
                for r in self.results
            ],
        }


@dataclass
class ConsensusResult:
    status: ConsensusStatus
    agent_results: list[AgentReviewResult] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "summary": self.summary,
            "agent_results": [a.to_dict() for a in self.agent_results],
        }


# =============================================================================
# AGGREGATION
# =============================================================================


def _agents_reporting(agent_results: list[AgentReviewResult], status: str) -> list[str]:
    return [a.agent_name for a in agent_results if any(r.status == status for r in a.results)]


def build_consensus(agent_results: list[AgentReviewResult]) -> ConsensusResult:
    statuses = [r.status for agent in agent_results for r in agent.results]

    if VIOLATED in statuses:
        violators = _agents_reporting(agent_results, VIOLATED)
        return ConsensusResult(
            status="FAIL",
            agent_results=agent_results,
            summary=f"FAIL: Violations found by {', '.join(violators)}",
        )

    if statuses and all(s == PASS for s in statuses):
        return ConsensusResult(
            status="PASS",
            agent_results=agent_results,
            summary="PASS: All agents agree - no violations found",
        )

    uncovered = _agents_reporting(agent_results, NOT_COVERED)
    return ConsensusResult(
        status="WARN",
        agent_results=agent_results,
        summary=f"WARN: Uncovered rules reported by {', '.join(uncovered)}",
    )


def report_to_match_results(report: ValidationReport) -> list[MatchResult]:
    return [
        MatchResult(
            rule_id=row.rule_id,
            status=row.status,
            confidence=row.confidence,
            reason=row.reason,
            suggested_fix=row.suggested_fix,
        )
        for row in report.results
    ]


# =============================================================================
# MULTI-AGENT REVIEW
# =============================================================================


async def review_agent(
    agent: AgentProfile,
    plan: str,
    rules: list[Rule],
    project: ProjectContext | None = None,
    use_llm: bool = False,
    matchers: list[Matcher] | None = None,
) -> AgentReviewResult:
    """Validate the plan against the subset of rules this agent owns."""
    allowed = set(resolve_agent_rules(agent, [r.id for r in rules]))
    agent_rules = [r for r in rules if r.id in allowed]
    relevant = match_rules_by_context(agent_rules, project, plan)

    report = await validate_with_pipeline(
        plan, relevant, task=plan[:100], use_llm=use_llm, matchers=matchers
    )
    logger.debug(
        f"[Consensus] {agent.name}: {len(relevant)} rules, status {report.status}"
    )
    return AgentReviewResult(
        agent_name=agent.name,
        roles=list(agent.roles),
        results=report_to_match_results(report),
    )


async def review_with_agents(
    plan: str,
    agents: list[AgentProfile],
    rules: list[Rule],
    project: ProjectContext | None = None,
    use_llm: bool = False,
    matchers: list[Matcher] | None = None,
) -> ConsensusResult:
    """Run every agent's review concurrently and build the consensus. Errors propagate."""
    agent_results = await asyncio.gather(
        *[review_agent(a, plan, rules, project, use_llm, matchers) for a in agents]
    )
    consensus = build_consensus(list(agent_results))
    logger.info(f"[Consensus] {len(agents)} agent(s): {consensus.summary}")
    return consensus
