"""Shared types for matcher layers and the validation pipeline."""

from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from ..rules.models import Rule

MatchStatus = Literal["PASS", "VIOLATED", "NOT_COVERED"]

PASS: MatchStatus = "PASS"
VIOLATED: MatchStatus = "VIOLATED"
NOT_COVERED: MatchStatus = "NOT_COVERED"
MATCH_STATUSES: tuple[MatchStatus, ...] = (PASS, VIOLATED, NOT_COVERED)


@dataclass(frozen=True)
class MatchResult:
    """One matcher's verdict on one rule.

    Attributes:
        rule_id: Rule the verdict is about.
        status: "PASS", "VIOLATED", or "NOT_COVERED".
        confidence: How sure the matcher is, 0.0 to 1.0.
        reason: Short explanation.
        suggested_fix: How to comply (violations only).
    """

    rule_id: str
    status: MatchStatus
    confidence: float
    reason: str
    suggested_fix: str | None = None


@dataclass(frozen=True)
class MatcherContext:
    """Input shared by every matcher in a pipeline run. Read-only."""

    plan: str
    rules: tuple[Rule, ...] = ()
    task: str | None = None


@dataclass
class PipelineResult:
    """Merged verdicts plus the ordered names of the layers that produced them."""

    results: list[MatchResult] = field(default_factory=list)
    layers: list[str] = field(default_factory=list)


@runtime_checkable
class Matcher(Protocol):
    """Interface every matcher layer implements.

    Example:
        class MyMatcher:
            name = "mine"

            async def match(self, context): ...
    """

    @property
    def name(self) -> str: ...

    async def match(self, context: MatcherContext) -> list[MatchResult]: ...
