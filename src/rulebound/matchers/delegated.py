"""
DelegatedMatcher -- per-rule compliance judgment by an LLM (opt-in).

The most precise and most expensive layer. Each rule is judged in its own
call; calls run in batches of CONCURRENCY_LIMIT, batches one after another,
so a run over N rules makes at most 5 requests in flight.

Fails loudly. There is no silent downgrade:
  - LLMUnavailableError  at construction (no SDK, no API key, bad provider)
  - LLMCallError         a call still failing after the client's retries
  - DelegatedResponseError  the reply is not a valid verdict

Usage:
    matcher = DelegatedMatcher(provider="anthropic")
    results = await matcher.match(MatcherContext(plan=plan, rules=tuple(rules)))
"""

import asyncio
import logging
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from ..errors import DelegatedResponseError
from ..llm.client import CacheablePrompt, create_client
from ..llm.json_parser import extract_json
from ..rules.models import Rule
from ..security.prompt_guard import detect_injection_attempt, wrap_user_content
from .models import MatcherContext, MatchResult

logger = logging.getLogger(__name__)

CONCURRENCY_LIMIT = 5
JUDGMENT_TEMPERATURE = 0.0

SYSTEM_PROMPT = (
    "You are a coding rule compliance evaluator. Given a rule and an "
    "implementation plan, decide whether the plan complies with the rule.\n\n"
    "Statuses:\n"
    "- PASS: The plan explicitly addresses the rule and complies with it.\n"
    "- VIOLATED: The plan does something the rule prohibits, or omits "
    "something the rule requires for the work described.\n"
    "- NOT_COVERED: The plan does not touch what the rule is about.\n\n"
    'Respond with JSON only: {"status": "PASS" | "VIOLATED" | "NOT_COVERED", '
    '"confidence": <number between 0 and 1>, "reason": "<one sentence>"}'
)


# =============================================================================
# PROVIDER PROTOCOL AND VERDICT SCHEMA
# =============================================================================


@runtime_checkable
class JudgmentProvider(Protocol):
    """Anything with an async call() returning an object that has .content.

    LLMClient satisfies it; tests pass an AsyncMock.
    """

    async def call(
        self, prompt: Any, role: str = "assistant", temperature: float = 0.0
    ) -> Any: ...


class DelegatedVerdict(BaseModel):
    """Schema every provider reply must satisfy."""

    status: Literal["PASS", "VIOLATED", "NOT_COVERED"]
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


# =============================================================================
# PROMPT
# =============================================================================


def build_rule_context(rule: Rule) -> str:
    """Rule section of the prompt. Stable per rule, so it is sent as cacheable context."""
    lines = [
        f"Rule: {rule.title}",
        f"Category: {rule.category}",
        f"Severity: {rule.severity}",
        f"Modality: {rule.modality.upper()}",
    ]
    if rule.tags:
        lines.append(f"Tags: {', '.join(rule.tags)}")
    lines.append("")
    lines.append("Rule Content:")
    lines.append(rule.content)
    return "\n".join(lines)


def build_prompt(rule: Rule, plan: str) -> CacheablePrompt:
    return CacheablePrompt(
        system=SYSTEM_PROMPT,
        context=build_rule_context(rule),
        user_message=f"---\n\nPlan to evaluate:\n{wrap_user_content(plan, label='PLAN')}",
    )


def parse_verdict(rule_id: str, content: str) -> MatchResult:
    """Validate a raw reply into a MatchResult. Raises DelegatedResponseError."""
    data = extract_json(content)
    if not isinstance(data, dict):
        raise DelegatedResponseError(
            f"Judgment for rule '{rule_id}' is not a JSON object: {content[:200]!r}"
        )
    try:
        verdict = DelegatedVerdict.model_validate(data)
    except ValidationError as e:
        raise DelegatedResponseError(
            f"Judgment for rule '{rule_id}' does not match the verdict schema: {e}"
        ) from e

    return MatchResult(
        rule_id=rule_id,
        status=verdict.status,
        confidence=verdict.confidence,
        reason=verdict.reason,
    )


# =============================================================================
# MATCHER
# =============================================================================


class DelegatedMatcher:
    """Delegates each rule's verdict to a JudgmentProvider."""

    name = "llm"

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        client: JudgmentProvider | None = None,
        concurrency: int = CONCURRENCY_LIMIT,
    ):
        # create_client raises LLMUnavailableError when the provider cannot be used
        self._client = client if client is not None else create_client(provider, model)
        self._concurrency = max(1, concurrency)

    async def match(self, context: MatcherContext) -> list[MatchResult]:
        rules = list(context.rules)
        if not rules:
            return []

        detect_injection_attempt(context.plan)

        results: list[MatchResult] = []
        for start in range(0, len(rules), self._concurrency):
            batch = rules[start:start + self._concurrency]
            batch_results = await asyncio.gather(
                *[self._evaluate(rule, context.plan) for rule in batch]
            )
            results.extend(batch_results)

        logger.info(
            f"[DelegatedMatcher] Judged {len(results)} rules "
            f"in {(len(rules) + self._concurrency - 1) // self._concurrency} batch(es)"
        )
        return results

    async def _evaluate(self, rule: Rule, plan: str) -> MatchResult:
        response = await self._client.call(
            prompt=build_prompt(rule, plan),
            role="rule_judgment",
            temperature=JUDGMENT_TEMPERATURE,
        )
        result = parse_verdict(rule.id, response.content)
        logger.debug(
            f"[DelegatedMatcher] {rule.id}: {result.status} ({result.confidence:.2f})"
        )
        return result
