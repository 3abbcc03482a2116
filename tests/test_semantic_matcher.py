"""SemanticMatcher -- TF-IDF cosine similarity."""

import math

import pytest

from rulebound.matchers.models import MatcherContext
from rulebound.matchers.semantic import (
    SemanticMatcher,
    cosine_similarity,
    inverse_document_frequency,
    rule_to_text,
    term_frequency,
    tokenize,
)


class TestTfIdf:
    def test_tokenize_drops_short_tokens(self):
        assert tokenize("Use an API-key: sk_1") == ["use", "api", "key"]

    def test_term_frequency_normalized_by_max(self):
        assert term_frequency(["jwt", "jwt", "auth"]) == {"jwt": 1.0, "auth": 0.5}

    def test_smoothed_idf(self):
        idf = inverse_document_frequency([["jwt", "auth"], ["jwt"]])
        assert idf["jwt"] == pytest.approx(math.log(3 / 3) + 1)
        assert idf["auth"] == pytest.approx(math.log(3 / 2) + 1)

    def test_cosine_of_empty_vector_is_zero(self):
        assert cosine_similarity({}, {"a": 1.0}) == 0.0


class TestSemanticMatcher:
    @pytest.mark.asyncio
    async def test_identical_text_capped_at_max_confidence(self, auth_rule):
        context = MatcherContext(plan=rule_to_text(auth_rule), rules=(auth_rule,))
        [result] = await SemanticMatcher().match(context)
        assert result.status == "PASS"
        assert result.confidence == pytest.approx(0.85)

    @pytest.mark.asyncio
    async def test_unrelated_plan_not_covered(self, auth_rule):
        context = MatcherContext(plan="Add CSS grid layout to the dashboard", rules=(auth_rule,))
        [result] = await SemanticMatcher().match(context)
        assert result.status == "NOT_COVERED"
        assert result.confidence == 0.4

    @pytest.mark.asyncio
    async def test_never_reports_violations(self, secrets_rule, secret_plan):
        context = MatcherContext(plan=secret_plan, rules=(secrets_rule,))
        [result] = await SemanticMatcher().match(context)
        assert result.status != "VIOLATED"

    @pytest.mark.asyncio
    async def test_one_result_per_rule_in_order(self, secrets_rule, auth_rule):
        context = MatcherContext(plan="", rules=(secrets_rule, auth_rule))
        results = await SemanticMatcher().match(context)
        assert [r.rule_id for r in results] == ["security.no-secrets", "auth.jwt"]
