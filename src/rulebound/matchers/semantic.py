"""
SemanticMatcher -- TF-IDF cosine similarity between a plan and each rule.

Catches paraphrased compliance the keyword layer misses ("session cookies are
httpOnly" vs. a rule titled "Secure Cookie Handling"). Independent of the
keyword patterns: it never reports VIOLATED, only PASS or NOT_COVERED.

Document set for IDF is {plan, rule_1, ..., rule_n}:
    idf(t) = ln((N + 1) / (df(t) + 1)) + 1
    tf(t)  = count(t) / max count in the document
"""

import logging
import math
import re
from collections import Counter

from ..rules.models import Rule
from .models import NOT_COVERED, PASS, MatcherContext, MatchResult

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.15
MAX_CONFIDENCE = 0.85
BASE_CONFIDENCE = 0.5
NOT_COVERED_CONFIDENCE = 0.4
MIN_TOKEN_LENGTH = 3

TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> list[str]:
    """Lowercase alphanumeric tokens of at least 3 chars."""
    return [t for t in TOKEN_SPLIT.split(text.lower()) if len(t) >= MIN_TOKEN_LENGTH]


def term_frequency(tokens: list[str]) -> dict[str, float]:
    counts = Counter(tokens)
    if not counts:
        return {}
    peak = max(counts.values())
    return {term: count / peak for term, count in counts.items()}


def inverse_document_frequency(docs: list[list[str]]) -> dict[str, float]:
    n = len(docs)
    doc_counts: Counter[str] = Counter()
    for doc in docs:
        doc_counts.update(set(doc))
    return {term: math.log((n + 1) / (df + 1)) + 1 for term, df in doc_counts.items()}


def tfidf_vector(tf: dict[str, float], idf: dict[str, float]) -> dict[str, float]:
    return {term: value * idf.get(term, 0.0) for term, value in tf.items()}


def cosine_similarity(a: dict[str, float], b: dict[str, float]) -> float:
    """Cosine of two sparse vectors. 0.0 when either is empty."""
    dot = sum(value * b[term] for term, value in a.items() if term in b)
    norm_a = math.sqrt(sum(v * v for v in a.values()))
    norm_b = math.sqrt(sum(v * v for v in b.values()))
    denominator = norm_a * norm_b
    if denominator == 0:
        return 0.0
    return dot / denominator


def rule_to_text(rule: Rule) -> str:
    return rule.searchable_text


class SemanticMatcher:
    """Statistical similarity matcher.

    Usage:
        matcher = SemanticMatcher()
        results = await matcher.match(MatcherContext(plan=plan, rules=tuple(rules)))
    """

    name = "semantic"

    def __init__(self, threshold: float = SIMILARITY_THRESHOLD):
        self._threshold = threshold

    async def match(self, context: MatcherContext) -> list[MatchResult]:
        plan_tokens = tokenize(context.plan)
        rule_tokens = [(rule, tokenize(rule_to_text(rule))) for rule in context.rules]

        idf = inverse_document_frequency([plan_tokens, *(tokens for _, tokens in rule_tokens)])
        plan_vector = tfidf_vector(term_frequency(plan_tokens), idf)

        results = []
        for rule, tokens in rule_tokens:
            rule_vector = tfidf_vector(term_frequency(tokens), idf)
            similarity = cosine_similarity(plan_vector, rule_vector)
            results.append(self._verdict(rule, similarity))
        return results

    def _verdict(self, rule: Rule, similarity: float) -> MatchResult:
        if similarity >= self._threshold:
            return MatchResult(
                rule_id=rule.id,
                status=PASS,
                confidence=min(BASE_CONFIDENCE + similarity, MAX_CONFIDENCE),
                reason=f"Semantic similarity {similarity:.3f} exceeds threshold",
            )
        return MatchResult(
            rule_id=rule.id,
            status=NOT_COVERED,
            confidence=NOT_COVERED_CONFIDENCE,
            reason=f"Semantic similarity {similarity:.3f} below threshold",
        )
