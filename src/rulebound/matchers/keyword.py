"""
KeywordMatcher -- negation-aware lexical matching of a plan against rules.

For each rule:
  1. Prohibition check: does the plan contain a prohibited phrase that is not
     negated? "ensure no hardcoded secrets" complies, "hardcode the key" does not.
  2. Subject check (only if 1 found nothing): literal secrets in the plan, or
     prohibited subjects mentioned without any compliance language.
  3. Coverage check: do enough rule keywords / requirement words appear?

Verdicts:
  VIOLATED     confidence 0.6
  PASS         confidence 0.7 (more than 2 keywords matched) or 0.4
  NOT_COVERED  confidence 0.3

Compliance language is searched for anywhere in the plan, not next to the
subject. Long plans that mention "validate" once will suppress every subject
violation; that is a known precision trade-off of this layer.
"""

import logging
import re

from ..rules.concepts import extract_rule_concepts
from ..rules.models import Rule
from .models import NOT_COVERED, PASS, VIOLATED, MatcherContext, MatchResult

logger = logging.getLogger(__name__)

NEGATION_WINDOW = 60
ADDRESS_RATIO_THRESHOLD = 0.3

VIOLATION_CONFIDENCE = 0.6
STRONG_PASS_CONFIDENCE = 0.7
WEAK_PASS_CONFIDENCE = 0.4
NOT_COVERED_CONFIDENCE = 0.3

NEGATION_PREFIXES = [
    "ensure no",
    "ensure that no",
    "prevent",
    "avoid",
    "will not",
    "won't",
    "without",
    "never",
    "eliminate",
    "remove all",
    "forbid",
    "block",
    "disallow",
    "reject",
    "no",
    "don't",
    "do not",
    "must not",
    "should not",
    "shouldn't",
    "not",
    "cannot",
    "can't",
    "isn't",
    "aren't",
    "none",
]

# Markers match whole words only: "no" must not fire inside "now" or "know".
NEGATION_PATTERNS = [
    re.compile(rf"(?<![a-z0-9]){re.escape(prefix)}(?![a-z0-9])") for prefix in NEGATION_PREFIXES
]

COMPLIANCE_INDICATORS = [
    "ensure",
    "prevent",
    "avoid",
    "protect",
    "secure",
    "validate",
    "verify",
    "check",
    "enforce",
    "require",
    "use environment",
    "use env",
    "from env",
    "load from",
    "secrets manager",
]

LITERAL_SECRET_PATTERNS = [
    re.compile(r"[\"']sk_(?:live|test)_\w+[\"']", re.IGNORECASE),
    re.compile(r"[\"'](?:api[_-]?key|token|password|secret)[_-]?\w*[\"']\s*(?:=|:)", re.IGNORECASE),
    re.compile(
        r"(?:set|assign|put|write|store)\s+(?:the\s+)?(?:api[_-]?\s*key|token|password|secret)\s+to\s+[\"']",
        re.IGNORECASE,
    ),
    re.compile(r"(?:=|:)\s*[\"'](?:sk|pk|ak|key)[_-]\w{5,}[\"']", re.IGNORECASE),
]

SECRETS_TOPIC = re.compile(
    r"(?<![a-z])(?:secret|key|token|password|credential)s?(?![a-z])", re.IGNORECASE
)


def normalize_plan(plan: str) -> str:
    """Lowercase and fold typographic apostrophes so "don’t" matches "don't"."""
    return plan.lower().replace("’", "'").replace("‘", "'")


def _preceded_by_negation(preceding: str) -> bool:
    return any(pattern.search(preceding) for pattern in NEGATION_PATTERNS)


def is_negated_in_context(plan_lower: str, word: str, window: int = NEGATION_WINDOW) -> bool:
    """
    True if every occurrence of word is preceded by a negation marker within
    `window` characters. A single unnegated occurrence makes it False.
    """
    start = 0
    while True:
        idx = plan_lower.find(word, start)
        if idx == -1:
            return True
        preceding = plan_lower[max(0, idx - window):idx]
        if not _preceded_by_negation(preceding):
            return False
        start = idx + len(word)


def find_violations(plan_lower: str, prohibitions: tuple[str, ...]) -> list[str]:
    """Prohibitions present in the plan and not negated at every occurrence."""
    violations = []

    for prohibition in prohibitions:
        words = [w for w in prohibition.split() if len(w) > 2]
        if not words:
            continue
        significant = [w for w in words if len(w) > 3]

        if significant and all(w in plan_lower for w in significant):
            matched = True
        else:
            matched = len(words) == 1 and len(words[0]) > 4 and words[0] in plan_lower
        if not matched:
            continue

        check_word = significant[0] if significant else words[0]
        if not is_negated_in_context(plan_lower, check_word):
            violations.append(prohibition)

    return violations


def contains_literal_secrets(plan_lower: str) -> bool:
    return any(pattern.search(plan_lower) for pattern in LITERAL_SECRET_PATTERNS)


def has_compliance_language(plan_lower: str) -> bool:
    return any(indicator in plan_lower for indicator in COMPLIANCE_INDICATORS)


def find_subject_violations(
    plan_lower: str,
    prohibited_subjects: tuple[str, ...],
    rule: Rule,
) -> list[str]:
    """
    Subject-level violations: the plan uses a prohibited *thing* directly.

    A literal secret in the plan violates any secrets-themed rule. Otherwise a
    prohibited subject counts only when the plan has no compliance language
    at all and the subject is not negated where it appears.
    """
    if contains_literal_secrets(plan_lower) and SECRETS_TOPIC.search(rule.content):
        return ["literal secret value in plan"]

    if has_compliance_language(plan_lower):
        return []

    violations = []
    for subject in prohibited_subjects:
        if len(subject) < 3 or subject not in plan_lower:
            continue
        if not is_negated_in_context(plan_lower, subject):
            violations.append(subject)
    return violations


def first_bullet(content: str) -> str | None:
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("- "):
            return stripped[2:].strip()
    return None


def suggest_fix(rule: Rule) -> str:
    bullet = first_bullet(rule.content)
    if bullet:
        return f"Follow: {bullet}"
    return f'Review rule "{rule.title}" and adjust plan accordingly'


def compute_address_score(
    plan_lower: str,
    keywords: tuple[str, ...],
    requirements: tuple[str, ...],
) -> tuple[bool, list[str]]:
    """(is_addressed, matched_keywords). Zero keywords means ratio 0."""
    matched_keywords = [kw for kw in keywords if kw and kw in plan_lower]

    requirement_hit = False
    for requirement in requirements:
        words = [w for w in requirement.split() if len(w) > 3]
        if words and any(w in plan_lower for w in words):
            requirement_hit = True
            break

    ratio = len(matched_keywords) / len(keywords) if keywords else 0.0
    return ratio > ADDRESS_RATIO_THRESHOLD or requirement_hit, matched_keywords


class KeywordMatcher:
    """Negation-aware lexical matcher.

    Usage:
        matcher = KeywordMatcher()
        results = await matcher.match(MatcherContext(plan=plan, rules=tuple(rules)))
    """

    name = "keyword"

    async def match(self, context: MatcherContext) -> list[MatchResult]:
        plan_lower = normalize_plan(context.plan)
        return [self.match_rule(plan_lower, rule) for rule in context.rules]

    def match_rule(self, plan_lower: str, rule: Rule) -> MatchResult:
        """Verdict for one rule against an already-normalized plan."""
        concepts = extract_rule_concepts(rule)

        violations = find_violations(plan_lower, concepts.prohibitions)
        if not violations:
            violations = find_subject_violations(plan_lower, concepts.prohibited_subjects, rule)

        if violations:
            logger.debug(f"[KeywordMatcher] {rule.id}: violation '{violations[0]}'")
            return MatchResult(
                rule_id=rule.id,
                status=VIOLATED,
                confidence=VIOLATION_CONFIDENCE,
                reason=f'Plan violates prohibition: "{violations[0]}"',
                suggested_fix=suggest_fix(rule),
            )

        addressed, matched_keywords = compute_address_score(
            plan_lower, concepts.keywords, concepts.requirements
        )
        if addressed:
            confidence = STRONG_PASS_CONFIDENCE if len(matched_keywords) > 2 else WEAK_PASS_CONFIDENCE
            if matched_keywords:
                reason = f"Plan addresses rule keywords: {', '.join(matched_keywords[:3])}"
            else:
                reason = "Plan addresses rule requirements"
            return MatchResult(rule_id=rule.id, status=PASS, confidence=confidence, reason=reason)

        return MatchResult(
            rule_id=rule.id,
            status=NOT_COVERED,
            confidence=NOT_COVERED_CONFIDENCE,
            reason="Rule not addressed in plan",
        )
