"""
Rule quality -- how well a rule is written, independent of any plan.

Each rule is scored on three 0-5 dimensions:

  atomicity     one concern per rule (few bullets, few sections)
  completeness  descriptive title, bullets, code example, tags, good/bad examples
  clarity       directive language, no vague words, sensible length, actionable bullets

total = round((atomicity + completeness + clarity) / 15 * 100)

Usage:
    scores = [score_rule(r) for r in rules]
    avg = average_score(scores)
    grade_for(avg)  # "A".."F"
"""

import math
import re
from dataclasses import dataclass, field

from .models import Rule

MAX_DIMENSION = 5
MAX_TOTAL = 3 * MAX_DIMENSION

BULLET = re.compile(r"^- ", re.MULTILINE)
HEADING = re.compile(r"^## ", re.MULTILINE)
STRONG_DIRECTIVE = re.compile(r"\b(must|never|always|shall)\b")
WEAK_DIRECTIVE = re.compile(r"\b(should|prefer|avoid)\b")
VAGUE_WORDS = re.compile(r"\b(etc|stuff|things|maybe|probably)\b")

MIN_TITLE_LENGTH = 10
MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 2000

GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


@dataclass(frozen=True)
class QualityScore:
    """Quality of a single rule. Dimensions are 0-5, total is a percentage."""

    atomicity: int
    completeness: int
    clarity: int
    total: int
    issues: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "atomicity": self.atomicity,
            "completeness": self.completeness,
            "clarity": self.clarity,
            "total": self.total,
            "issues": list(self.issues),
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_rule(rule: Rule) -> QualityScore:
    """Score one rule and collect improvement hints."""
    issues: list[str] = []
    content = rule.content
    content_lower = content.lower()
    bullets = len(BULLET.findall(content))
    headings = len(HEADING.findall(content))

    atomicity = MAX_DIMENSION
    if bullets > 7:
        atomicity -= 3
        issues.append("Too many bullet points (>7): split into multiple rules")
    elif bullets > 5:
        atomicity -= 1
        issues.append("Consider splitting: many bullet points (>5)")
    if headings > 5:
        atomicity -= 2
        issues.append("Too many sections: rule may cover multiple concerns")

    completeness = 0
    if len(rule.title) > MIN_TITLE_LENGTH:
        completeness += 1
    else:
        issues.append("Title too short: be descriptive")
    if bullets > 0:
        completeness += 1
    else:
        issues.append("Missing rule bullets (- items)")
    if "```" in content:
        completeness += 1
    else:
        issues.append("Missing code examples")
    if rule.tags:
        completeness += 1
    else:
        issues.append("Missing tags: add them for better search")
    if "good example" in content_lower and "bad example" in content_lower:
        completeness += 1
    else:
        issues.append("Add both Good Example and Bad Example sections")

    clarity = 0
    if STRONG_DIRECTIVE.search(content_lower):
        clarity += 2
    elif WEAK_DIRECTIVE.search(content_lower):
        clarity += 1
        issues.append("Consider stronger language (MUST/NEVER) for critical rules")
    else:
        issues.append("Missing directive language: use MUST, NEVER, ALWAYS, SHOULD")
    if VAGUE_WORDS.search(content_lower):
        issues.append("Remove vague words (etc, stuff, things, maybe)")
    else:
        clarity += 1
    if MIN_CONTENT_LENGTH < len(content) < MAX_CONTENT_LENGTH:
        clarity += 1
    elif len(content) <= MIN_CONTENT_LENGTH:
        issues.append("Rule content too short: add detail")
    else:
        issues.append("Rule content very long: consider splitting")
    if bullets >= 2:
        clarity += 1

    atomicity = max(0, atomicity)
    return QualityScore(
        atomicity=atomicity,
        completeness=completeness,
        clarity=clarity,
        total=_round_half_up((atomicity + completeness + clarity) / MAX_TOTAL * 100),
        issues=tuple(issues),
    )


def average_score(scores: list[QualityScore]) -> int:
    """Mean total across rules. 0 for an empty list."""
    if not scores:
        return 0
    return _round_half_up(sum(s.total for s in scores) / len(scores))


def grade_for(score: int) -> str:
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade
    return "F"


def category_breakdown(rules: list[Rule]) -> dict[str, tuple[int, int]]:
    """category -> (rule count, average total), in first-seen category order."""
    totals: dict[str, list[int]] = {}
    for rule in rules:
        totals.setdefault(rule.category, []).append(score_rule(rule).total)
    return {
        category: (len(values), _round_half_up(sum(values) / len(values)))
        for category, values in totals.items()
    }
