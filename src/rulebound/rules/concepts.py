"""
Concept extraction -- derives matchable concepts from a rule's text.

Pulls four things out of a rule without embeddings, relying on how rules are
usually phrased ("Never hardcode secrets", "Must use parameterized queries"):

  - keywords:            title words, tags, and category
  - prohibitions:        phrases following never / must not / avoid / don't / no
  - prohibited_subjects: the things being prohibited (tails of prohibitions)
  - requirements:        phrases following must / always / requires

Matchers depend only on RuleConcepts, so the patterns below can be tuned
without touching them.
"""

import re
from dataclasses import dataclass

from .models import Rule

PROHIBIT_PATTERNS = [
    re.compile(r"never\s+(\w+(?:\s+\w+){0,3})", re.IGNORECASE),
    re.compile(r"must\s+not\s+(\w+(?:\s+\w+){0,3})", re.IGNORECASE),
    re.compile(r"avoid\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE),
    re.compile(r"don['‘’]?t\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE),
    re.compile(r"no\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE),
]

# "No Hardcoded Secrets" style titles
TITLE_PROHIBITION = re.compile(r"\bno\s+(\w+)", re.IGNORECASE)

REQUIRE_PATTERNS = [
    re.compile(r"must\s+(?:be\s+)?(\w+(?:\s+\w+){0,3})", re.IGNORECASE),
    re.compile(r"always\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE),
    re.compile(r"require[sd]?\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE),
]

MIN_KEYWORD_LENGTH = 4
MIN_SUBJECT_WORD_LENGTH = 4


@dataclass(frozen=True)
class RuleConcepts:
    """Concepts extracted from a single rule."""

    keywords: tuple[str, ...] = ()
    prohibitions: tuple[str, ...] = ()
    prohibited_subjects: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()


def extract_keywords(title: str, tags: tuple[str, ...] | list[str], category: str) -> list[str]:
    """Title words longer than 3 chars, then tags, then category. All lowercased."""
    title_words = [w for w in title.lower().split() if len(w) >= MIN_KEYWORD_LENGTH]
    tag_words = [t.lower() for t in tags]
    return [*title_words, *tag_words, category.lower()]


def extract_prohibitions(text: str) -> list[str]:
    """Phrases the rule forbids, in pattern order."""
    prohibitions = []
    for pattern in PROHIBIT_PATTERNS:
        for match in pattern.finditer(text):
            prohibitions.append((match.group(1) or match.group(0)).strip().lower())

    title_match = TITLE_PROHIBITION.search(text)
    if title_match:
        prohibitions.append(title_match.group(1).lower())

    return prohibitions


def extract_requirements(text: str) -> list[str]:
    """Phrases the rule demands. "must not" matches are prohibitions, not requirements."""
    requirements = []
    for pattern in REQUIRE_PATTERNS:
        for match in pattern.finditer(text):
            if "must not" in match.group(0).lower():
                continue
            requirements.append((match.group(1) or match.group(0)).strip().lower())
    return requirements


def extract_prohibited_subjects(prohibitions: list[str]) -> list[str]:
    """
    The things being prohibited, taken from prohibition phrases only.

    "hardcode api keys passwords" -> ["api keys passwords", "keys", "passwords"]

    The first word is treated as the verb and dropped. Tags and category are
    deliberately not used: they describe what a rule is about, not what it
    forbids.
    """
    subjects: list[str] = []
    for prohibition in prohibitions:
        words = prohibition.split()
        if len(words) <= 1:
            continue
        subjects.append(" ".join(words[1:]))
        subjects.extend(w for w in words[1:] if len(w) >= MIN_SUBJECT_WORD_LENGTH)

    return list(dict.fromkeys(subjects))


def extract_rule_concepts(rule: Rule) -> RuleConcepts:
    """Extract all concepts from a rule. Pure, never raises on empty text."""
    text = f"{rule.title.lower()} {rule.content.lower()}"
    prohibitions = extract_prohibitions(text)

    return RuleConcepts(
        keywords=tuple(extract_keywords(rule.title, rule.tags, rule.category)),
        prohibitions=tuple(prohibitions),
        prohibited_subjects=tuple(extract_prohibited_subjects(prohibitions)),
        requirements=tuple(extract_requirements(text)),
    )
