"""
Context relevance -- decides which rules apply to a project and a task.

Scoring (higher = more relevant):
    3 x |rule.stack & project.stack|
  + 2 x |rule.scope & project.scope|
  + 1 if project.team is one of rule.team

Global rules (no stack, scope, or team) always apply. A rule that declares
context metadata but scores 0 against the project does not apply here.
"""

import logging

from .models import ProjectContext, Rule

logger = logging.getLogger(__name__)

STACK_WEIGHT = 3
SCOPE_WEIGHT = 2
TEAM_WEIGHT = 1
GLOBAL_SCORE = 1


def _lower_set(values) -> set[str]:
    return {v.lower() for v in values if v}


def score_rule(rule: Rule, project: ProjectContext) -> int:
    """Relevance of a metadata-bearing rule to the project."""
    score = STACK_WEIGHT * len(_lower_set(rule.stack) & _lower_set(project.stack))
    score += SCOPE_WEIGHT * len(_lower_set(rule.scope) & _lower_set(project.scope))
    if project.team and project.team.lower() in _lower_set(rule.team):
        score += TEAM_WEIGHT
    return score


def _relevant_to_task(rule: Rule, task_words: list[str]) -> bool:
    text = " ".join([rule.title, " ".join(rule.tags), rule.category, " ".join(rule.stack)]).lower()
    return any(word in text for word in task_words)


def match_rules_by_context(
    rules: list[Rule],
    project: ProjectContext | None,
    task: str | None = None,
) -> list[Rule]:
    """
    Filter and rank rules for a project (and optionally a task description).

    Args:
        rules: Resolved rule set. Not modified.
        project: Consuming project's context, or None when unknown.
        task: Optional plan/task text. Rules without stack/scope metadata must
              mention at least one task word (>3 chars) in title, tags,
              category, or stack. Rules with stack/scope were already judged
              relevant by scoring and are exempt.

    Returns:
        Applicable rules, sorted by descending score (stable for ties).
    """
    task_words = [w for w in task.lower().split() if len(w) > 3] if task else []

    scored: list[tuple[int, Rule]] = []
    for rule in rules:
        if rule.is_global:
            score = GLOBAL_SCORE
        elif project is None:
            score = 0
        else:
            score = score_rule(rule, project)
            if score == 0:
                continue

        if task_words and not (rule.stack or rule.scope):
            if not _relevant_to_task(rule, task_words):
                continue

        scored.append((score, rule))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    logger.debug(
        f"[Context] {len(scored)}/{len(rules)} rules apply"
        f"{' (task-filtered)' if task_words else ''}"
    )
    return [rule for _, rule in scored]
