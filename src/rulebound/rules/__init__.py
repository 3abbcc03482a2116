"""
Rules -- the rule model, concept extraction, loading, inheritance, and
context relevance.

Components:
  - Rule / ProjectContext: frozen data models
  - extract_rule_concepts: keywords, prohibitions, subjects, requirements
  - load_local_rules / find_rules_dir / filter_rules: markdown rule sources
  - RuleResolver: extends + local override by rule id
  - match_rules_by_context: project/task relevance scoring
  - score_rule: how well a rule is written (atomicity, completeness, clarity)
"""

from .concepts import RuleConcepts, extract_rule_concepts
from .context import match_rules_by_context
from .inheritance import RuleResolver, resolve_extend_path
from .loader import filter_rules, find_rules_dir, load_local_rules
from .models import ProjectContext, Rule
from .quality import QualityScore, average_score, category_breakdown, grade_for, score_rule

__all__ = [
    "ProjectContext",
    "QualityScore",
    "Rule",
    "RuleConcepts",
    "RuleResolver",
    "average_score",
    "category_breakdown",
    "extract_rule_concepts",
    "filter_rules",
    "find_rules_dir",
    "grade_for",
    "load_local_rules",
    "match_rules_by_context",
    "resolve_extend_path",
    "score_rule",
]
