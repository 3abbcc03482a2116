"""
Matcher layers and the pipeline that merges them.

    keyword   -- negation-aware lexical matching (always on)
    semantic  -- TF-IDF cosine similarity (always on)
    llm       -- delegated per-rule judgment (opt-in, fails loudly)
"""

from .delegated import DelegatedMatcher, DelegatedVerdict, JudgmentProvider
from .keyword import KeywordMatcher
from .models import (
    MATCH_STATUSES,
    NOT_COVERED,
    PASS,
    VIOLATED,
    Matcher,
    MatcherContext,
    MatchResult,
    MatchStatus,
    PipelineResult,
)
from .pipeline import ValidationPipeline, merge_results
from .semantic import SemanticMatcher

__all__ = [
    "DelegatedMatcher",
    "DelegatedVerdict",
    "JudgmentProvider",
    "KeywordMatcher",
    "MATCH_STATUSES",
    "NOT_COVERED",
    "PASS",
    "VIOLATED",
    "Matcher",
    "MatcherContext",
    "MatchResult",
    "MatchStatus",
    "PipelineResult",
    "SemanticMatcher",
    "ValidationPipeline",
    "merge_results",
]
