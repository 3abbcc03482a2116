"""
Enforcement -- decides whether a validation result blocks a commit or CI run.

Modes: advisory (never blocks), moderate (MUST violations or low score),
strict (moderate plus SHOULD violations).
"""

from .policy import (
    DEFAULT_ENFORCEMENT,
    ENFORCEMENT_MODES,
    BlockCheckInput,
    EnforcementConfig,
    EnforcementMode,
    calculate_score,
    parse_enforcement_config,
    should_block,
    should_suggest_promotion,
    should_warn,
)

__all__ = [
    "DEFAULT_ENFORCEMENT",
    "ENFORCEMENT_MODES",
    "BlockCheckInput",
    "EnforcementConfig",
    "EnforcementMode",
    "calculate_score",
    "parse_enforcement_config",
    "should_block",
    "should_suggest_promotion",
    "should_warn",
]
