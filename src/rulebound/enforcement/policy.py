"""
Enforcement policy -- turns a validation score into block / warn / promote.

Three modes:
  advisory  never blocks
  moderate  blocks on a MUST violation or a score below the threshold
  strict    blocks like moderate, and also on any SHOULD violation

Policy functions are total over the three modes. Unknown modes never reach
them: parse_enforcement_config() rejects them at the config boundary.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Literal

from ..validation import ValidationReport

logger = logging.getLogger(__name__)

EnforcementMode = Literal["advisory", "moderate", "strict"]

ENFORCEMENT_MODES: tuple[str, ...] = ("advisory", "moderate", "strict")
PROMOTION_SCORE = 90
PASS_WEIGHT = 1.0
NOT_COVERED_WEIGHT = 0.5


@dataclass(frozen=True)
class EnforcementConfig:
    mode: EnforcementMode = "advisory"
    score_threshold: int = 70
    auto_promote: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "scoreThreshold": self.score_threshold,
            "autoPromote": self.auto_promote,
        }


DEFAULT_ENFORCEMENT = EnforcementConfig()


@dataclass(frozen=True)
class BlockCheckInput:
    """Facts about one validation run that the block decision needs."""

    has_must_violation: bool
    score: int
    has_should_violation: bool = False

    @classmethod
    def from_report(cls, report: ValidationReport) -> "BlockCheckInput":
        return cls(
            has_must_violation=report.has_must_violation,
            score=calculate_score(report),
            has_should_violation=report.has_should_violation,
        )


# =============================================================================
# POLICY
# =============================================================================


def should_block(config: EnforcementConfig, check: BlockCheckInput) -> bool:
    if config.mode == "advisory":
        return False

    moderate_block = check.has_must_violation or check.score < config.score_threshold
    if config.mode == "moderate":
        return moderate_block

    return moderate_block or check.has_should_violation


def should_warn(config: EnforcementConfig, has_should_violation: bool) -> bool:
    """Strict mode surfaces SHOULD violations as warnings even when not blocking."""
    return config.mode == "strict" and has_should_violation


def should_suggest_promotion(config: EnforcementConfig, score: int) -> bool:
    """Suggest moving to a stricter mode once the project scores consistently high."""
    return config.auto_promote and config.mode != "strict" and score >= PROMOTION_SCORE


def calculate_score(report: ValidationReport) -> int:
    """
    Compliance score 0-100: PASS counts 1, NOT_COVERED 0.5, VIOLATED 0.

    round(100 * (pass + 0.5 * not_covered) / total), halves rounded up.
    A report with no results scores 100.
    """
    total = len(report.results)
    if total == 0:
        return 100

    weighted = (
        report.summary.pass_count * PASS_WEIGHT
        + report.summary.not_covered * NOT_COVERED_WEIGHT
    )
    return int(math.floor(weighted / total * 100 + 0.5))


# =============================================================================
# CONFIG BOUNDARY
# =============================================================================


def parse_enforcement_config(raw: Any) -> EnforcementConfig:
    """
    Build an EnforcementConfig from the raw "enforcement" object of config.json.

    Accepts camelCase (scoreThreshold, autoPromote) or snake_case keys.
    Invalid values are logged and replaced by the default; this never raises.
    """
    if raw is None:
        return DEFAULT_ENFORCEMENT
    if not isinstance(raw, dict):
        logger.warning(f"[Config] Ignoring non-object enforcement config: {type(raw).__name__}")
        return DEFAULT_ENFORCEMENT

    mode = raw.get("mode", DEFAULT_ENFORCEMENT.mode)
    if mode not in ENFORCEMENT_MODES:
        logger.warning(
            f"[Config] Unknown enforcement mode {mode!r}, using '{DEFAULT_ENFORCEMENT.mode}'"
        )
        mode = DEFAULT_ENFORCEMENT.mode

    threshold = raw.get("scoreThreshold", raw.get("score_threshold", DEFAULT_ENFORCEMENT.score_threshold))
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 100:
        logger.warning(
            f"[Config] Invalid score threshold {threshold!r}, "
            f"using {DEFAULT_ENFORCEMENT.score_threshold}"
        )
        threshold = DEFAULT_ENFORCEMENT.score_threshold

    auto_promote = raw.get("autoPromote", raw.get("auto_promote", DEFAULT_ENFORCEMENT.auto_promote))
    if not isinstance(auto_promote, bool):
        logger.warning(f"[Config] Invalid autoPromote {auto_promote!r}, using default")
        auto_promote = DEFAULT_ENFORCEMENT.auto_promote

    return EnforcementConfig(mode=mode, score_threshold=int(threshold), auto_promote=auto_promote)
