"""
ValidationPipeline -- runs matcher layers in order and merges their verdicts.

Every layer sees the same raw (plan, rules) input; no layer sees another's
output. Layers run strictly in sequence because order decides ties.

Merge rule, per rule id:
  - keep the verdict with the strictly highest confidence
  - on an exact tie, the later layer wins

So a later, more precise layer (semantic, delegated) can override an earlier
cheap one without the cheap layer ever being skipped.
"""

import logging
from dataclasses import dataclass

from .models import Matcher, MatcherContext, MatchResult, PipelineResult

logger = logging.getLogger(__name__)


@dataclass
class _Ranked:
    result: MatchResult
    layer_index: int


def merge_results(result_sets: list[list[MatchResult]]) -> list[MatchResult]:
    """Merge per-layer results (given in layer order). Keeps first-seen rule order."""
    merged: dict[str, _Ranked] = {}

    for layer_index, results in enumerate(result_sets):
        for result in results:
            current = merged.get(result.rule_id)
            if current is None:
                merged[result.rule_id] = _Ranked(result, layer_index)
                continue
            higher = result.confidence > current.result.confidence
            tie_later = (
                result.confidence == current.result.confidence
                and layer_index > current.layer_index
            )
            if higher or tie_later:
                merged[result.rule_id] = _Ranked(result, layer_index)

    return [ranked.result for ranked in merged.values()]


class ValidationPipeline:
    """Ordered collection of matcher layers.

    Usage:
        pipeline = ValidationPipeline([KeywordMatcher(), SemanticMatcher()])
        result = await pipeline.run(MatcherContext(plan=plan, rules=tuple(rules)))
        result.results  # merged MatchResults
        result.layers   # ["keyword", "semantic"]
    """

    def __init__(self, matchers: list[Matcher]):
        self._matchers = list(matchers)

    @property
    def layers(self) -> list[str]:
        return [m.name for m in self._matchers]

    async def run(self, context: MatcherContext) -> PipelineResult:
        """Run every layer in order. A failing layer aborts the run."""
        result_sets: list[list[MatchResult]] = []

        for matcher in self._matchers:
            results = await matcher.match(context)
            logger.debug(f"[Pipeline] Layer '{matcher.name}': {len(results)} results")
            result_sets.append(list(results))

        merged = merge_results(result_sets)
        logger.info(
            f"[Pipeline] {len(merged)} rules evaluated by "
            f"{len(self._matchers)} layers ({', '.join(self.layers)})"
        )
        return PipelineResult(results=merged, layers=self.layers)
