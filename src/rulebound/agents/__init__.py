"""
Review agents -- per-agent rule subsets and consensus across agents.

Usage:
    from rulebound.agents import load_agents_config, review_with_agents

    agents = load_agents_config(cwd)
    consensus = await review_with_agents(plan, agents, rules)
"""

from .consensus import (
    AgentReviewResult,
    ConsensusResult,
    build_consensus,
    review_agent,
    review_with_agents,
)
from .registry import (
    AgentProfile,
    load_agents_config,
    parse_agents_config,
    resolve_agent_rules,
    select_agents,
)

__all__ = [
    "AgentProfile",
    "AgentReviewResult",
    "ConsensusResult",
    "build_consensus",
    "load_agents_config",
    "parse_agents_config",
    "resolve_agent_rules",
    "review_agent",
    "review_with_agents",
    "select_agents",
]
