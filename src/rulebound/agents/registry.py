"""
Agent registry -- review personas defined in .rulebound/agents.json.

An agent is a named reviewer that sees only a subset of the rules:

    {
      "agents": {
        "security-bot": {"roles": ["security"], "rules": ["security/*"],
                         "enforcement": "strict"},
        "reviewer":     {"roles": ["general"]}
      }
    }

Usage:
    agents = load_agents_config(Path.cwd())
    for agent in agents:
        ids = resolve_agent_rules(agent, [r.id for r in rules])
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import AGENTS_FILE, CONFIG_DIR, read_json
from ..enforcement.policy import ENFORCEMENT_MODES, EnforcementMode

logger = logging.getLogger(__name__)

ALL_RULES = "all"
WILDCARD_SUFFIX = "/*"
DEFAULT_AGENT_ENFORCEMENT: EnforcementMode = "advisory"


@dataclass(frozen=True)
class AgentProfile:
    """A configured reviewer.

    Attributes:
        name: Key in agents.json.
        roles: Free-form labels shown in review output.
        rules: Patterns: "all", "<prefix>/*", or an exact rule id.
        enforcement: The agent's enforcement mode.
    """

    name: str
    roles: tuple[str, ...] = ()
    rules: tuple[str, ...] = (ALL_RULES,)
    enforcement: EnforcementMode = DEFAULT_AGENT_ENFORCEMENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "roles": list(self.roles),
            "rules": list(self.rules),
            "enforcement": self.enforcement,
        }


def _strings(value: Any) -> tuple[str, ...]:
    return tuple(v for v in value if isinstance(v, str))


def parse_agents_config(raw: Any) -> list[AgentProfile]:
    """Build AgentProfiles from parsed agents.json. Anything malformed yields []."""
    if not isinstance(raw, dict):
        return []
    agents = raw.get("agents")
    if not isinstance(agents, dict):
        return []

    profiles = []
    for name, value in agents.items():
        entry = value if isinstance(value, dict) else {}

        roles = _strings(entry["roles"]) if isinstance(entry.get("roles"), list) else ()
        rules = _strings(entry["rules"]) if isinstance(entry.get("rules"), list) else (ALL_RULES,)

        enforcement = entry.get("enforcement")
        if enforcement not in ENFORCEMENT_MODES:
            if enforcement is not None:
                logger.warning(
                    f"[Agents] Agent '{name}' has invalid enforcement {enforcement!r}, "
                    f"using '{DEFAULT_AGENT_ENFORCEMENT}'"
                )
            enforcement = DEFAULT_AGENT_ENFORCEMENT

        profiles.append(
            AgentProfile(name=str(name), roles=roles, rules=rules, enforcement=enforcement)
        )
    return profiles


def load_agents_config(cwd: Path | str) -> list[AgentProfile]:
    """Load <cwd>/.rulebound/agents.json. Missing or malformed file yields []."""
    agents = parse_agents_config(read_json(Path(cwd) / CONFIG_DIR / AGENTS_FILE))
    logger.debug(f"[Agents] Loaded {len(agents)} agent profile(s)")
    return agents


def _matches(pattern: str, rule_id: str) -> bool:
    if pattern.endswith(WILDCARD_SUFFIX):
        return rule_id.startswith(pattern[: -len(WILDCARD_SUFFIX)] + ".")
    return rule_id == pattern


def resolve_agent_rules(agent: AgentProfile, rule_ids: list[str]) -> list[str]:
    """Rule ids this agent reviews, in the order given."""
    if ALL_RULES in agent.rules:
        return list(rule_ids)
    return [rid for rid in rule_ids if any(_matches(p, rid) for p in agent.rules)]


def select_agents(agents: list[AgentProfile], names: str | list[str] | None) -> list[AgentProfile]:
    """Filter agents by a comma-separated (or list of) case-insensitive names."""
    if not names:
        return list(agents)
    if isinstance(names, str):
        names = names.split(",")
    wanted = {n.strip().lower() for n in names if n.strip()}
    return [a for a in agents if a.name.lower() in wanted]
