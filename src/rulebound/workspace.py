"""
Workspace -- everything a run needs from a project directory, loaded once.

    ws = load_workspace(Path.cwd())
    ws.rules        # resolved rule set (extends + local)
    ws.applicable(plan)  # context-filtered for this plan

The API loads one Workspace at startup; the CLI loads one per command.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .agents.registry import AgentProfile, load_agents_config
from .config import RuleboundConfig, load_config
from .enforcement.policy import EnforcementConfig, parse_enforcement_config
from .rules.context import match_rules_by_context
from .rules.inheritance import RuleResolver
from .rules.loader import load_local_rules
from .rules.models import ProjectContext, Rule

logger = logging.getLogger(__name__)

TASK_CONTEXT_CHARS = 2000


@dataclass
class Workspace:
    cwd: Path
    config: RuleboundConfig
    rules: list[Rule] = field(default_factory=list)
    enforcement: EnforcementConfig = field(default_factory=EnforcementConfig)
    agents: list[AgentProfile] = field(default_factory=list)

    @property
    def project(self) -> ProjectContext | None:
        return self.config.project_context

    def applicable(self, plan: str) -> list[Rule]:
        """Rules relevant to this project and plan, most relevant first."""
        return match_rules_by_context(self.rules, self.project, plan[:TASK_CONTEXT_CHARS])


def load_workspace(cwd: Path | str, rules_dir: Path | str | None = None) -> Workspace:
    """
    Load config, rules, enforcement, and agents from cwd.

    Args:
        rules_dir: Load only this directory, skipping inheritance.
    """
    cwd = Path(cwd)
    config = load_config(cwd)

    if rules_dir is not None:
        rules = load_local_rules(rules_dir)
    else:
        rules = RuleResolver(config, cwd).resolve()

    workspace = Workspace(
        cwd=cwd,
        config=config,
        rules=rules,
        enforcement=parse_enforcement_config(config.enforcement),
        agents=load_agents_config(cwd),
    )
    logger.info(
        f"[Workspace] {len(workspace.rules)} rules, {len(workspace.agents)} agents, "
        f"enforcement={workspace.enforcement.mode}"
    )
    return workspace
