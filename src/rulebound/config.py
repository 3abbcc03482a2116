"""
Project configuration -- parse and validate .rulebound/config.json.

Parse at the boundary: the raw JSON is validated once into a RuleboundConfig
and that value is passed explicitly to the resolver, pipeline, and policy.
There is no process-wide config store.

Example:
    {
      "project": {"name": "auth-service", "stack": ["java", "spring-boot"],
                  "scope": ["backend"], "team": "backend"},
      "extends": ["../shared-rules/.rulebound/rules", "company_rules"],
      "rulesDir": ".rulebound/rules",
      "enforcement": {"mode": "moderate", "scoreThreshold": 70, "autoPromote": true}
    }

Malformed or missing configuration never raises: it is logged and replaced
with defaults so later stages can report "nothing found".
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .rules.models import ProjectContext

logger = logging.getLogger(__name__)

CONFIG_DIR = ".rulebound"
CONFIG_FILE = "config.json"
AGENTS_FILE = "agents.json"


def _coerce_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if isinstance(v, (str, int, float))]
    return []


class ProjectSection(BaseModel):
    """The "project" block. Used only for rule relevance scoring."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    stack: list[str] = Field(default_factory=list)
    scope: list[str] = Field(default_factory=list)
    team: str | None = None

    @field_validator("stack", "scope", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> list[str]:
        return _coerce_str_list(value)

    @field_validator("team", mode="before")
    @classmethod
    def _team(cls, value: Any) -> str | None:
        if isinstance(value, list):
            return str(value[0]) if value else None
        return value if isinstance(value, str) else None

    def to_context(self) -> ProjectContext:
        return ProjectContext(
            name=self.name,
            stack=tuple(self.stack),
            scope=tuple(self.scope),
            team=self.team,
        )


class RuleboundConfig(BaseModel):
    """Validated project configuration. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    project: ProjectSection | None = None
    extends: list[str] = Field(default_factory=list)
    rules_dir: str | None = Field(default=None, alias="rulesDir")
    # Parsed separately by enforcement.parse_enforcement_config so an invalid
    # mode degrades only the enforcement block, not the whole file.
    enforcement: dict[str, Any] | None = None

    @field_validator("extends", mode="before")
    @classmethod
    def _extends(cls, value: Any) -> list[str]:
        return _coerce_str_list(value)

    @field_validator("project", mode="before")
    @classmethod
    def _project(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("enforcement", mode="before")
    @classmethod
    def _enforcement(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @property
    def project_context(self) -> ProjectContext | None:
        return self.project.to_context() if self.project else None


def read_json(path: Path) -> Any:
    """Read a JSON file. Returns None if missing or unreadable."""
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"[Config] Could not read {path}: {e}")
        return None


def parse_config(raw: Any) -> RuleboundConfig:
    """Validate raw JSON into a RuleboundConfig. Never raises."""
    if not isinstance(raw, dict):
        return RuleboundConfig()
    try:
        return RuleboundConfig.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"[Config] Invalid configuration, using defaults: {e.error_count()} error(s)")
        return RuleboundConfig()


def load_config(cwd: Path | str) -> RuleboundConfig:
    """Load <cwd>/.rulebound/config.json, or defaults if absent/malformed."""
    path = Path(cwd) / CONFIG_DIR / CONFIG_FILE
    return parse_config(read_json(path))
