"""Shared fixtures -- rule factory, sample rules, mock LLM, temp project."""

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from rulebound.rules.models import Rule

SECRETS_RULE_MD = """---
title: No Hardcoded Secrets
category: security
severity: error
modality: must
tags: [secrets, security]
---
Never hardcode API keys, passwords, or tokens in source code.

- Load secrets from environment variables
- Use a secrets manager in production
"""

JWT_RULE_MD = """---
title: Use JWT Authentication
category: auth
modality: should
tags: jwt, authentication, security
---
All API endpoints must use JWT tokens for authentication.

- Store tokens in httpOnly cookies
- Never store tokens in localStorage
"""

# Literal secret in a plan whose wording shares almost nothing with the rule text,
# so only the keyword layer has an opinion on it.
SECRET_PLAN = (
    'Rotate secrets for the billing worker: set the token to "sk_live_abc123" '
    "inside settings.py"
)
UNRELATED_PLAN = "Document the release process in the README"


@pytest.fixture
def make_rule():
    """Factory for Rule objects with sensible defaults."""

    def _make(id: str = "general.rule", title: str = "Sample Rule", **kwargs) -> Rule:
        for key in ("tags", "stack", "scope", "team", "change_types"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return Rule(id=id, title=title, **kwargs)

    return _make


@pytest.fixture
def secrets_rule(make_rule) -> Rule:
    return make_rule(
        id="security.no-secrets",
        title="No Hardcoded Secrets",
        content=(
            "Never hardcode API keys, passwords, or tokens in source code.\n\n"
            "- Load secrets from environment variables\n"
            "- Use a secrets manager in production"
        ),
        category="security",
        tags=["secrets", "security"],
        severity="error",
        modality="must",
    )


@pytest.fixture
def auth_rule(make_rule) -> Rule:
    return make_rule(
        id="auth.jwt",
        title="Use JWT Authentication",
        content=(
            "All API endpoints must use JWT tokens for authentication.\n\n"
            "- Store tokens in httpOnly cookies\n"
            "- Never store tokens in localStorage"
        ),
        category="auth",
        tags=["jwt", "authentication", "security"],
    )


@pytest.fixture
def mock_llm():
    """Mock judgment provider that returns a PASS verdict without API calls."""
    client = AsyncMock()
    client.call.return_value = SimpleNamespace(
        content='{"status": "PASS", "confidence": 0.9, "reason": "Plan complies"}',
        model="mock-model",
    )
    return client


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project with two rules, moderate enforcement, and two agents."""
    rules = tmp_path / ".rulebound" / "rules"
    (rules / "security").mkdir(parents=True)
    (rules / "auth").mkdir(parents=True)
    (rules / "security" / "no-secrets.md").write_text(SECRETS_RULE_MD, encoding="utf-8")
    (rules / "auth" / "jwt.md").write_text(JWT_RULE_MD, encoding="utf-8")

    config = {
        "project": {"name": "billing", "stack": ["python"], "scope": ["backend"]},
        "enforcement": {"mode": "moderate", "scoreThreshold": 70},
    }
    agents = {
        "agents": {
            "security-bot": {"roles": ["security"], "rules": ["security/*"], "enforcement": "strict"},
            "reviewer": {"roles": ["general"]},
        }
    }
    (tmp_path / ".rulebound" / "config.json").write_text(json.dumps(config), encoding="utf-8")
    (tmp_path / ".rulebound" / "agents.json").write_text(json.dumps(agents), encoding="utf-8")
    return tmp_path


@pytest.fixture
def secret_plan() -> str:
    return SECRET_PLAN


@pytest.fixture
def unrelated_plan() -> str:
    return UNRELATED_PLAN
