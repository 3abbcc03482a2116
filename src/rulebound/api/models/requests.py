"""
Pydantic request models -- the API contract.

  POST /api/v1/validate    -> ValidateRequest
  POST /api/v1/review      -> ReviewRequest
  POST /api/v1/rules/find  -> FindRulesRequest
"""

from typing import Literal

from pydantic import BaseModel, Field


class ValidateRequest(BaseModel):
    """Validate a plan against the project's rules."""

    plan: str = Field(..., description="Free-text description of the planned or actual change")
    task: str | None = Field(None, description="Report label (default: first 100 chars of plan)")
    use_llm: bool = Field(False, description="Add the delegated LLM judgment layer")
    llm_provider: Literal["anthropic", "openai"] | None = None
    llm_model: str | None = None


class ReviewRequest(BaseModel):
    """Multi-agent review of a plan."""

    plan: str
    agents: list[str] | None = Field(
        None, description="Agent names to include (None = all configured agents)"
    )
    use_llm: bool = False


class FindRulesRequest(BaseModel):
    """Rule lookup. All filters optional and combined with AND."""

    title: str | None = None
    category: str | None = None
    tags: str | None = Field(None, description="Comma-separated tags")
    task: str | None = Field(None, max_length=10_000)
