"""Pydantic response models -- what the API returns."""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Liveness check."""

    status: str = "healthy"
    rules_loaded: int = 0
    agents_configured: int = 0
    uptime_seconds: float = 0.0


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationResultItem(BaseModel):
    rule_id: str
    rule_title: str
    severity: str
    modality: str
    status: str
    reason: str
    suggested_fix: str | None = None
    confidence: float = 0.0


class ValidationSummary(BaseModel):
    pass_count: int = Field(0, alias="pass")
    violated: int = 0
    not_covered: int = 0

    model_config = ConfigDict(populate_by_name=True)


class EnforcementInfo(BaseModel):
    mode: str
    score_threshold: int
    auto_promote: bool


class ValidateResponse(BaseModel):
    """Validation report plus the enforcement decision."""

    task: str
    rules_matched: int
    rules_total: int
    results: list[ValidationResultItem] = Field(default_factory=list)
    summary: ValidationSummary
    status: str
    layers: list[str] = Field(default_factory=list)
    score: int
    blocked: bool
    warn: bool = False
    suggest_promotion: bool = False
    enforcement: EnforcementInfo
    annotations: list[str] = Field(default_factory=list)


# =============================================================================
# REVIEW
# =============================================================================


class MatchResultItem(BaseModel):
    rule_id: str
    status: str
    confidence: float
    reason: str
    suggested_fix: str | None = None


class AgentReviewItem(BaseModel):
    agent_name: str
    roles: list[str] = Field(default_factory=list)
    results: list[MatchResultItem] = Field(default_factory=list)


class ReviewResponse(BaseModel):
    status: str
    summary: str
    agent_results: list[AgentReviewItem] = Field(default_factory=list)


# =============================================================================
# RULE LOOKUP
# =============================================================================


class RuleItem(BaseModel):
    id: str
    title: str
    content: str
    category: str
    tags: list[str] = Field(default_factory=list)
    severity: str
    modality: str
    stack: list[str] = Field(default_factory=list)
    scope: list[str] = Field(default_factory=list)
    team: list[str] = Field(default_factory=list)
    change_types: list[str] = Field(default_factory=list)
    file_path: str = ""


class FindRulesResponse(BaseModel):
    total: int
    rules: list[RuleItem] = Field(default_factory=list)
