"""
Validation API -- validate plans, run multi-agent review, look up rules.

  POST /api/v1/validate    -- Validate a plan (report + score + block decision)
  POST /api/v1/review      -- Multi-agent consensus review
  POST /api/v1/rules/find  -- Filter the loaded rule set

Security:
  - Plans are size-limited (400 when empty or oversized)
  - Delegated-layer unavailability is a 503, never a silent downgrade
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ...agents.consensus import review_with_agents
from ...agents.registry import select_agents
from ...enforcement.policy import (
    BlockCheckInput,
    calculate_score,
    should_block,
    should_suggest_promotion,
    should_warn,
)
from ...errors import DelegatedResponseError, LLMCallError, LLMUnavailableError
from ...rules.loader import filter_rules
from ...security import MAX_QUERY_LENGTH, ValidationError, validate_length, validate_plan
from ...validation import format_annotation, validate_with_pipeline
from ...workspace import Workspace
from ..middleware.auth import AuthContext, verify_api_key
from ..middleware.rate_limit import check_rate_limit
from ..models.requests import FindRulesRequest, ReviewRequest, ValidateRequest
from ..models.responses import (
    EnforcementInfo,
    FindRulesResponse,
    ReviewResponse,
    RuleItem,
    ValidateResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_plan(plan: str) -> None:
    try:
        validate_plan(plan)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _check_query(body: FindRulesRequest) -> None:
    try:
        for name in ("title", "category", "tags"):
            value = getattr(body, name)
            if value is not None:
                validate_length(value, name, max_length=MAX_QUERY_LENGTH)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _delegated_error(e: Exception) -> HTTPException:
    if isinstance(e, LLMUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


@router.post("/validate", response_model=ValidateResponse)
async def validate(
    body: ValidateRequest,
    request: Request,
    auth: AuthContext = Depends(verify_api_key),
    _rate: None = Depends(check_rate_limit),
) -> ValidateResponse:
    """Validate a plan against the rules that apply to this project and plan."""
    _check_plan(body.plan)
    workspace: Workspace = request.app.state.workspace
    rules = workspace.applicable(body.plan)

    try:
        report = await validate_with_pipeline(
            body.plan,
            rules,
            task=body.task,
            use_llm=body.use_llm,
            llm_provider=body.llm_provider,
            llm_model=body.llm_model,
        )
    except (LLMUnavailableError, LLMCallError, DelegatedResponseError) as e:
        logger.error(f"[Gateway] Delegated layer failed for {auth.client_id}: {e}")
        raise _delegated_error(e)

    score = calculate_score(report)
    enforcement = workspace.enforcement
    check = BlockCheckInput(
        has_must_violation=report.has_must_violation,
        score=score,
        has_should_violation=report.has_should_violation,
    )
    data = report.to_dict()
    return ValidateResponse(
        **data,
        score=score,
        blocked=should_block(enforcement, check),
        warn=should_warn(enforcement, report.has_should_violation),
        suggest_promotion=should_suggest_promotion(enforcement, score),
        enforcement=EnforcementInfo(
            mode=enforcement.mode,
            score_threshold=enforcement.score_threshold,
            auto_promote=enforcement.auto_promote,
        ),
        annotations=[a for a in (format_annotation(r) for r in report.results) if a],
    )


@router.post("/review", response_model=ReviewResponse)
async def review(
    body: ReviewRequest,
    request: Request,
    auth: AuthContext = Depends(verify_api_key),
    _rate: None = Depends(check_rate_limit),
) -> ReviewResponse:
    """Review a plan with every configured agent (or the named subset)."""
    _check_plan(body.plan)
    workspace: Workspace = request.app.state.workspace

    if not workspace.agents:
        raise HTTPException(
            status_code=400,
            detail="No agents configured. Create .rulebound/agents.json first.",
        )
    agents = select_agents(workspace.agents, body.agents)
    if not agents:
        available = ", ".join(a.name for a in workspace.agents)
        raise HTTPException(
            status_code=404, detail=f"No matching agents. Available: {available}"
        )

    try:
        consensus = await review_with_agents(
            body.plan, agents, workspace.rules, workspace.project, use_llm=body.use_llm
        )
    except (LLMUnavailableError, LLMCallError, DelegatedResponseError) as e:
        logger.error(f"[Gateway] Delegated layer failed during review: {e}")
        raise _delegated_error(e)

    return ReviewResponse(**consensus.to_dict())


@router.post("/rules/find", response_model=FindRulesResponse)
async def find_rules(
    body: FindRulesRequest,
    request: Request,
    auth: AuthContext = Depends(verify_api_key),
) -> FindRulesResponse:
    """Filter the loaded rule set by title, category, tags, and task text."""
    _check_query(body)
    workspace: Workspace = request.app.state.workspace
    rules = filter_rules(
        workspace.rules,
        title=body.title,
        category=body.category,
        tags=body.tags,
        task=body.task,
    )
    return FindRulesResponse(
        total=len(rules),
        rules=[RuleItem(**rule.to_dict()) for rule in rules],
    )
