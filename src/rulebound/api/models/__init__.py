"""Pydantic models for API request/response contracts."""
from .requests import FindRulesRequest, ReviewRequest, ValidateRequest
from .responses import (
    FindRulesResponse,
    HealthResponse,
    ReviewResponse,
    RuleItem,
    ValidateResponse,
)
