"""
Input validators for text arriving at the API and CLI boundaries.

Parse at the boundary: plans and rule-search fields are checked here before
they reach the matchers.
"""

import logging

logger = logging.getLogger(__name__)

MAX_PLAN_LENGTH = 200_000
MAX_QUERY_LENGTH = 1_000


class ValidationError(ValueError):
    """Raised when input validation fails. Contains a user-friendly message."""


def validate_not_empty(value: str, field_name: str = "input") -> str:
    """Validate that a string is not empty or whitespace-only."""
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")
    return value


def validate_length(
    value: str,
    field_name: str = "input",
    min_length: int = 0,
    max_length: int = MAX_PLAN_LENGTH,
) -> str:
    """Validate string length is within bounds."""
    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


def validate_plan(plan: str, max_length: int = MAX_PLAN_LENGTH) -> str:
    """A plan must be non-blank and within the size limit."""
    validate_not_empty(plan, "plan")
    return validate_length(plan, "plan", max_length=max_length)
