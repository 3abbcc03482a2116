"""Security utilities -- prompt injection defense and boundary input validation."""
from .prompt_guard import detect_injection_attempt, sanitize_for_prompt, wrap_user_content
from .validators import (
    MAX_PLAN_LENGTH,
    MAX_QUERY_LENGTH,
    ValidationError,
    validate_length,
    validate_not_empty,
    validate_plan,
)
