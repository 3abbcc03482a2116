"""
LLM Client -- async wrapper over the Anthropic and OpenAI SDKs.

Used only by the opt-in delegated matcher. Construction fails loudly when the
SDK or API key is missing.

Usage:
    from rulebound.llm import create_client

    client = create_client()  # Auto-detects provider from env
    response = await client.call(prompt="Evaluate this", role="rule_judgment")
"""

from .client import CacheablePrompt, LLMClient, LLMResponse, TokenUsage, create_client
from .json_parser import extract_json

__all__ = [
    "CacheablePrompt",
    "LLMClient",
    "LLMResponse",
    "TokenUsage",
    "create_client",
    "extract_json",
]
