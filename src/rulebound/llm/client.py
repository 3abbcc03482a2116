"""
Provider-agnostic async LLM client used by the delegated matcher.

Features:
  - Prompt caching (Anthropic cache_control, OpenAI automatic prefix caching)
  - Token tracking per call and cumulative cost estimate
  - Retry with exponential backoff on transient failures
  - Fails loudly: a missing SDK, API key, or unsupported provider raises
    LLMUnavailableError at construction; exhausted retries raise LLMCallError

Supports: Anthropic (Claude) and OpenAI (GPT / o-series).

    prompt = CacheablePrompt(
        system="You are a coding rule compliance evaluator...",  # cached
        context="Rule: No Hardcoded Secrets ...",                # cached per rule
        user_message="Plan to evaluate: ...",                    # never cached
    )
    response = await client.call(prompt=prompt, role="rule_judgment", temperature=0.0)
    response.content  # str
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any

from ..errors import LLMCallError, LLMUnavailableError
from ..security.prompt_guard import sanitize_for_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120
DEFAULT_MAX_RETRIES = 2
DEFAULT_MAX_PROMPT_LENGTH = 200_000
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 30.0

SUPPORTED_PROVIDERS = ("anthropic", "openai")

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}

API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}

INSTALL_HINT = {
    "anthropic": "pip install 'rulebound[llm]'  (or: pip install anthropic)",
    "openai": "pip install 'rulebound[llm]'  (or: pip install openai)",
}

ANTHROPIC_COST_PER_1K_INPUT = 0.003
ANTHROPIC_COST_PER_1K_CACHED = 0.0003
ANTHROPIC_COST_PER_1K_OUTPUT = 0.015
OPENAI_COST_PER_1K_INPUT = 0.005
OPENAI_COST_PER_1K_CACHED = 0.0025
OPENAI_COST_PER_1K_OUTPUT = 0.015

RETRYABLE_ERRORS = {
    "RateLimitError",
    "APITimeoutError",
    "InternalServerError",
    "APIConnectionError",
    "Timeout",
    "ConnectError",
}


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class CacheablePrompt:
    """
    Prompt split into cacheable (stable) and dynamic parts.

      - system: Evaluation instructions (identical for every rule)
      - context: The rule under evaluation
      - user_message: The plan (changes every run)
    """

    system: str = ""
    context: str = ""
    user_message: str = ""

    def to_flat_prompt(self) -> str:
        return "\n\n".join(p for p in (self.system, self.context, self.user_message) if p)

    @property
    def total_length(self) -> int:
        return len(self.system) + len(self.context) + len(self.user_message)


@dataclass
class TokenUsage:
    """Token usage for a single call (or accumulated across calls)."""

    input_tokens: int = 0
    output_tokens: int = 0
    cached_input_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0
    cache_hit: bool = False

    def __post_init__(self):
        self.total_tokens = self.input_tokens + self.output_tokens


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    provider: str = ""
    latency_ms: float = 0.0
    cached: bool = False


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """
    Async client over the Anthropic and OpenAI SDKs.

    Usage:
        client = LLMClient(provider="anthropic")
        response = await client.call(prompt="Evaluate this", role="rule_judgment")
    """

    def __init__(
        self,
        provider: str = "anthropic",
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        self._provider = provider.lower()
        if self._provider not in SUPPORTED_PROVIDERS:
            raise LLMUnavailableError(
                f"Unsupported LLM provider '{provider}'. "
                f"Choose one of: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        self._model = model or DEFAULT_MODELS[self._provider]
        self._api_key = api_key or self._load_api_key()
        self._timeout = timeout
        self._max_retries = max_retries
        self._max_prompt_length = max_prompt_length
        self._total_usage = TokenUsage()
        self._client: Any = self._init_client()

        logger.info(
            f"[LLM] Initialized {self._provider} client "
            f"(model={self._model}, timeout={self._timeout}s)"
        )

    def _load_api_key(self) -> str:
        env_var = API_KEY_ENV[self._provider]
        key = os.environ.get(env_var, "").strip()
        if not key:
            raise LLMUnavailableError(
                f"The LLM layer requires {env_var} to be set for provider '{self._provider}'"
            )
        return key

    def _init_client(self) -> Any:
        """Create the provider SDK client. Raises if the SDK is not installed."""
        try:
            if self._provider == "anthropic":
                import anthropic

                return anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)

            import openai

            return openai.AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        except ImportError as e:
            raise LLMUnavailableError(
                f"The LLM layer requires the {self._provider} SDK. "
                f"Install it: {INSTALL_HINT[self._provider]}"
            ) from e

    async def call(
        self,
        prompt: str | CacheablePrompt,
        role: str = "assistant",
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """
        Make an LLM call with prompt caching and retries.

        Args:
            prompt: String or CacheablePrompt. Strings become the user message.
            role: Semantic role hint, used for logging only.
            temperature: Sampling temperature (0.0 = deterministic).
            max_tokens: Maximum output tokens.

        Raises:
            LLMCallError: The provider failed after all retries.
        """
        if isinstance(prompt, str):
            prompt = CacheablePrompt(user_message=prompt)
        prompt = self._sanitize_prompt(prompt)

        start = time.time()
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._call_provider(prompt, temperature, max_tokens)
            except Exception as e:
                last_error = e
                if self._is_retryable(e) and attempt < self._max_retries:
                    delay = min(RETRY_BASE_DELAY * (2**attempt), RETRY_MAX_DELAY)
                    logger.warning(
                        f"[LLM] Retryable error (attempt {attempt + 1}): "
                        f"{type(e).__name__}. Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                break

            response.latency_ms = (time.time() - start) * 1000
            self._track_usage(response.usage)
            logger.debug(
                f"[LLM] {self._provider}/{role}: "
                f"{response.usage.input_tokens}in "
                f"({response.usage.cached_input_tokens} cached) + "
                f"{response.usage.output_tokens}out "
                f"${response.usage.estimated_cost_usd:.4f} "
                f"({response.latency_ms:.0f}ms)"
            )
            return response

        logger.error(
            f"[LLM] Call failed after {attempt + 1} attempt(s): {type(last_error).__name__}"
        )
        raise LLMCallError(
            f"{self._provider} call failed: {type(last_error).__name__}: {last_error}"
        ) from last_error

    def _sanitize_prompt(self, prompt: CacheablePrompt) -> CacheablePrompt:
        limit = self._max_prompt_length // 3
        return CacheablePrompt(
            system=sanitize_for_prompt(prompt.system, max_length=limit),
            context=sanitize_for_prompt(prompt.context, max_length=limit),
            user_message=sanitize_for_prompt(prompt.user_message, max_length=limit),
        )

    async def _call_provider(
        self, prompt: CacheablePrompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        if self._provider == "anthropic":
            return await self._call_anthropic(prompt, temperature, max_tokens)
        return await self._call_openai(prompt, temperature, max_tokens)

    async def _call_anthropic(
        self, prompt: CacheablePrompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        """Anthropic Claude with explicit prompt caching (cache_control)."""
        system_blocks = [
            {"type": "text", "text": text, "cache_control": {"type": "ephemeral"}}
            for text in (prompt.system, prompt.context)
            if text
        ]
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt.user_message}],
        }
        if system_blocks:
            kwargs["system"] = system_blocks

        response = await self._client.messages.create(**kwargs)

        usage_data = response.usage
        cached = getattr(usage_data, "cache_read_input_tokens", 0) or 0
        input_tok = getattr(usage_data, "input_tokens", 0) or 0
        output_tok = getattr(usage_data, "output_tokens", 0) or 0
        cost = (
            (input_tok - cached) * ANTHROPIC_COST_PER_1K_INPUT / 1000
            + cached * ANTHROPIC_COST_PER_1K_CACHED / 1000
            + output_tok * ANTHROPIC_COST_PER_1K_OUTPUT / 1000
        )
        text = "".join(
            getattr(block, "text", "") for block in response.content
        )

        return LLMResponse(
            content=text,
            usage=TokenUsage(
                input_tokens=input_tok,
                output_tokens=output_tok,
                cached_input_tokens=cached,
                estimated_cost_usd=round(cost, 6),
                cache_hit=cached > 0,
            ),
            model=self._model,
            provider="anthropic",
            cached=cached > 0,
        )

    async def _call_openai(
        self, prompt: CacheablePrompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        """OpenAI chat completions in JSON mode (automatic prefix caching)."""
        messages = [
            {"role": "system", "content": text}
            for text in (prompt.system, prompt.context)
            if text
        ]
        messages.append({"role": "user", "content": prompt.user_message})

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )

        usage_data = response.usage
        input_tok = usage_data.prompt_tokens if usage_data else 0
        output_tok = usage_data.completion_tokens if usage_data else 0
        details = getattr(usage_data, "prompt_tokens_details", None)
        cached_tok = (getattr(details, "cached_tokens", 0) or 0) if details else 0
        cost = (
            (input_tok - cached_tok) * OPENAI_COST_PER_1K_INPUT / 1000
            + cached_tok * OPENAI_COST_PER_1K_CACHED / 1000
            + output_tok * OPENAI_COST_PER_1K_OUTPUT / 1000
        )

        return LLMResponse(
            content=response.choices[0].message.content or "",
            usage=TokenUsage(
                input_tokens=input_tok,
                output_tokens=output_tok,
                cached_input_tokens=cached_tok,
                estimated_cost_usd=round(cost, 6),
                cache_hit=cached_tok > 0,
            ),
            model=self._model,
            provider="openai",
            cached=cached_tok > 0,
        )

    def _is_retryable(self, error: Exception) -> bool:
        return type(error).__name__ in RETRYABLE_ERRORS

    def _track_usage(self, usage: TokenUsage) -> None:
        self._total_usage.input_tokens += usage.input_tokens
        self._total_usage.output_tokens += usage.output_tokens
        self._total_usage.cached_input_tokens += usage.cached_input_tokens
        self._total_usage.total_tokens += usage.total_tokens
        self._total_usage.estimated_cost_usd += usage.estimated_cost_usd

    @property
    def total_usage(self) -> TokenUsage:
        """Cumulative token usage across all calls in this client's lifetime."""
        return self._total_usage

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model


# =============================================================================
# FACTORY
# =============================================================================


def create_client(
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    **kwargs,
) -> LLMClient:
    """
    Create an LLM client, detecting the provider from the environment if not given.

    Detection order:
      1. Explicit provider argument
      2. ANTHROPIC_API_KEY set -> anthropic
      3. OPENAI_API_KEY set -> openai
      4. Default: anthropic (which then fails loudly on the missing key)
    """
    if provider is None:
        if os.environ.get("ANTHROPIC_API_KEY"):
            provider = "anthropic"
        elif os.environ.get("OPENAI_API_KEY"):
            provider = "openai"
        else:
            provider = "anthropic"

    return LLMClient(provider=provider, model=model, api_key=api_key, **kwargs)
