"""Exceptions raised by rulebound. Fail-soft paths never raise these."""


class RuleboundError(Exception):
    """Base class for rulebound errors."""


class LLMUnavailableError(RuleboundError):
    """The delegated judgment provider cannot be used (SDK, key, or provider missing)."""


class LLMCallError(RuleboundError):
    """A provider call failed after all retries."""


class DelegatedResponseError(RuleboundError):
    """The judgment provider returned a response that does not match the verdict schema."""
