"""LLM provider module for commitgroup.

This module provides a unified interface to multiple LLM providers.
The active provider is configured in ~/.commitgroup/config.yaml.
"""

from dotenv import load_dotenv

from commitgroup.config import LLMProvider
from commitgroup.llm.base import (
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)
from commitgroup.llm.exceptions import (
    AuthenticationError,
    LLMError,
    MissingAPIKeyError,
    TransientUpstreamError,
    UpstreamExhaustedError,
    UpstreamRequestError,
    UpstreamTimeoutError,
)

# Load environment variables from .env file
load_dotenv()


def get_provider(provider: LLMProvider | None = None) -> BaseLLMProvider:
    """Get an LLM provider instance.

    Args:
        provider: The provider to use. Defaults to ACTIVE_PROVIDER from config.

    Returns:
        An instance of the appropriate LLM provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    import commitgroup.config as _config

    provider = provider or _config.ACTIVE_PROVIDER

    if provider == LLMProvider.GOOGLE:
        from commitgroup.llm.google_provider import GoogleProvider

        return GoogleProvider()

    elif provider == LLMProvider.ANTHROPIC:
        from commitgroup.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider()

    elif provider == LLMProvider.OPENAI:
        from commitgroup.llm.openai_provider import OpenAIProvider

        return OpenAIProvider()

    elif provider == LLMProvider.OPENROUTER:
        from commitgroup.llm.openrouter_provider import OpenRouterProvider

        return OpenRouterProvider()

    elif provider == LLMProvider.GROQ:
        from commitgroup.llm.groq_provider import GroqProvider

        return GroqProvider()

    elif provider == LLMProvider.COHERE:
        from commitgroup.llm.cohere_provider import CohereProvider

        return CohereProvider()

    else:
        raise ValueError(f"Unsupported provider: {provider}")


__all__ = [
    "BaseLLMProvider",
    "LLMResult",
    "LLMError",
    "TransientUpstreamError",
    "UpstreamTimeoutError",
    "UpstreamExhaustedError",
    "AuthenticationError",
    "MissingAPIKeyError",
    "UpstreamRequestError",
    "classify_provider_error",
    "get_provider",
]
