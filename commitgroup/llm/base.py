"""Base classes and shared utilities for LLM providers."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from commitgroup.llm.exceptions import (
    AuthenticationError,
    LLMError,
    MissingAPIKeyError,
    TransientUpstreamError,
    UpstreamRequestError,
)

# HTTP status codes that mean the credentials were rejected
AUTH_STATUS_CODES = (401, 403)

# Client errors that may succeed on a later attempt
RETRYABLE_CLIENT_STATUS_CODES = (408, 409, 429)


@dataclass
class LLMResult:
    """Raw result from an LLM generation call, including token usage."""

    raw_response: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


# System prompt for the LLM (shared across all providers)
SYSTEM_PROMPT = """You are an expert software engineer grouping file changes into git commits.
Be precise: only describe changes actually shown in the provided diffs.
Output ONLY valid JSON matching the requested structure. No markdown fences or commentary."""


def _status_code(error: Exception) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def classify_provider_error(error: Exception, provider_name: str) -> LLMError:
    """Map an SDK exception onto the commitgroup error taxonomy.

    Credential rejections and other 4xx request rejections are terminal.
    Request timeouts, conflicts, rate limits, server errors and failures
    without a status code are transient.

    Args:
        error: The exception raised by the provider SDK.
        provider_name: Human-readable provider name for the message.

    Returns:
        An AuthenticationError, UpstreamRequestError or
        TransientUpstreamError to raise.
    """
    if isinstance(error, LLMError):
        return error

    message = f"{provider_name} API call failed: {error}"
    status = _status_code(error)
    if status in AUTH_STATUS_CODES:
        return AuthenticationError(message)
    if status is not None and 400 <= status < 500 and status not in RETRYABLE_CLIENT_STATUS_CODES:
        return UpstreamRequestError(message)
    return TransientUpstreamError(message)


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    #: Model used when the caller does not name one
    default_model: str = ""

    @abstractmethod
    def generate(self, model: str, prompt: str) -> LLMResult:
        """Send a prompt to the given model and return its raw text.

        Args:
            model: The model identifier to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            AuthenticationError: If the provider rejects the credentials.
            UpstreamRequestError: If the provider rejects the request.
            TransientUpstreamError: For network, rate-limit and server errors.
        """
        pass

    @abstractmethod
    def get_api_key(self) -> str:
        """Get the API key from environment or credentials file.

        Checks in order:
        1. Environment variable (including a loaded .env file)
        2. ~/.commitgroup/credentials file

        Returns:
            The API key string.

        Raises:
            MissingAPIKeyError: If the API key is not found.
        """
        pass

    def _get_api_key_with_fallback(self, env_var_name: str, provider_name: str) -> str:
        """Helper to get API key with fallback to credentials file.

        Args:
            env_var_name: Environment variable name to check.
            provider_name: Human-readable provider name for error messages.

        Returns:
            The API key string.

        Raises:
            MissingAPIKeyError: If the API key is not found.
        """
        api_key = os.getenv(env_var_name)
        if api_key:
            return api_key

        from commitgroup.global_config import GlobalConfigError, get_credential

        try:
            api_key = get_credential(env_var_name)
        except GlobalConfigError:
            api_key = None
        if api_key:
            return api_key

        raise MissingAPIKeyError(
            f"{provider_name} API key not found. Set it using:\n"
            f"  1. Environment variable: export {env_var_name}=your_key_here\n"
            f"  2. Run: commitgroup config set-key {provider_name.lower()}\n"
            f"  3. Manually add to ~/.commitgroup/credentials"
        )

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token estimate used when the provider reports no usage."""
        return len(text) // 4
