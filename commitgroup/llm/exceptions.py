"""LLM-related exception classes.

Contains all exception classes for LLM operations:
- LLMError: Base exception for LLM-related errors
- TransientUpstreamError: Network, rate-limit or server errors (retried)
- UpstreamTimeoutError: The request exceeded its time budget (retried)
- UpstreamExhaustedError: Primary and fallback models both failed
- AuthenticationError: Rejected credentials (never retried)
- UpstreamRequestError: The provider rejected the request itself (never retried)
- MissingAPIKeyError: Raised when API key is not set
"""

from commitgroup.errors import CommitGroupError


class LLMError(CommitGroupError):
    """Base exception for LLM-related errors."""

    pass


class TransientUpstreamError(LLMError):
    """Raised for upstream failures that may succeed on a later attempt."""

    retryable = True


class UpstreamTimeoutError(TransientUpstreamError):
    """Raised when a generation request exceeds its timeout."""

    pass


class UpstreamExhaustedError(TransientUpstreamError):
    """Raised when the primary retries and the fallback model all failed."""

    pass


class AuthenticationError(LLMError):
    """Raised when the provider rejects the credentials."""

    pass


class MissingAPIKeyError(AuthenticationError):
    """Raised when the required API key is not set."""

    pass


class UpstreamRequestError(LLMError):
    """Raised when the provider rejects the request (bad input, unknown model)."""

    pass
