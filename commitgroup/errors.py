"""Exception classes shared across commitgroup.

Contains:
- CommitGroupError: Base exception for all commitgroup errors
- ValidationError: Malformed or oversized input, never retried
- ResponseParseError: Unusable model output, recovered with fallback groups
- CacheError: Durable cache failure, recovered as a miss or no-op
"""


class CommitGroupError(Exception):
    """Base exception for commitgroup errors."""

    retryable = False


class ValidationError(CommitGroupError):
    """Raised when caller input is malformed or exceeds a hard limit."""

    pass


class ResponseParseError(CommitGroupError):
    """Raised when the model response holds no usable grouping."""

    pass


class CacheError(CommitGroupError):
    """Raised when the durable cache tier cannot be read or written."""

    pass
