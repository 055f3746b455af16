"""Commit grouping pipeline for commitgroup.

This package turns change records into grouped commit messages:
- prompt: Build the sanitized grouping prompt
- batcher: Share one in-flight request between concurrent callers
- retry: Bounded retries and request time budgets
- parser: Parse and validate the model's grouping output
- policy: Commit message rules and fallback messages
- service: CommitGroupingService, the orchestration entry point
"""

from commitgroup.grouping.batcher import RequestBatcher
from commitgroup.grouping.parser import (
    extract_json_object,
    fallback_response,
    parse_grouping_response,
)
from commitgroup.grouping.policy import (
    MessageValidation,
    fallback_message,
    validate_commit_message,
)
from commitgroup.grouping.prompt import (
    PromptBundle,
    build_grouping_prompt,
    ensure_prompt_size,
)
from commitgroup.grouping.retry import calculate_ai_timeout, with_retry
from commitgroup.grouping.service import CommitGroupingService, filter_records

__all__ = [
    # Batcher
    "RequestBatcher",
    # Parser
    "extract_json_object",
    "fallback_response",
    "parse_grouping_response",
    # Policy
    "MessageValidation",
    "fallback_message",
    "validate_commit_message",
    # Prompt
    "PromptBundle",
    "build_grouping_prompt",
    "ensure_prompt_size",
    # Retry
    "calculate_ai_timeout",
    "with_retry",
    # Service
    "CommitGroupingService",
    "filter_records",
]
