"""Commit grouping orchestration.

CommitGroupingService ties the pieces together: input filtering, prompt
construction, the tiered cache, in-flight deduplication, bounded retries
with a one-shot fallback model, and response parsing.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

import commitgroup.config as _config
from commitgroup.cache import TieredCache, compute_fingerprint, generate_cache_key
from commitgroup.errors import ValidationError
from commitgroup.grouping.batcher import RequestBatcher
from commitgroup.grouping.parser import fallback_response, parse_grouping_response
from commitgroup.grouping.prompt import PromptBundle, build_grouping_prompt, ensure_prompt_size
from commitgroup.grouping.retry import calculate_ai_timeout, with_retry
from commitgroup.llm.base import BaseLLMProvider, LLMResult
from commitgroup.llm.exceptions import (
    TransientUpstreamError,
    UpstreamExhaustedError,
    UpstreamTimeoutError,
)
from commitgroup.models import AggregatedCommitResponse, ChangeRecord, CommitGroup, Suggestion
from commitgroup.sanitizer import should_skip_file

logger = logging.getLogger(__name__)

# Prefix separating grouping results from other entries sharing the cache
AGGREGATED_KEY_PREFIX = "agg_"


@dataclass
class PreparedRequest:
    """Everything needed to issue (or reuse) one grouping request."""

    records: list[ChangeRecord]
    skipped_files: list[str]
    bundle: PromptBundle
    cache_key: str
    fingerprint: str
    timeout: float


def filter_records(records: Sequence[ChangeRecord]) -> tuple[list[ChangeRecord], list[str]]:
    """Split records into those accepted for grouping and skipped file paths.

    Args:
        records: Candidate change records.

    Returns:
        Tuple of (accepted records, skipped file paths), both in input order.

    Raises:
        ValidationError: If records is empty, lists a file twice, or nothing
            remains after filtering.
    """
    if not records:
        raise ValidationError("No changes provided for grouping")

    seen: set[str] = set()
    for record in records:
        if record.file in seen:
            raise ValidationError(f"File listed more than once: {record.file}")
        seen.add(record.file)

    accepted: list[ChangeRecord] = []
    skipped: list[str] = []

    for record in records:
        if len(record.changes) > _config.MAX_DIFF_CONTENT_CHARS:
            logger.warning(
                "Skipping %s: change text too large (%d chars)", record.file, len(record.changes)
            )
            skipped.append(record.file)
            continue

        check = should_skip_file(record.file, record.changes)
        if check.skip:
            logger.warning("Skipping %s: %s", record.file, check.reason)
            skipped.append(record.file)
            continue

        accepted.append(record)

    if not accepted:
        raise ValidationError("No files left to group after filtering")

    return accepted, skipped


class CommitGroupingService:
    """Generate grouped commit messages for a set of change records."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        cache: TieredCache,
        batcher: RequestBatcher,
        model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        base_dir: Optional[Path] = None,
        max_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        fallback_on_failure: bool = False,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the service.

        Args:
            provider: The generation endpoint.
            cache: Result cache shared by every request of this process.
            batcher: In-flight deduplicator.
            model: Primary model. Defaults to the configured active model.
            fallback_model: Model tried once after the primary model's
                retries are exhausted. Defaults to the configured fallback.
            base_dir: Directory absolute paths are made relative to.
            max_attempts: Primary model attempts. Defaults to RETRY_ATTEMPTS.
            retry_delay_ms: Base retry delay. Defaults to RETRY_DELAY_MS.
            fallback_on_failure: Return one fallback group per file instead of
                raising when both models fail.
            sleep: Awaitable sleep used between retries.
        """
        self.provider = provider
        self.cache = cache
        self.batcher = batcher
        self.base_dir = base_dir
        self.max_attempts = max_attempts if max_attempts is not None else _config.RETRY_ATTEMPTS
        self.retry_delay_ms = (
            retry_delay_ms if retry_delay_ms is not None else _config.RETRY_DELAY_MS
        )
        self.fallback_on_failure = fallback_on_failure
        self._model = model
        self._fallback_model = fallback_model
        self._model_name: Optional[str] = None
        self._sleep = sleep

    def get_model_name(self) -> str:
        """Primary model name, resolved once and reused for the process lifetime."""
        if self._model_name is None:
            self._model_name = self._model or _config.ACTIVE_MODEL or self.provider.default_model
        return self._model_name

    def get_fallback_model(self) -> str:
        """Model used for the single attempt after primary retries are exhausted."""
        return self._fallback_model or _config.get_fallback_model()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def generate_aggregated_commits(
        self, records: Sequence[ChangeRecord]
    ) -> AggregatedCommitResponse:
        """Group change records into commits with generated messages.

        Args:
            records: One change record per changed file.

        Returns:
            AggregatedCommitResponse whose groups cover every accepted file
            exactly once.

        Raises:
            ValidationError: If the input is empty, malformed or too large.
            AuthenticationError: If the provider rejects the credentials.
            UpstreamRequestError: If the provider rejects the request itself.
            UpstreamExhaustedError: If the primary and fallback models both
                failed (unless fallback_on_failure is set).
        """
        request = self.prepare(records)

        cached = await self._lookup_cache(request)
        if cached is not None:
            return cached

        primary = self.get_model_name()
        try:
            return await with_retry(
                lambda: self._execute(request, primary),
                max_attempts=self.max_attempts,
                delay_ms=self.retry_delay_ms,
                sleep=self._sleep,
            )
        except TransientUpstreamError as e:
            fallback = self.get_fallback_model()
            logger.warning(
                "Primary model (%s) failed: %s. Trying fallback model (%s)", primary, e, fallback
            )

        try:
            return await self._execute(request, fallback)
        except TransientUpstreamError as e:
            if self.fallback_on_failure:
                logger.error("All models failed, using fallback messages: %s", e)
                return fallback_response(request.records).model_copy(
                    update={"skipped_files": request.skipped_files}
                )
            raise UpstreamExhaustedError(
                f"Primary model ({primary}) and fallback model ({fallback}) both failed: {e}"
            ) from e

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def prepare(self, records: Sequence[ChangeRecord]) -> PreparedRequest:
        """Filter records, build and size-check the prompt, and derive cache keys.

        Raises:
            ValidationError: If the input or the resulting prompt is invalid.
        """
        accepted, skipped = filter_records(records)

        bundle = build_grouping_prompt(accepted, base_dir=self.base_dir)
        ensure_prompt_size(bundle.prompt)

        total_changes = sum(record.total_changes for record in accepted)
        return PreparedRequest(
            records=accepted,
            skipped_files=skipped,
            bundle=bundle,
            cache_key=AGGREGATED_KEY_PREFIX + generate_cache_key(accepted),
            fingerprint=compute_fingerprint(accepted),
            timeout=calculate_ai_timeout(len(bundle.prompt), len(accepted), total_changes),
        )

    async def _lookup_cache(self, request: PreparedRequest) -> Optional[AggregatedCommitResponse]:
        suggestions = await self.cache.get(request.cache_key, request.fingerprint)
        if not suggestions:
            return None

        try:
            groups = _groups_from_suggestions(suggestions)
        except PydanticValidationError:
            logger.debug("Cached groups for %s are malformed, ignoring", request.cache_key)
            return None

        expected = [record.file for record in request.records]
        covered = [path for group in groups for path in group.files]
        if len(covered) != len(set(covered)) or set(covered) != set(expected):
            logger.debug("Cached groups for %s do not match the input, ignoring", request.cache_key)
            return None

        return AggregatedCommitResponse(
            groups=groups,
            skipped_files=request.skipped_files,
            from_cache=True,
        )

    async def _execute(self, request: PreparedRequest, model: str) -> AggregatedCommitResponse:
        prompt = request.bundle.prompt
        timeout = request.timeout

        async def call_provider() -> LLMResult:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self.provider.generate, model, prompt), timeout
                )
            except asyncio.TimeoutError as e:
                raise UpstreamTimeoutError(
                    f"Model {model} did not respond within {timeout:.0f}s"
                ) from e

        result = await self.batcher.batch(request.cache_key, call_provider)

        response = parse_grouping_response(
            result.raw_response, request.records, request.bundle.sanitized
        )
        response = response.model_copy(
            update={"skipped_files": request.skipped_files, "model": result.model or model}
        )

        await self.cache.set(
            request.cache_key,
            [group.to_suggestion() for group in response.groups],
            fingerprint=request.fingerprint,
        )
        return response


def _groups_from_suggestions(suggestions: Sequence[Suggestion]) -> list[CommitGroup]:
    return [
        CommitGroup(
            files=list(suggestion.files),
            message=suggestion.message,
            description=suggestion.description,
            confidence=suggestion.confidence,
        )
        for suggestion in suggestions
        if suggestion.files
    ]
