"""Tests for commitgroup.grouping.service module."""

import asyncio
import json
import time

import pytest

from commitgroup.cache import TieredCache
from commitgroup.errors import ValidationError
from commitgroup.grouping import CommitGroupingService, RequestBatcher, filter_records
from commitgroup.grouping.policy import fallback_message
from commitgroup.llm.base import BaseLLMProvider, LLMResult, classify_provider_error
from commitgroup.llm.exceptions import (
    AuthenticationError,
    TransientUpstreamError,
    UpstreamExhaustedError,
    UpstreamRequestError,
    UpstreamTimeoutError,
)
from commitgroup.models import ChangeRecord, Suggestion

GOOD_RESPONSE = json.dumps(
    {
        "groups": [
            {
                "files": ["src/auth.py", "src/users.py"],
                "message": "Implemented token based login for users",
                "confidence": 0.9,
            },
            {"files": ["docs/guide.md"], "message": "Added a guide for the login flow"},
        ]
    }
)


async def _no_sleep(seconds):
    return None


class ModelAwareProvider(BaseLLMProvider):
    """Provider whose behaviour depends on the requested model."""

    default_model = "primary"

    def __init__(self, behaviour):
        # model -> response string or exception
        self.behaviour = behaviour
        self.calls = []

    def generate(self, model, prompt):
        self.calls.append(model)
        outcome = self.behaviour[model]
        if isinstance(outcome, Exception):
            raise outcome
        return LLMResult(raw_response=outcome, model=model)

    def get_api_key(self):
        return "key"


def _service(provider, temp_dir, **kwargs):
    kwargs.setdefault("model", "primary")
    kwargs.setdefault("fallback_model", "backup")
    kwargs.setdefault("max_attempts", 3)
    kwargs.setdefault("retry_delay_ms", 1)
    return CommitGroupingService(
        provider=provider,
        cache=kwargs.pop("cache", None) or TieredCache(cache_dir=temp_dir),
        batcher=kwargs.pop("batcher", None) or RequestBatcher(window_ms=0),
        sleep=_no_sleep,
        **kwargs,
    )


class TestFilterRecords:
    """Tests for filter_records function."""

    def test_empty_input_rejected(self):
        """Test that no records is a validation error."""
        with pytest.raises(ValidationError):
            filter_records([])

    def test_duplicate_paths_rejected(self, sample_records):
        """Test that a file listed twice is a validation error."""
        with pytest.raises(ValidationError, match="more than once"):
            filter_records(sample_records + [sample_records[0]])

    def test_skips_sensitive_and_oversized(self, sample_records):
        """Test that skipped files are reported separately."""
        records = sample_records + [
            ChangeRecord(file=".env", additions=1, deletions=0, changes="+TOKEN=abc"),
            ChangeRecord(file="dump.sql", additions=1, deletions=0, changes="x" * 100_001),
        ]

        accepted, skipped = filter_records(records)

        assert accepted == sample_records
        assert skipped == [".env", "dump.sql"]

    def test_everything_skipped_rejected(self):
        """Test that nothing left after filtering is a validation error."""
        with pytest.raises(ValidationError, match="No files left"):
            filter_records([ChangeRecord(file="server.pem", additions=1, deletions=0)])


class TestGenerateAggregatedCommits:
    """Tests for the happy path and caching."""

    def test_returns_parsed_groups(self, sample_records, temp_dir):
        """Test a successful generation."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir)

        result = asyncio.run(service.generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary"]
        assert result.model == "primary"
        assert not result.from_cache
        assert [g.files for g in result.groups] == [["src/auth.py", "src/users.py"], ["docs/guide.md"]]

    def test_second_call_served_from_cache(self, sample_records, temp_dir):
        """Test that an identical request does not reach the provider again."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir)

        first = asyncio.run(service.generate_aggregated_commits(sample_records))
        second = asyncio.run(service.generate_aggregated_commits(list(reversed(sample_records))))

        assert provider.calls == ["primary"]
        assert second.from_cache
        assert second.groups == first.groups

    def test_durable_cache_survives_new_service(self, sample_records, temp_dir):
        """Test that a new process reuses stored results."""
        asyncio.run(
            _service(ModelAwareProvider({"primary": GOOD_RESPONSE}), temp_dir).generate_aggregated_commits(
                sample_records
            )
        )

        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        result = asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(sample_records))

        assert provider.calls == []
        assert result.from_cache

    def test_whitespace_only_change_hits_cache(self, sample_records, temp_dir):
        """Test that reformatting change text keeps the cache entry."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir)
        asyncio.run(service.generate_aggregated_commits(sample_records))

        reformatted = [r.model_copy(update={"changes": r.changes + "   \n"}) for r in sample_records]
        result = asyncio.run(service.generate_aggregated_commits(reformatted))

        assert result.from_cache
        assert len(provider.calls) == 1

    def test_cached_groups_must_cover_input(self, sample_records, temp_dir):
        """Test that a cached entry not matching the file set is ignored."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir)
        request = service.prepare(sample_records)
        bogus = [Suggestion(message="Updated some unrelated files here", files=["other.py"])]
        asyncio.run(service.cache.set(request.cache_key, bogus, fingerprint=request.fingerprint))

        result = asyncio.run(service.generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary"]
        assert not result.from_cache

    def test_skipped_files_reported(self, sample_records, temp_dir):
        """Test that filtered files are listed and not sent to the model."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir)
        records = sample_records + [ChangeRecord(file=".env", additions=1, deletions=0, changes="+X=1")]

        result = asyncio.run(service.generate_aggregated_commits(records))

        assert result.skipped_files == [".env"]
        assert ".env" not in result.files

    def test_unparseable_response_falls_back(self, sample_records, temp_dir):
        """Test that garbage output still yields one group per file."""
        provider = ModelAwareProvider({"primary": "I cannot do that"})
        service = _service(provider, temp_dir)

        result = asyncio.run(service.generate_aggregated_commits(sample_records))

        assert [g.files for g in result.groups] == [[r.file] for r in sample_records]
        assert [g.message for g in result.groups] == [fallback_message(r) for r in sample_records]
        assert provider.calls == ["primary"]

    def test_concurrent_requests_share_one_call(self, sample_records, temp_dir):
        """Test that simultaneous identical requests reach the provider once."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        service = _service(provider, temp_dir, batcher=RequestBatcher(window_ms=50))

        async def run():
            return await asyncio.gather(
                service.generate_aggregated_commits(sample_records),
                service.generate_aggregated_commits(sample_records),
                service.generate_aggregated_commits(sample_records),
            )

        results = asyncio.run(run())

        assert provider.calls == ["primary"]
        assert all(r.groups == results[0].groups for r in results)


class TestValidationErrors:
    """Tests for terminal input errors."""

    def test_empty_input(self, temp_dir):
        """Test that empty input never reaches the provider."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})

        with pytest.raises(ValidationError):
            asyncio.run(_service(provider, temp_dir).generate_aggregated_commits([]))

        assert provider.calls == []

    def test_prompt_too_large(self, temp_dir):
        """Test that an oversized prompt is rejected before any request."""
        provider = ModelAwareProvider({"primary": GOOD_RESPONSE})
        records = [
            ChangeRecord(file=f"gen/file_{i}.txt", additions=100, deletions=0, changes="y" * 3000)
            for i in range(260)
        ]

        with pytest.raises(ValidationError, match="too large"):
            asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(records))

        assert provider.calls == []


class TestRetryAndFallback:
    """Tests for the two-tier retry policy."""

    def test_fallback_after_exactly_max_attempts(self, sample_records, temp_dir):
        """Test that the fallback model runs after all primary attempts fail."""
        provider = ModelAwareProvider(
            {"primary": TransientUpstreamError("503"), "backup": GOOD_RESPONSE}
        )
        service = _service(provider, temp_dir, max_attempts=3)

        result = asyncio.run(service.generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary", "primary", "primary", "backup"]
        assert result.model == "backup"

    def test_fallback_switch_is_logged(self, sample_records, temp_dir, caplog):
        """Test that switching to the fallback model is a warning."""
        provider = ModelAwareProvider(
            {"primary": TransientUpstreamError("503"), "backup": GOOD_RESPONSE}
        )

        with caplog.at_level("WARNING", logger="commitgroup.grouping.service"):
            asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(sample_records))

        assert "Trying fallback model (backup)" in caplog.text

    def test_both_models_fail(self, sample_records, temp_dir):
        """Test that exhausting both tiers is a hard error."""
        provider = ModelAwareProvider(
            {"primary": TransientUpstreamError("503"), "backup": TransientUpstreamError("429")}
        )
        service = _service(provider, temp_dir, max_attempts=2)

        with pytest.raises(UpstreamExhaustedError) as exc_info:
            asyncio.run(service.generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary", "primary", "backup"]
        assert isinstance(exc_info.value.__cause__, TransientUpstreamError)
        assert "429" in str(exc_info.value)

    def test_fallback_on_failure_returns_singletons(self, sample_records, temp_dir):
        """Test the opt-in degraded result when both tiers fail."""
        provider = ModelAwareProvider(
            {"primary": TransientUpstreamError("503"), "backup": TransientUpstreamError("503")}
        )
        service = _service(provider, temp_dir, max_attempts=1, fallback_on_failure=True)

        result = asyncio.run(service.generate_aggregated_commits(sample_records))

        assert [g.files for g in result.groups] == [[r.file] for r in sample_records]
        assert all(g.confidence == 0.6 for g in result.groups)

    def test_authentication_error_not_retried(self, sample_records, temp_dir):
        """Test that rejected credentials skip retries and fallback."""
        provider = ModelAwareProvider({"primary": AuthenticationError("401"), "backup": GOOD_RESPONSE})

        with pytest.raises(AuthenticationError):
            asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary"]

    def test_rejected_request_not_retried(self, sample_records, temp_dir):
        """Test that a 400 from the provider skips retries and fallback."""

        class BadRequest(Exception):
            status_code = 400

        rejected = classify_provider_error(BadRequest("invalid model"), "OpenAI")
        provider = ModelAwareProvider({"primary": rejected, "backup": GOOD_RESPONSE})

        with pytest.raises(UpstreamRequestError, match="invalid model"):
            asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary"]

    def test_recovers_on_later_primary_attempt(self, sample_records, temp_dir):
        """Test that a transient failure followed by success uses the primary model."""
        outcomes = [TransientUpstreamError("blip"), GOOD_RESPONSE]

        class FlakyProvider(ModelAwareProvider):
            def generate(self, model, prompt):
                self.calls.append(model)
                outcome = outcomes.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                return LLMResult(raw_response=outcome, model=model)

        provider = FlakyProvider({})
        result = asyncio.run(_service(provider, temp_dir).generate_aggregated_commits(sample_records))

        assert provider.calls == ["primary", "primary"]
        assert result.model == "primary"

    def test_timeout_is_transient(self, sample_records, temp_dir, mocker):
        """Test that a slow provider surfaces as a timeout and is retried."""

        class SlowProvider(ModelAwareProvider):
            def generate(self, model, prompt):
                self.calls.append(model)
                time.sleep(0.5)
                return LLMResult(raw_response=GOOD_RESPONSE, model=model)

        mocker.patch("commitgroup.grouping.service.calculate_ai_timeout", return_value=0.1)
        provider = SlowProvider({})
        service = _service(provider, temp_dir, max_attempts=1)

        with pytest.raises(UpstreamExhaustedError) as exc_info:
            asyncio.run(service.generate_aggregated_commits(sample_records))

        assert isinstance(exc_info.value.__cause__, UpstreamTimeoutError)
        assert provider.calls == ["primary", "backup"]


class TestModelNames:
    """Tests for model name resolution."""

    def test_model_name_cached_for_lifetime(self, temp_dir, mocker):
        """Test that the configured model is looked up once."""
        mocker.patch("commitgroup.config.ACTIVE_MODEL", "first-model")
        service = CommitGroupingService(
            provider=ModelAwareProvider({}),
            cache=TieredCache(cache_dir=temp_dir),
            batcher=RequestBatcher(),
        )

        assert service.get_model_name() == "first-model"

        mocker.patch("commitgroup.config.ACTIVE_MODEL", "second-model")
        assert service.get_model_name() == "first-model"

    def test_default_fallback_model_from_config(self, temp_dir, mocker):
        """Test that the provider's static fallback is used by default."""
        from commitgroup.config import LLMProvider

        mocker.patch("commitgroup.config.ACTIVE_PROVIDER", LLMProvider.OPENAI)
        mocker.patch("commitgroup.config.ACTIVE_FALLBACK_MODEL", None)
        service = CommitGroupingService(
            provider=ModelAwareProvider({}),
            cache=TieredCache(cache_dir=temp_dir),
            batcher=RequestBatcher(),
        )

        assert service.get_fallback_model() == "gpt-4o-mini"
