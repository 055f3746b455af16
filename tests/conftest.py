"""Shared test fixtures and configuration."""

import tempfile
from pathlib import Path

import pytest

from commitgroup.llm.base import BaseLLMProvider, LLMResult
from commitgroup.models import ChangeRecord


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_records():
    """Three change records with different change shapes."""
    return [
        ChangeRecord(
            file="src/auth.py",
            additions=40,
            deletions=2,
            changes="+def login(user):\n+    return token_for(user)\n",
        ),
        ChangeRecord(
            file="src/users.py",
            additions=5,
            deletions=5,
            changes="-old_name = 1\n+new_name = 1\n",
        ),
        ChangeRecord(
            file="docs/guide.md",
            additions=12,
            deletions=0,
            changes="+# Guide\n",
            is_new=True,
        ),
    ]


class FakeProvider(BaseLLMProvider):
    """Provider returning scripted responses and recording calls."""

    default_model = "fake-model"

    def __init__(self, responses=None):
        # Each item is a string (returned) or an exception (raised)
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str]] = []

    def generate(self, model: str, prompt: str) -> LLMResult:
        self.calls.append((model, prompt))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return LLMResult(raw_response=response, model=model)

    def get_api_key(self) -> str:
        return "test-key"


@pytest.fixture
def fake_provider_factory():
    """Build FakeProvider instances."""
    return FakeProvider
