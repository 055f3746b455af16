"""Anthropic Claude provider implementation."""

from anthropic import Anthropic

import commitgroup.config as _config
from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.base import (
    SYSTEM_PROMPT,
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude LLM provider."""

    default_model = "claude-sonnet-4-20250514"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.ANTHROPIC]

    def get_api_key(self) -> str:
        """Get the Anthropic API key from environment or credentials file.

        Raises:
            MissingAPIKeyError: If ANTHROPIC_API_KEY is not found.
        """
        return self._get_api_key_with_fallback(self.api_key_env_var, "Anthropic")

    def generate(self, model: str, prompt: str) -> LLMResult:
        """Generate a grouping response using Anthropic Claude.

        Args:
            model: The Claude model to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.
        """
        api_key = self.get_api_key()
        client = Anthropic(api_key=api_key)

        try:
            message = client.messages.create(
                model=model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise classify_provider_error(e, "Anthropic") from e

        return LLMResult(
            raw_response=message.content[0].text,
            model=model,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )
