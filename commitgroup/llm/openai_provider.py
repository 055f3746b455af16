"""OpenAI provider implementation."""

from openai import OpenAI

import commitgroup.config as _config
from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.base import (
    SYSTEM_PROMPT,
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT LLM provider."""

    default_model = "gpt-4.1-mini"
    provider_name = "OpenAI"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.OPENAI]

    def get_api_key(self) -> str:
        """Get the OpenAI API key from environment or credentials file.

        Raises:
            MissingAPIKeyError: If OPENAI_API_KEY is not found.
        """
        return self._get_api_key_with_fallback(self.api_key_env_var, self.provider_name)

    def _create_client(self, api_key: str) -> OpenAI:
        return OpenAI(api_key=api_key)

    def _extra_request_kwargs(self) -> dict:
        return {}

    def generate(self, model: str, prompt: str) -> LLMResult:
        """Generate a grouping response through the chat completions API.

        Args:
            model: The model to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.
        """
        api_key = self.get_api_key()
        client = self._create_client(api_key)

        try:
            response = client.chat.completions.create(
                model=model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                **self._extra_request_kwargs(),
            )
        except Exception as e:
            raise classify_provider_error(e, self.provider_name) from e

        raw_response = response.choices[0].message.content or ""

        return LLMResult(
            raw_response=raw_response,
            model=model,
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
        )
