"""Cohere provider implementation."""

import cohere

import commitgroup.config as _config
from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.base import (
    SYSTEM_PROMPT,
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)


class CohereProvider(BaseLLMProvider):
    """Cohere LLM provider."""

    default_model = "command-r-plus"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.COHERE]

    def get_api_key(self) -> str:
        """Get the Cohere API key from environment or credentials file.

        Raises:
            MissingAPIKeyError: If COHERE_API_KEY is not found.
        """
        return self._get_api_key_with_fallback(self.api_key_env_var, "Cohere")

    def generate(self, model: str, prompt: str) -> LLMResult:
        """Generate a grouping response using Cohere's chat endpoint.

        Args:
            model: The model to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.
        """
        api_key = self.get_api_key()
        client = cohere.ClientV2(api_key=api_key)

        try:
            response = client.chat(
                model=model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as e:
            raise classify_provider_error(e, "Cohere") from e

        tokens = response.usage.tokens
        return LLMResult(
            raw_response=response.message.content[0].text,
            model=model,
            input_tokens=int(tokens.input_tokens or 0),
            output_tokens=int(tokens.output_tokens or 0),
        )
