"""Groq provider implementation."""

from groq import Groq

import commitgroup.config as _config
from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.base import (
    SYSTEM_PROMPT,
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)


class GroqProvider(BaseLLMProvider):
    """Groq LLM provider (fast inference for open-source models)."""

    default_model = "llama-3.3-70b-versatile"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.GROQ]

    def get_api_key(self) -> str:
        """Get the Groq API key from environment or credentials file.

        Raises:
            MissingAPIKeyError: If GROQ_API_KEY is not found.
        """
        return self._get_api_key_with_fallback(self.api_key_env_var, "Groq")

    def generate(self, model: str, prompt: str) -> LLMResult:
        """Generate a grouping response using Groq.

        Args:
            model: The model to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.
        """
        api_key = self.get_api_key()
        client = Groq(api_key=api_key)

        try:
            # OpenAI-compatible chat endpoint
            response = client.chat.completions.create(
                model=model,
                max_tokens=_config.MAX_TOKENS,
                temperature=_config.TEMPERATURE,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as e:
            raise classify_provider_error(e, "Groq") from e

        return LLMResult(
            raw_response=response.choices[0].message.content or "",
            model=model,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
        )
