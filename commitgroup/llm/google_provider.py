"""Google Gemini provider implementation."""

from google import genai
from google.genai import types

import commitgroup.config as _config
from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.base import (
    SYSTEM_PROMPT,
    BaseLLMProvider,
    LLMResult,
    classify_provider_error,
)
from commitgroup.llm.exceptions import TransientUpstreamError

# Models that have built-in "thinking" which consumes output tokens
THINKING_MODELS = [
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash-thinking",
]

# Multiplier for max_output_tokens on thinking models
THINKING_TOKEN_MULTIPLIER = 3


class GoogleProvider(BaseLLMProvider):
    """Google Gemini LLM provider."""

    default_model = "gemini-2.5-flash"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.GOOGLE]

    def get_api_key(self) -> str:
        """Get the Google API key from environment or credentials file.

        Raises:
            MissingAPIKeyError: If GOOGLE_API_KEY is not found.
        """
        return self._get_api_key_with_fallback(self.api_key_env_var, "Google")

    @staticmethod
    def _is_thinking_model(model: str) -> bool:
        return any(thinking_model in model.lower() for thinking_model in THINKING_MODELS)

    def generate(self, model: str, prompt: str) -> LLMResult:
        """Generate a grouping response using Google Gemini.

        Args:
            model: The Gemini model to query.
            prompt: The full user prompt.

        Returns:
            An LLMResult containing the raw response and token usage.
        """
        api_key = self.get_api_key()
        client = genai.Client(api_key=api_key)

        full_prompt = f"{SYSTEM_PROMPT}\n\n{prompt}"

        # Internal "thinking" consumes tokens from the output budget
        effective_max_tokens = _config.MAX_TOKENS
        if self._is_thinking_model(model):
            effective_max_tokens = _config.MAX_TOKENS * THINKING_TOKEN_MULTIPLIER

        try:
            response = client.models.generate_content(
                model=model,
                contents=full_prompt,
                config=types.GenerateContentConfig(
                    max_output_tokens=effective_max_tokens,
                    temperature=_config.TEMPERATURE,
                ),
            )
        except Exception as e:
            raise classify_provider_error(e, "Google Gemini") from e

        if not response.candidates:
            raise TransientUpstreamError("Google Gemini returned no candidates in response")

        finish_reason = str(getattr(response.candidates[0], "finish_reason", ""))
        if "SAFETY" in finish_reason:
            raise TransientUpstreamError(f"Google Gemini blocked response: {finish_reason}")
        if "MAX_TOKENS" in finish_reason:
            raise TransientUpstreamError("Google Gemini response was truncated due to max tokens limit.")

        raw_response = response.text
        if not raw_response or not raw_response.strip():
            raise TransientUpstreamError("Google Gemini returned empty response")

        input_tokens = 0
        output_tokens = 0
        usage = getattr(response, "usage_metadata", None)
        if usage:
            input_tokens = getattr(usage, "prompt_token_count", 0) or 0
            output_tokens = getattr(usage, "candidates_token_count", 0) or 0
            # Thoughts consume the same budget as visible output
            output_tokens += getattr(usage, "thoughts_token_count", 0) or 0

        return LLMResult(
            raw_response=raw_response,
            model=model,
            input_tokens=input_tokens or self.estimate_tokens(full_prompt),
            output_tokens=output_tokens or self.estimate_tokens(raw_response),
        )
