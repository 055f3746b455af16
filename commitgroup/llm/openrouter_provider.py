"""OpenRouter provider implementation.

OpenRouter provides unified access to many models through a single API.
It uses an OpenAI-compatible API format.
"""

from openai import OpenAI

from commitgroup.config import API_KEY_ENV_VARS, LLMProvider
from commitgroup.llm.openai_provider import OpenAIProvider

# OpenRouter API base URL
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter LLM provider (model names use provider/model-name)."""

    default_model = "anthropic/claude-sonnet-4"
    provider_name = "OpenRouter"

    def __init__(self):
        self.api_key_env_var = API_KEY_ENV_VARS[LLMProvider.OPENROUTER]

    def _create_client(self, api_key: str) -> OpenAI:
        return OpenAI(api_key=api_key, base_url=OPENROUTER_BASE_URL)

    def _extra_request_kwargs(self) -> dict:
        return {
            "extra_headers": {
                "HTTP-Referer": "https://github.com/commitgroup",
                "X-Title": "commitgroup",
            }
        }
