"""Configuration for commitgroup LLM providers and orchestration policy.

Configuration is loaded from ~/.commitgroup/config.yaml
Use 'commitgroup config' commands to modify settings.
"""

from enum import Enum


class LLMProvider(Enum):
    """Supported LLM providers."""

    GOOGLE = "google"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GROQ = "groq"
    COHERE = "cohere"


# ============================================================
# DEFAULT FALLBACK VALUES
# ============================================================
# These are used only if ~/.commitgroup/config.yaml doesn't exist

DEFAULT_PROVIDER = LLMProvider.GOOGLE
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.3
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000


# ============================================================
# ACTIVE CONFIGURATION (loaded from global config)
# ============================================================

# Initially set to defaults - will be overridden by load_config()
ACTIVE_PROVIDER = DEFAULT_PROVIDER
ACTIVE_MODEL = DEFAULT_MODEL
ACTIVE_FALLBACK_MODEL = None  # None means FALLBACK_MODELS[ACTIVE_PROVIDER]
MAX_TOKENS = DEFAULT_MAX_TOKENS
TEMPERATURE = DEFAULT_TEMPERATURE
RETRY_ATTEMPTS = DEFAULT_RETRY_ATTEMPTS
RETRY_DELAY_MS = DEFAULT_RETRY_DELAY_MS


def load_config():
    """Load configuration from global config file.

    This should be called by the CLI before using the LLM.
    """
    global ACTIVE_PROVIDER, ACTIVE_MODEL, ACTIVE_FALLBACK_MODEL
    global MAX_TOKENS, TEMPERATURE, RETRY_ATTEMPTS, RETRY_DELAY_MS

    # Import here to avoid circular dependency
    from commitgroup import global_config

    try:
        provider = global_config.get_active_provider()
        model = global_config.get_active_model()
        fallback_model = global_config.get_fallback_model()
        max_tokens = global_config.get_max_tokens()
        temperature = global_config.get_temperature()
        retry_attempts = global_config.get_retry_attempts()
        retry_delay_ms = global_config.get_retry_delay_ms()
    except global_config.GlobalConfigError:
        # Use defaults if the config file is unreadable
        return

    if provider:
        ACTIVE_PROVIDER = provider
    if model:
        ACTIVE_MODEL = model
    if fallback_model:
        ACTIVE_FALLBACK_MODEL = fallback_model
    if max_tokens is not None:
        MAX_TOKENS = max_tokens
    if temperature is not None:
        TEMPERATURE = temperature
    if retry_attempts is not None:
        RETRY_ATTEMPTS = retry_attempts
    if retry_delay_ms is not None:
        RETRY_DELAY_MS = retry_delay_ms


def get_fallback_model(provider: LLMProvider | None = None) -> str:
    """Get the fallback model used once primary-model retries are exhausted.

    Args:
        provider: The LLM provider. Defaults to ACTIVE_PROVIDER.

    Returns:
        The configured fallback model, or the provider's static default.
    """
    provider = provider or ACTIVE_PROVIDER
    if ACTIVE_FALLBACK_MODEL and provider == ACTIVE_PROVIDER:
        return ACTIVE_FALLBACK_MODEL
    return FALLBACK_MODELS[provider]


# ============================================================
# AVAILABLE MODELS PER PROVIDER
# ============================================================

AVAILABLE_MODELS = {
    LLMProvider.GOOGLE: [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    ],
    LLMProvider.ANTHROPIC: [
        "claude-sonnet-4-20250514",
        "claude-3-5-sonnet-latest",
        "claude-3-5-haiku-latest",
    ],
    LLMProvider.OPENAI: [
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4o",
        "gpt-4o-mini",
    ],
    LLMProvider.OPENROUTER: [
        "anthropic/claude-sonnet-4",
        "openai/gpt-4o",
        "google/gemini-2.0-flash-exp",
        "meta-llama/llama-3.3-70b-instruct",
        "deepseek/deepseek-chat",
    ],
    LLMProvider.GROQ: [
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
    ],
    LLMProvider.COHERE: [
        "command-r-plus",
        "command-r",
    ],
}

# Secondary model per provider, tried once after the primary model's retries
FALLBACK_MODELS = {
    LLMProvider.GOOGLE: "gemini-2.0-flash",
    LLMProvider.ANTHROPIC: "claude-3-5-haiku-latest",
    LLMProvider.OPENAI: "gpt-4o-mini",
    LLMProvider.OPENROUTER: "openai/gpt-4o-mini",
    LLMProvider.GROQ: "llama-3.1-8b-instant",
    LLMProvider.COHERE: "command-r",
}

# ============================================================
# API KEY ENVIRONMENT VARIABLES
# ============================================================

API_KEY_ENV_VARS = {
    LLMProvider.GOOGLE: "GOOGLE_API_KEY",
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
    LLMProvider.GROQ: "GROQ_API_KEY",
    LLMProvider.COHERE: "COHERE_API_KEY",
}


def get_api_key_env_var(provider: LLMProvider) -> str:
    """Get the environment variable name for the API key.

    Args:
        provider: The LLM provider.

    Returns:
        The environment variable name.
    """
    return API_KEY_ENV_VARS[provider]


# ============================================================
# INPUT LIMITS
# ============================================================

MAX_DIFF_CONTENT_CHARS = 100_000  # Per-file change text accepted into the pipeline
MAX_API_REQUEST_CHARS = 750_000  # Hard upper bound on the serialized prompt
DIFF_CONTENT_TRUNCATE_LIMIT = 3000  # Change text included per file in the prompt

# ============================================================
# TIMEOUTS (milliseconds)
# ============================================================

AI_BASE_TIMEOUT_MS = 20_000
AI_MAX_TIMEOUT_MS = 90_000

# ============================================================
# CACHE POLICY
# ============================================================

CACHE_FORMAT_VERSION = "1.0"
CACHE_MAX_AGE_SECONDS = 7 * 24 * 60 * 60  # 7 days
CACHE_COMPRESSION_THRESHOLD = 1024  # Serialized suggestions above this are gzipped
CACHE_KEY_LENGTH = 16
BATCH_WINDOW_MS = 50

# ============================================================
# MESSAGE POLICY
# ============================================================

AVOID_PREFIXES = [
    "feat:",
    "fix:",
    "chore:",
    "docs:",
    "style:",
    "refactor:",
    "perf:",
    "test:",
    "build:",
    "ci:",
]
MIN_MESSAGE_WORDS = 3
MAX_MESSAGE_WORDS = 20
MIN_CORRECTED_MESSAGE_CHARS = 10  # Corrected text must be longer than this

DEFAULT_GROUP_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.6
