"""CLI commands for global configuration management."""

from typing import Optional

import typer

from commitgroup import global_config
from commitgroup.config import API_KEY_ENV_VARS, AVAILABLE_MODELS, FALLBACK_MODELS, LLMProvider

# Subcommand group for configuration management
config_app = typer.Typer(
    name="config",
    help="Manage global commitgroup configuration in ~/.commitgroup/",
    add_completion=False,
)

_VALID_PROVIDERS = ", ".join(provider.value for provider in LLMProvider)


def _parse_provider(provider: str) -> LLMProvider:
    try:
        return LLMProvider(provider.lower())
    except ValueError:
        typer.echo(f"Invalid provider: {provider}", err=True)
        typer.echo(f"Valid providers: {_VALID_PROVIDERS}")
        raise typer.Exit(1)


def _mask(api_key: str) -> str:
    return api_key[:8] + "..." + api_key[-4:] if len(api_key) > 12 else "***"


@config_app.command("show")
def config_show() -> None:
    """Show current global configuration."""
    try:
        if not global_config.is_configured():
            typer.echo("No configuration found. Run 'commitgroup config set-provider' to set up.")
            return

        config = global_config.load_global_config()

        typer.echo("Current commitgroup configuration (~/.commitgroup/config.yaml):")
        typer.echo()
        typer.echo(f"  Provider: {config.get('provider', 'not set')}")
        typer.echo(f"  Model: {config.get('model', 'not set')}")
        typer.echo(f"  Fallback Model: {config.get('fallback_model', 'provider default')}")
        typer.echo(f"  Retry Attempts: {config.get('retry_attempts', 3)}")
        typer.echo(f"  Retry Delay (ms): {config.get('retry_delay_ms', 1000)}")

        cache_dir = config.get("cache_dir")
        if cache_dir:
            typer.echo(f"  Cache Directory: {cache_dir}")

        typer.echo()

        provider_str = config.get("provider")
        if provider_str:
            try:
                provider = LLMProvider(provider_str)
            except ValueError:
                typer.echo(f"  Unknown provider in config: {provider_str}")
                return

            env_var = API_KEY_ENV_VARS[provider]
            api_key = global_config.get_credential(env_var)
            if api_key:
                typer.echo(f"  API Key ({env_var}): {_mask(api_key)}")
            else:
                typer.echo(f"  API Key ({env_var}): not set")

    except global_config.GlobalConfigError as e:
        typer.echo(f"Error reading configuration: {e}", err=True)
        raise typer.Exit(1)


@config_app.command("set-key")
def config_set_key(
    provider: str = typer.Argument(..., help=f"Provider name ({_VALID_PROVIDERS})"),
) -> None:
    """Set or update an API key for a provider."""
    llm_provider = _parse_provider(provider)
    env_var = API_KEY_ENV_VARS[llm_provider]

    typer.echo(f"Setting API key for {llm_provider.value}")
    api_key = typer.prompt(f"Enter your {llm_provider.value} API key", hide_input=True)

    try:
        global_config.save_credential(env_var, api_key)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ API key saved for {llm_provider.value}")


@config_app.command("set-provider")
def config_set_provider(
    provider: str = typer.Argument(..., help=f"Provider name ({_VALID_PROVIDERS})"),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Model name (optional, will prompt if not provided)",
    ),
) -> None:
    """Set the active LLM provider and model."""
    llm_provider = _parse_provider(provider)

    if not model:
        models = AVAILABLE_MODELS[llm_provider]
        typer.echo(f"Available models for {llm_provider.value}:")
        for i, m in enumerate(models, 1):
            typer.echo(f"  {i}. {m}")

        model_choice = typer.prompt(f"Select a model (1-{len(models)})", type=int, default=1)
        if model_choice < 1 or model_choice > len(models):
            typer.echo("Invalid choice. Aborting.", err=True)
            raise typer.Exit(1)

        model = models[model_choice - 1]
    elif model not in AVAILABLE_MODELS[llm_provider]:
        typer.echo(f"Warning: {model} is not in the list of known models for {llm_provider.value}")

    try:
        global_config.set_provider_and_model(llm_provider, model)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Provider set to: {llm_provider.value}")
    typer.echo(f"✓ Model set to: {model}")
    typer.echo(f"  Fallback model: {FALLBACK_MODELS[llm_provider]} (change with set-fallback-model)")


@config_app.command("set-fallback-model")
def config_set_fallback_model(
    model: str = typer.Argument(..., help="Model tried once after the primary model fails"),
) -> None:
    """Set the fallback model."""
    try:
        global_config.set_fallback_model(model)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Fallback model set to: {model}")
