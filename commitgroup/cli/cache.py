"""CLI commands for the result cache."""

import typer

from commitgroup.cache import TieredCache
from commitgroup.errors import CacheError

# Subcommand group for cache management
cache_app = typer.Typer(
    name="cache",
    help="Inspect or clear cached grouping results in ~/.commitgroup/cache/",
    add_completion=False,
)


@cache_app.command("stats")
def cache_stats() -> None:
    """Show where results are cached and how many entries exist."""
    cache = TieredCache()
    stats = cache.stats()

    typer.echo(f"Cache directory: {cache.cache_dir}")
    typer.echo(f"  Stored entries: {cache.count_durable()}")
    typer.echo(f"  Memory entries: {stats.size}")
    typer.echo(f"  Hit rate: {stats.hit_rate:.0%}")


@cache_app.command("clear")
def cache_clear(
    all_entries: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Also delete stored entries on disk",
    ),
) -> None:
    """Clear cached grouping results."""
    cache = TieredCache()
    cache.clear()

    if not all_entries:
        typer.echo("Memory cache cleared. Stored entries kept (use --all to delete them).")
        return

    try:
        removed = cache.clear_durable()
    except CacheError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Removed {removed} cached entr{'y' if removed == 1 else 'ies'}")
