"""Main CLI callback."""

from typing import Optional

import typer

from commitgroup import __version__


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"commitgroup {__version__}")
        raise typer.Exit()


def main_command(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Group changed files into commits with AI-generated messages."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
