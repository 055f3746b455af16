"""CLI entry point for commitgroup.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

import typer

from commitgroup.cli.cache import cache_app
from commitgroup.cli.config import config_app
from commitgroup.cli.main import main_command
from commitgroup.cli.plan import commit_command, plan_command

# Main application
app = typer.Typer(
    name="commitgroup",
    help="commitgroup: group changes into AI-described commits",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(cache_app, name="cache")
app.add_typer(config_app, name="config")

# Add individual commands
app.command("plan")(plan_command)
app.command("commit")(commit_command)

# Set the main callback (includes --version flag)
app.callback(invoke_without_command=True)(main_command)
