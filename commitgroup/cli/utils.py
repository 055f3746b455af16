"""Shared helpers for CLI commands."""

import asyncio
import logging
from pathlib import Path

import typer

from commitgroup import config
from commitgroup.cache import TieredCache
from commitgroup.grouping import CommitGroupingService, RequestBatcher
from commitgroup.llm import get_provider
from commitgroup.models import AggregatedCommitResponse, ChangeRecord


def configure_logging(verbose: bool) -> None:
    """Route library log records to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def build_service(repo_root: Path) -> CommitGroupingService:
    """Create the grouping service and its collaborators for this process."""
    config.load_config()
    return CommitGroupingService(
        provider=get_provider(),
        cache=TieredCache(),
        batcher=RequestBatcher(),
        base_dir=repo_root,
    )


def run_grouping(service: CommitGroupingService, records: list[ChangeRecord]) -> AggregatedCommitResponse:
    """Run the async grouping pipeline to completion."""
    return asyncio.run(service.generate_aggregated_commits(records))


def print_groups(response: AggregatedCommitResponse) -> None:
    """Print the proposed commits to stdout."""
    source = "cache" if response.from_cache else (response.model or "model")
    typer.echo(f"Proposed {len(response.groups)} commit(s) (from {source}):", err=True)
    typer.echo("")

    for index, group in enumerate(response.groups, 1):
        typer.echo(f"[{index}] {group.message}  (confidence {group.confidence:.0%})")
        if group.description:
            typer.echo(f"    {group.description}")
        for path in group.files:
            typer.echo(f"    - {path}")
        typer.echo("")

    if response.skipped_files:
        typer.echo("Skipped (not sent to the AI provider):", err=True)
        for path in response.skipped_files:
            typer.echo(f"    - {path}", err=True)
