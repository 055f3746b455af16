"""CLI commands that group changes and optionally commit them."""

import typer

from commitgroup.cli.utils import build_service, configure_logging, print_groups, run_grouping
from commitgroup.errors import ValidationError
from commitgroup.git import (
    GitError,
    NoChangesError,
    collect_change_records,
    commit_files,
    get_repo_root,
    stage_files,
)
from commitgroup.llm import AuthenticationError, LLMError
from commitgroup.models import AggregatedCommitResponse, ChangeRecord


def _plan(staged: bool) -> tuple[list[ChangeRecord], AggregatedCommitResponse]:
    repo_root = get_repo_root()
    typer.echo("Collecting changes...", err=True)
    records, empty_files = collect_change_records(staged=staged, repo_root=repo_root)

    service = build_service(repo_root)
    typer.echo(f"Grouping {len(records)} file(s) with {service.get_model_name()}...", err=True)
    response = run_grouping(service, records)
    if empty_files:
        response = response.model_copy(
            update={"skipped_files": empty_files + response.skipped_files}
        )
    return records, response


def _commit_paths(files: list[str], records_by_path: dict[str, ChangeRecord]) -> list[str]:
    # A rename is committed together with the removal of its old path
    paths = []
    for path in files:
        record = records_by_path.get(path)
        if record is not None and record.is_renamed and record.old_path:
            paths.append(record.old_path)
        paths.append(path)
    return paths


def _format_commit_message(message: str, description: str | None) -> str:
    if description:
        return f"{message}\n\n{description}"
    return message


def plan_command(
    staged: bool = typer.Option(
        False,
        "--staged",
        "-s",
        help="Group staged changes instead of unstaged and untracked files",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging (cache hits, retries, batching)",
    ),
) -> None:
    """Propose commit groups for the current changes without committing."""
    configure_logging(verbose)

    try:
        _, response = _plan(staged)
    except NoChangesError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(0)
    except (ValidationError, AuthenticationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Git error: {e}", err=True)
        raise typer.Exit(1)
    except LLMError as e:
        typer.echo(f"LLM error: {e}", err=True)
        raise typer.Exit(1)

    print_groups(response)
    typer.echo("Run 'commitgroup commit' to create these commits.", err=True)


def commit_command(
    staged: bool = typer.Option(
        False,
        "--staged",
        "-s",
        help="Group staged changes instead of unstaged and untracked files",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Bypass confirmation prompt and commit immediately",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging (cache hits, retries, batching)",
    ),
) -> None:
    """Group the current changes and create one commit per group."""
    configure_logging(verbose)

    try:
        records, response = _plan(staged)
    except NoChangesError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(0)
    except (ValidationError, AuthenticationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Git error: {e}", err=True)
        raise typer.Exit(1)
    except LLMError as e:
        typer.echo(f"LLM error: {e}", err=True)
        raise typer.Exit(1)

    print_groups(response)

    if not yes:
        confirm = typer.prompt(
            f"Create {len(response.groups)} commit(s)? [Y/n]",
            default="y",
            show_default=False,
        )
        if confirm.lower() not in ("y", "yes", ""):
            typer.echo("Commit cancelled.", err=True)
            raise typer.Exit(0)

    records_by_path = {record.file: record for record in records}
    repo_root = get_repo_root()

    try:
        for index, group in enumerate(response.groups, 1):
            paths = _commit_paths(group.files, records_by_path)
            stage_files(paths, repo_root=repo_root)
            commit_files(
                _format_commit_message(group.message, group.description),
                paths,
                repo_root=repo_root,
            )
            typer.echo(f"✓ [{index}/{len(response.groups)}] {group.message}")
    except GitError as e:
        typer.echo(f"Git error: {e}", err=True)
        raise typer.Exit(1)
