"""Git change collection.

Contains:
- FileStatus: One changed path as reported by git status
- get_changed_files: List changed files (staged, or unstaged plus untracked)
- get_file_diff: Build a ChangeRecord for one changed file
- is_empty_change: Whether a ChangeRecord has nothing to describe
- collect_change_records: ChangeRecords for every changed file, minus empty ones
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from commitgroup.git.exceptions import GitError, NoChangesError
from commitgroup.git.runner import _run_git_command
from commitgroup.models import ChangeRecord

UNTRACKED = "?"


@dataclass
class FileStatus:
    """A changed path and its single-letter git status (A, M, D, R, ?)."""

    path: str
    status: str
    old_path: Optional[str] = None


def _unquote(path: str) -> str:
    # git quotes paths containing spaces or special characters
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1]
    return path


def _parse_status_line(line: str, staged: bool) -> Optional[FileStatus]:
    if len(line) < 4:
        return None

    index_status, worktree_status = line[0], line[1]
    path = line[3:]
    old_path = None
    if " -> " in path:
        old_path, path = path.split(" -> ", 1)
        old_path = _unquote(old_path)
    path = _unquote(path)

    if index_status == UNTRACKED:
        return None if staged else FileStatus(path, UNTRACKED)

    status = index_status if staged else worktree_status
    if status == " ":
        return None
    return FileStatus(path, status, old_path if status == "R" else None)


def get_changed_files(staged: bool = False, repo_root: Optional[Path] = None) -> list[FileStatus]:
    """List changed files from git status.

    Args:
        staged: Only staged changes. Otherwise unstaged and untracked files.
        repo_root: Repository root to run git in.

    Returns:
        List of FileStatus, in git status order.
    """
    output = _run_git_command(["status", "--porcelain=v1", "--untracked-files=all"], cwd=repo_root)
    changes = []
    for line in output.split("\n"):
        entry = _parse_status_line(line, staged)
        if entry is not None:
            changes.append(entry)
    return changes


def _parse_numstat(output: str) -> tuple[int, int]:
    additions = deletions = 0
    for line in output.split("\n"):
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        # Binary files report "-"
        if parts[0].isdigit():
            additions += int(parts[0])
        if parts[1].isdigit():
            deletions += int(parts[1])
    return additions, deletions


def _read_untracked(path: str, repo_root: Optional[Path]) -> ChangeRecord:
    file_path = (repo_root or Path.cwd()) / path
    try:
        content = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise GitError(f"Failed to read untracked file {path}: {e}")

    lines = content.splitlines()
    return ChangeRecord(
        file=path,
        additions=len(lines),
        deletions=0,
        changes="\n".join(f"+{line}" for line in lines),
        is_new=True,
    )


def get_file_diff(
    change: FileStatus, staged: bool = False, repo_root: Optional[Path] = None
) -> ChangeRecord:
    """Build a ChangeRecord for one changed file.

    Untracked files are read from disk and reported as all-additions new files.

    Args:
        change: The changed path.
        staged: Diff the index instead of the working tree.
        repo_root: Repository root to run git in.

    Returns:
        ChangeRecord with counts from --numstat and the unified diff text.
    """
    if change.status == UNTRACKED:
        return _read_untracked(change.path, repo_root)

    base_args = ["diff", "--staged"] if staged else ["diff"]
    paths = [change.old_path, change.path] if change.old_path else [change.path]

    numstat = _run_git_command(base_args + ["--numstat", "--"] + paths, cwd=repo_root)
    additions, deletions = _parse_numstat(numstat)
    changes = _run_git_command(base_args + ["--"] + paths, cwd=repo_root)

    return ChangeRecord(
        file=change.path,
        additions=additions,
        deletions=deletions,
        changes=changes,
        is_new=change.status == "A",
        is_deleted=change.status == "D",
        is_renamed=change.status == "R",
        old_path=change.old_path,
    )


def is_empty_change(record: ChangeRecord) -> bool:
    """Whether a record has no changed lines and no change text.

    Deletions are never empty: removing a file is a change in itself.
    """
    return record.total_changes == 0 and not record.changes.strip() and not record.is_deleted


def collect_change_records(
    staged: bool = False, repo_root: Optional[Path] = None
) -> tuple[list[ChangeRecord], list[str]]:
    """Build ChangeRecords for every changed file.

    Files with nothing to describe (for example an empty new file) are
    returned separately instead of being grouped.

    Returns:
        Tuple of (change records, paths skipped as empty), both in git order.

    Raises:
        NoChangesError: If git reports no changes, or every change is empty.
    """
    changes = get_changed_files(staged=staged, repo_root=repo_root)
    if not changes:
        where = "staged" if staged else "unstaged or untracked"
        raise NoChangesError(f"No {where} changes found.")

    records: list[ChangeRecord] = []
    skipped: list[str] = []
    for change in changes:
        record = get_file_diff(change, staged=staged, repo_root=repo_root)
        if is_empty_change(record):
            skipped.append(record.file)
        else:
            records.append(record)

    if not records:
        raise NoChangesError(f"Only empty files changed: {', '.join(skipped)}")
    return records, skipped
