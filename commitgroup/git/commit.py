"""Git write operations used by the commit command.

Contains:
- stage_files: Stage paths, including deletions
- commit_files: Commit only the given paths with a message
"""

from pathlib import Path
from typing import Optional

from commitgroup.git.runner import _run_git_command


def stage_files(files: list[str], repo_root: Optional[Path] = None) -> None:
    """Stage the given paths (additions, modifications and deletions)."""
    if not files:
        return
    _run_git_command(["add", "-A", "--"] + files, cwd=repo_root)


def commit_files(message: str, files: list[str], repo_root: Optional[Path] = None) -> str:
    """Commit only the given paths.

    Args:
        message: The commit message.
        files: Paths to include; other staged changes stay staged.
        repo_root: Repository root to run git in.

    Returns:
        The git commit output.

    Raises:
        GitError: If the commit fails.
    """
    return _run_git_command(["commit", "-m", message, "--"] + files, cwd=repo_root)
