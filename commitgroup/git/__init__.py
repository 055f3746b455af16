"""Git collaborator module for commitgroup.

This package reads changes from git and writes the resulting commits:
- exceptions: GitError, NoChangesError
- runner: _run_git_command, get_repo_root
- diff: FileStatus, get_changed_files, get_file_diff, is_empty_change,
  collect_change_records
- commit: stage_files, commit_files
"""

# Exceptions
from commitgroup.git.exceptions import (
    GitError,
    NoChangesError,
)

# Runner utilities
from commitgroup.git.runner import (
    _run_git_command,
    get_repo_root,
)

# Change collection
from commitgroup.git.diff import (
    FileStatus,
    collect_change_records,
    get_changed_files,
    get_file_diff,
    is_empty_change,
)

# Write operations
from commitgroup.git.commit import (
    commit_files,
    stage_files,
)

__all__ = [
    # Exceptions
    "GitError",
    "NoChangesError",
    # Runner
    "_run_git_command",
    "get_repo_root",
    # Diff
    "FileStatus",
    "collect_change_records",
    "get_changed_files",
    "get_file_diff",
    "is_empty_change",
    # Commit
    "commit_files",
    "stage_files",
]
