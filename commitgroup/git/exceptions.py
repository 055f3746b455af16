"""Git-related exception classes.

Contains all exception classes for Git operations:
- GitError: Base exception for git-related errors
- NoChangesError: Raised when there is nothing to group
"""

from commitgroup.errors import CommitGroupError


class GitError(CommitGroupError):
    """Custom exception for git-related errors."""

    pass


class NoChangesError(GitError):
    """Raised when there are no changed files."""

    pass
