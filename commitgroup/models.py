"""Data models shared by the commitgroup pipeline.

Contains:
- ChangeRecord: One file's change description (the "diff")
- Suggestion: A generated commit message candidate (cached unit)
- CommitGroup: Files proposed to share one commit message
- AggregatedCommitResponse: Ordered groups covering every accepted file
- GroupPayload, GroupingResponsePayload: Expected wire shape of the model output
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChangeRecord(BaseModel):
    """One file's line-level change description, read-only once created."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(min_length=1)
    additions: int = Field(ge=0)
    deletions: int = Field(ge=0)
    changes: str = ""
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    old_path: Optional[str] = None

    @property
    def total_changes(self) -> int:
        """Number of changed lines (additions plus deletions)."""
        return self.additions + self.deletions

    @property
    def status(self) -> str:
        """Human-readable change status used in prompts."""
        if self.is_new:
            return "new file created"
        if self.is_deleted:
            return "file deleted"
        if self.is_renamed:
            return "file renamed"
        return "modified"


class Suggestion(BaseModel):
    """A generated commit message candidate."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None  # Classification tag
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    files: list[str] = []  # Original paths covered by this suggestion


class CommitGroup(BaseModel):
    """A set of files proposed to share one commit message."""

    files: list[str]
    message: str
    description: Optional[str] = None
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("files")
    @classmethod
    def files_must_be_unique(cls, files: list[str]) -> list[str]:
        """Reject groups listing the same file twice."""
        if len(set(files)) != len(files):
            raise ValueError("files in a commit group must be unique")
        return files

    def to_suggestion(self) -> Suggestion:
        """Convert the group to its cacheable suggestion form."""
        return Suggestion(
            message=self.message,
            description=self.description,
            confidence=self.confidence,
            files=list(self.files),
        )


class AggregatedCommitResponse(BaseModel):
    """The grouping result returned to callers."""

    groups: list[CommitGroup] = []
    skipped_files: list[str] = []
    from_cache: bool = False
    model: Optional[str] = None

    @property
    def files(self) -> list[str]:
        """All files covered by the groups, in group order."""
        return [path for group in self.groups for path in group.files]


# ============================================================================
# Wire models for the generation endpoint's JSON output
# ============================================================================


class GroupPayload(BaseModel):
    """One group as emitted by the model."""

    files: list[str]
    message: str = Field(min_length=1)
    description: Optional[str] = None
    confidence: Optional[float] = None

    @field_validator("files", mode="before")
    @classmethod
    def drop_non_string_files(cls, value: Any) -> Any:
        """Keep only the string entries of a file list."""
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
        return value

    @field_validator("description", mode="before")
    @classmethod
    def ignore_non_string_description(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return None
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def ignore_non_numeric_confidence(cls, value: Any) -> Any:
        """Treat non-numeric confidence values as absent."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value


class GroupingResponsePayload(BaseModel):
    """Top-level shape of the model output; groups are validated one by one."""

    groups: list[Any]
