"""Grouping prompt construction.

Contains:
- PromptBundle: The serialized prompt plus the sanitized records it was built from
- build_grouping_prompt: Sanitize records and serialize the instruction payload
- ensure_prompt_size: Reject prompts above the request size limit
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from commitgroup.config import (
    AVOID_PREFIXES,
    DIFF_CONTENT_TRUNCATE_LIMIT,
    MAX_API_REQUEST_CHARS,
)
from commitgroup.errors import ValidationError
from commitgroup.models import ChangeRecord
from commitgroup.sanitizer import (
    PrivacyReport,
    SanitizedRecord,
    create_privacy_report,
    sanitize_change_record,
)

logger = logging.getLogger(__name__)

# Number of individual sanitization warnings repeated in the privacy notice
PRIVACY_SAMPLE_WARNINGS = 5

_ROLE = "Expert Git Commit Grouping and Message Generator"
_TASK = (
    "Analyze file changes and group related modifications into logical commits "
    "with appropriate messages."
)

_INSTRUCTIONS = [
    "Primary goal: group related file changes into logical commits to reduce "
    "redundant commit messages while keeping each commit clear.",
    "Grouping priorities (in order):",
    "1. Dependency files: always group manifests and their lock files together "
    "(package.json, yarn.lock, pyproject.toml, poetry.lock, requirements*.txt)",
    "2. Similar changes: files with identical or very similar changes "
    "(same method added, same parameter made optional)",
    "3. Feature-related: files in the same directory or module implementing related functionality",
    "4. Cross-cutting changes: import updates, renames or refactoring touching several files",
    "Use individual commits for complex changes, unrelated modifications and files with mixed changes.",
    "Message guidelines:",
    "- FORBIDDEN: conventional commit prefixes such as " + ", ".join(AVOID_PREFIXES),
    "- FORBIDDEN: scoped prefixes of the form 'word(scope):', e.g. 'feat(auth):' or 'chore(deps):'",
    "- Write 3-20 words, past tense action verbs (Implemented, Added, Updated)",
    "- Be specific about what changed, start with a capital letter, no trailing period",
    "Only describe changes that are visible in the provided input_files.",
]

_OUTPUT_FORMAT = {
    "description": (
        "A JSON object with the grouped commits. Confidence (0-1) is how certain "
        "you are about each grouping decision."
    ),
    "schema": {
        "groups": [
            {
                "files": ["file names exactly as given in input_files"],
                "message": "descriptive commit message for the group (3-20 words)",
                "description": "optional brief explanation of why these files are grouped",
                "confidence": "number 0-1",
            }
        ]
    },
    "example": {
        "groups": [
            {
                "files": ["package.json", "yarn.lock"],
                "message": "Updated axios to v1.5.0 and related dependencies",
                "description": "Dependency update with lock file changes",
                "confidence": 0.95,
            },
            {
                "files": ["auth.py", "users.py"],
                "message": "Implemented token based user authentication",
                "description": "Related authentication files",
                "confidence": 0.9,
            },
        ]
    },
    "requirements": [
        "Each file MUST appear in exactly one group",
        "Groups should have 1-7 files, prefer smaller logical groups",
        "Messages must be specific to the grouped changes",
        "Messages MUST NOT start with conventional commit or type/scope prefixes",
    ],
}


@dataclass
class PromptBundle:
    """A serialized prompt and the sanitized records, aligned with the input."""

    prompt: str
    sanitized: list[SanitizedRecord]
    report: PrivacyReport = field(default_factory=lambda: PrivacyReport(sanitized_files=0))


def _log_privacy_notice(report: PrivacyReport) -> None:
    if report.sanitized_files == 0:
        return

    logger.warning(
        "Privacy: sanitized %d file(s) before sending to the AI provider (%d warning(s))",
        report.sanitized_files,
        len(report.warnings),
    )
    for warning in report.warnings[:PRIVACY_SAMPLE_WARNINGS]:
        logger.warning("  %s", warning)
    if len(report.warnings) > PRIVACY_SAMPLE_WARNINGS:
        logger.warning("  ... and %d more", len(report.warnings) - PRIVACY_SAMPLE_WARNINGS)


def _format_input_file(index: int, record: SanitizedRecord) -> dict:
    changes = record.changes or ""
    return {
        "id": index + 1,
        "name": record.file,
        "status": record.status,
        "changes": changes[:DIFF_CONTENT_TRUNCATE_LIMIT],
        "truncated": len(changes) > DIFF_CONTENT_TRUNCATE_LIMIT,
        "additions": record.additions,
        "deletions": record.deletions,
        "sanitized": record.sanitized,
    }


def build_grouping_prompt(
    records: Sequence[ChangeRecord],
    base_dir: Optional[Path] = None,
    sanitize: Callable[[ChangeRecord, Path], SanitizedRecord] = sanitize_change_record,
) -> PromptBundle:
    """Build the grouping prompt for a set of change records.

    Args:
        records: Validated change records.
        base_dir: Directory absolute paths are made relative to. Defaults to cwd.
        sanitize: Sanitizer applied to each record before serialization.

    Returns:
        PromptBundle with the JSON prompt and the sanitized records, in input order.
    """
    base_dir = base_dir or Path.cwd()
    sanitized = [sanitize(record, base_dir) for record in records]

    report = create_privacy_report(sanitized)
    _log_privacy_notice(report)

    payload = {
        "role": _ROLE,
        "task": _TASK,
        "instructions": _INSTRUCTIONS,
        "input_files": [_format_input_file(i, record) for i, record in enumerate(sanitized)],
        "output_format_instructions": _OUTPUT_FORMAT,
    }

    return PromptBundle(
        prompt=json.dumps(payload, indent=2),
        sanitized=sanitized,
        report=report,
    )


def ensure_prompt_size(prompt: str, limit: int = MAX_API_REQUEST_CHARS) -> None:
    """Check a prompt against the request size limit.

    Raises:
        ValidationError: If the prompt is longer than limit characters.
    """
    if len(prompt) > limit:
        raise ValidationError(
            f"Request too large ({len(prompt):,} chars, limit {limit:,}). "
            "Commit fewer files at once."
        )
