"""Privacy sanitization of change records before they leave the machine.

Contains:
- should_skip_file: Decide whether a file must never be sent to the model
- sanitize_change_record: Relativize the path and redact secrets in the change text
- create_privacy_report: Summarize what sanitization altered
"""

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from commitgroup.models import ChangeRecord

# Files whose contents are credentials by nature
SENSITIVE_EXTENSIONS = [".env", ".key", ".pem", ".p12", ".pfx", ".p8"]
SENSITIVE_JSON_FILES = ["secrets.json", "credentials.json"]
SENSITIVE_DIRECTORIES = ["secrets", "keys", "credentials", ".ssh", ".aws"]

_PRIVATE_KEY_RE = re.compile(r"-----BEGIN (?:[A-Z]+ )?PRIVATE KEY-----")

REDACTED = "[REDACTED]"

# (label, pattern) pairs; every match is replaced with REDACTED
_SECRET_PATTERNS = [
    ("AWS access key", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    ("Google API key", re.compile(r"\bAIza[0-9A-Za-z_\-]{35}\b")),
    ("API secret key", re.compile(r"\bsk-[A-Za-z0-9_\-]{20,}")),
    ("GitHub token", re.compile(r"\bgh[pousr]_[A-Za-z0-9]{36,}")),
    ("bearer token", re.compile(r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]{16,}=*")),
]

# name = value assignments where only the value is redacted
_ASSIGNMENT_RE = re.compile(
    r"(?i)\b(\w*(?:password|passwd|secret|api[_-]?key|access[_-]?token|auth[_-]?token))"
    r"(\s*[:=]\s*)([\"']?)([^\s\"']{4,})\3"
)


@dataclass
class SkipCheck:
    """Outcome of the skip check for one file."""

    skip: bool
    reason: Optional[str] = None


@dataclass
class SanitizedRecord:
    """A change record as it will be shown to the model."""

    file: str
    changes: str
    additions: int
    deletions: int
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False
    sanitized: bool = False
    warnings: list[str] = field(default_factory=list)

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


@dataclass
class PrivacyReport:
    """Summary of the sanitization applied to a batch of records."""

    sanitized_files: int
    warnings: list[str] = field(default_factory=list)


def should_skip_file(path: str, content: str) -> SkipCheck:
    """Check whether a file must be excluded from AI processing entirely.

    Args:
        path: The file path.
        content: The raw change text.

    Returns:
        SkipCheck with skip=True and a reason for credential-like files.
    """
    posix_path = PurePosixPath(path.replace("\\", "/"))
    name = posix_path.name.lower()

    if name == ".env" or name.startswith(".env."):
        return SkipCheck(True, "environment file may contain secrets")
    for extension in SENSITIVE_EXTENSIONS:
        if name.endswith(extension):
            return SkipCheck(True, f"sensitive file type ({extension})")
    if name in SENSITIVE_JSON_FILES:
        return SkipCheck(True, "credentials file")
    for part in posix_path.parts[:-1]:
        if part.lower() in SENSITIVE_DIRECTORIES:
            return SkipCheck(True, f"file in sensitive directory ({part})")
    if _PRIVATE_KEY_RE.search(content or ""):
        return SkipCheck(True, "contains private key material")

    return SkipCheck(False)


def _sanitize_path(path: str, base_dir: Path) -> tuple[str, Optional[str]]:
    candidate = Path(path)
    if not candidate.is_absolute():
        return path, None

    try:
        relative = candidate.relative_to(base_dir)
    except ValueError:
        relative = Path(candidate.name)
    return relative.as_posix(), f"Converted absolute path to relative: {relative.as_posix()}"


def _redact_secrets(content: str) -> tuple[str, list[str]]:
    found: list[str] = []

    for label, pattern in _SECRET_PATTERNS:
        content, count = pattern.subn(REDACTED, content)
        if count:
            found.append(f"{count} {label}(s)")

    content, count = _ASSIGNMENT_RE.subn(
        lambda m: f"{m.group(1)}{m.group(2)}{m.group(3)}{REDACTED}{m.group(3)}", content
    )
    if count:
        found.append(f"{count} credential assignment(s)")

    return content, found


def sanitize_change_record(record: ChangeRecord, base_dir: Path) -> SanitizedRecord:
    """Prepare a change record for submission to the model.

    Args:
        record: The original change record.
        base_dir: Directory that absolute paths are made relative to.

    Returns:
        SanitizedRecord; sanitized=True when path or content was altered.
    """
    warnings: list[str] = []

    file_name, path_warning = _sanitize_path(record.file, base_dir)
    if path_warning:
        warnings.append(path_warning)

    changes, redactions = _redact_secrets(record.changes or "")
    for redaction in redactions:
        warnings.append(f"Redacted {redaction} in {file_name}")

    return SanitizedRecord(
        file=file_name,
        changes=changes,
        additions=record.additions,
        deletions=record.deletions,
        is_new=record.is_new,
        is_deleted=record.is_deleted,
        is_renamed=record.is_renamed,
        sanitized=bool(warnings),
        warnings=warnings,
    )


def create_privacy_report(sanitized: Iterable[SanitizedRecord]) -> PrivacyReport:
    """Summarize sanitization across a batch of records.

    Args:
        sanitized: The sanitized records.

    Returns:
        PrivacyReport with the number of altered files and all warnings.
    """
    report = PrivacyReport(sanitized_files=0)
    for record in sanitized:
        if record.sanitized:
            report.sanitized_files += 1
            report.warnings.extend(record.warnings)
    return report
