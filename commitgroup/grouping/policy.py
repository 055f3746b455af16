"""Commit message policy.

Contains:
- MessageValidation: Result of checking one message
- validate_commit_message: Accept, correct or reject a generated message
- fallback_message: Deterministic message derived from a file's change shape
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from commitgroup.config import (
    AVOID_PREFIXES,
    MAX_MESSAGE_WORDS,
    MIN_CORRECTED_MESSAGE_CHARS,
    MIN_MESSAGE_WORDS,
)
from commitgroup.models import ChangeRecord

# word(scope): at the start of a message
_SCOPED_PREFIX_RE = re.compile(r"^[a-z]+\([^)]*\):", re.IGNORECASE)
# The fragment removed when correcting a scoped prefix
_PREFIX_STRIP_RE = re.compile(r"^[a-z]+(\([^)]*\))?:\s*", re.IGNORECASE)


@dataclass
class MessageValidation:
    """Outcome of validating a commit message.

    corrected_message is set only when the message was rewritten into an
    acceptable form.
    """

    is_valid: bool
    corrected_message: Optional[str] = None
    reason: Optional[str] = None


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _check_word_count(message: str) -> Optional[str]:
    words = len(message.split())
    if words < MIN_MESSAGE_WORDS:
        return f"too short ({words} words)"
    if words > MAX_MESSAGE_WORDS:
        return f"too long ({words} words)"
    return None


def validate_commit_message(message: str) -> MessageValidation:
    """Validate a generated commit message against the message policy.

    Args:
        message: The message produced by the model.

    Returns:
        MessageValidation. For an accepted message corrected_message holds
        the text to use (the original, or its corrected form).
    """
    text = (message or "").strip()
    if not text:
        return MessageValidation(False, reason="empty message")

    lowered = text.lower()
    for prefix in AVOID_PREFIXES:
        if lowered.startswith(prefix):
            return MessageValidation(False, reason=f"forbidden prefix {prefix!r}")

    if _SCOPED_PREFIX_RE.match(text):
        corrected = _capitalize(_PREFIX_STRIP_RE.sub("", text, count=1).strip())
        if len(corrected) <= MIN_CORRECTED_MESSAGE_CHARS:
            return MessageValidation(False, reason="conventional prefix with no usable text")
        problem = _check_word_count(corrected)
        if problem:
            return MessageValidation(False, reason=problem)
        return MessageValidation(True, corrected_message=corrected, reason="stripped scoped prefix")

    problem = _check_word_count(text)
    if problem:
        return MessageValidation(False, reason=problem)

    return MessageValidation(True, corrected_message=text)


def fallback_message(record: ChangeRecord) -> str:
    """Build a deterministic commit message from a file's change shape.

    Args:
        record: The change record of the file.

    Returns:
        A policy-compliant message mentioning the file's base name.
    """
    name = PurePosixPath(record.file.replace("\\", "/")).name or record.file

    if record.is_new:
        return f"Created new {name} file with initial implementation"
    if record.is_deleted:
        return f"Removed {name} file as it is no longer needed"
    if record.additions > record.deletions * 2:
        return f"Added new functionality to {name} file"
    if record.deletions > record.additions * 2:
        return f"Removed unused code from {name} file"
    return f"Updated {name} file with code improvements"
