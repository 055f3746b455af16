"""Cache key generation for commitgroup.

Contains:
- hash_content: Whitespace-insensitive short hash of change text
- generate_cache_key: Permutation-stable key for a set of change records
- compute_fingerprint: Full-length digest of the same composite
"""

import hashlib
import re
from typing import Iterable

from commitgroup.config import CACHE_KEY_LENGTH
from commitgroup.models import ChangeRecord

_WHITESPACE_RE = re.compile(r"\s+")


def hash_content(content: str) -> str:
    """Hash change text, ignoring whitespace-only differences.

    Args:
        content: Raw change text.

    Returns:
        First 8 hex characters of the SHA256 of the normalized text.
    """
    normalized = _WHITESPACE_RE.sub(" ", content).strip().lower()
    return hashlib.sha256(normalized.encode()).hexdigest()[:8]


def _key_component(record: ChangeRecord) -> str:
    total = record.additions + record.deletions
    ratio = record.additions / total if total > 0 else 0.0
    return (
        f"{record.file}:{record.additions}:{record.deletions}:"
        f"{ratio:.2f}:{hash_content(record.changes or '')}"
    )


def _composite(records: Iterable[ChangeRecord]) -> str:
    # Sorted so the same file set yields the same key in any order
    return "|".join(sorted(_key_component(record) for record in records))


def compute_fingerprint(records: Iterable[ChangeRecord]) -> str:
    """Compute the full SHA256 digest identifying a set of change records.

    Args:
        records: The change records.

    Returns:
        64-character hex digest.
    """
    return hashlib.sha256(_composite(records).encode()).hexdigest()


def generate_cache_key(records: Iterable[ChangeRecord]) -> str:
    """Generate a short, filesystem-safe cache key for a set of change records.

    Args:
        records: The change records.

    Returns:
        Hex string of CACHE_KEY_LENGTH characters.
    """
    return compute_fingerprint(records)[:CACHE_KEY_LENGTH]
