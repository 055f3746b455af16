"""Two-level result cache for commitgroup.

The memory tier is a process-local dict; the durable tier stores one JSON
file per key under the cache directory so results survive restarts.

Caching never decides correctness: every durable-tier failure is absorbed
here, logged, and reported to the caller as a miss (reads) or a no-op
(writes). Nothing outside this module sees a CacheError.
"""

import asyncio
import base64
import binascii
import gzip
import logging
import time
import zlib
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import TypeAdapter

from commitgroup.cache.models import CacheEntry, CacheStats
from commitgroup.cache.paths import CACHE_FILE_SUFFIX, get_cache_dir, get_entry_file
from commitgroup.config import (
    CACHE_COMPRESSION_THRESHOLD,
    CACHE_FORMAT_VERSION,
    CACHE_MAX_AGE_SECONDS,
)
from commitgroup.errors import CacheError
from commitgroup.models import Suggestion

logger = logging.getLogger(__name__)

_SUGGESTIONS_ADAPTER = TypeAdapter(list[Suggestion])

# Everything that can go wrong while decoding a durable entry
_READ_ERRORS = (OSError, ValueError, binascii.Error, zlib.error, EOFError)


class TieredCache:
    """Memory + durable cache mapping cache keys to suggestion lists."""

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        max_age_seconds: float = CACHE_MAX_AGE_SECONDS,
        version: str = CACHE_FORMAT_VERSION,
        compression_threshold: int = CACHE_COMPRESSION_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Durable tier directory. Defaults to ~/.commitgroup/cache.
            max_age_seconds: Retention window for entries.
            version: Format version expected of stored entries.
            compression_threshold: Serialized size above which entries are gzipped.
            clock: Source of the current time in epoch seconds.
        """
        self.cache_dir = get_cache_dir(cache_dir)
        self.max_age_seconds = max_age_seconds
        self.version = version
        self.compression_threshold = compression_threshold
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get(self, key: str, fingerprint: Optional[str] = None) -> Optional[list[Suggestion]]:
        """Look up suggestions for a key, memory tier first.

        Args:
            key: The cache key.
            fingerprint: Full digest of the keyed input; when both this and the
                stored entry carry one, they must match.

        Returns:
            The cached suggestions, or None if absent or invalid.
        """
        entry = self._memory.get(key)
        if entry is not None:
            if self._is_valid_entry(entry, fingerprint):
                self._hits += 1
                logger.debug("Cache hit (memory) for %s", key)
                return list(entry.suggestions)
            del self._memory[key]

        try:
            entry = await asyncio.to_thread(self._load_durable, key, fingerprint)
        except CacheError as e:
            logger.warning("Cache read error: %s", e)
            entry = None

        if entry is None:
            self._misses += 1
            logger.debug("Cache miss for %s", key)
            return None

        # Promote into the memory tier
        self._memory[key] = entry
        self._hits += 1
        logger.debug("Cache hit (disk) for %s", key)
        return list(entry.suggestions)

    async def set(
        self,
        key: str,
        suggestions: Iterable[Suggestion],
        fingerprint: Optional[str] = None,
    ) -> None:
        """Store suggestions in both tiers.

        The memory tier is always updated. Durable-tier failures are logged
        and swallowed.

        Args:
            key: The cache key.
            suggestions: The suggestions to store.
            fingerprint: Full digest of the keyed input.
        """
        entry = CacheEntry(
            suggestions=list(suggestions),
            timestamp=self._clock(),
            version=self.version,
            compressed=False,
            fingerprint=fingerprint,
        )
        self._memory[key] = entry

        try:
            await asyncio.to_thread(self._write_durable, key, entry)
        except CacheError as e:
            logger.warning("Cache write error: %s", e)

    def clear(self) -> None:
        """Empty the memory tier. The durable tier is left untouched."""
        self._memory.clear()

    def clear_durable(self) -> int:
        """Delete every durable entry file.

        Returns:
            Number of files removed.

        Raises:
            CacheError: If a file cannot be removed.
        """
        if not self.cache_dir.exists():
            return 0

        removed = 0
        for path in self.cache_dir.glob(f"*{CACHE_FILE_SUFFIX}"):
            try:
                path.unlink()
            except OSError as e:
                raise CacheError(f"Failed to remove {path}: {e}") from e
            removed += 1
        return removed

    def count_durable(self) -> int:
        """Number of entry files in the durable tier, valid or not."""
        if not self.cache_dir.exists():
            return 0
        return sum(1 for _ in self.cache_dir.glob(f"*{CACHE_FILE_SUFFIX}"))

    def stats(self) -> CacheStats:
        """Return memory-tier size and hit rate since creation."""
        total = self._hits + self._misses
        return CacheStats(
            size=len(self._memory),
            hit_rate=self._hits / total if total > 0 else 0.0,
            hits=self._hits,
            misses=self._misses,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _is_valid_entry(self, entry: CacheEntry, fingerprint: Optional[str] = None) -> bool:
        if entry.version != self.version:
            return False
        if entry.timestamp <= self._clock() - self.max_age_seconds:
            return False
        if fingerprint and entry.fingerprint and entry.fingerprint != fingerprint:
            return False
        if not entry.compressed and not entry.suggestions:
            return False
        return True

    # ------------------------------------------------------------------
    # Durable tier (runs in worker threads)
    # ------------------------------------------------------------------

    def _load_durable(self, key: str, fingerprint: Optional[str]) -> Optional[CacheEntry]:
        path = get_entry_file(self.cache_dir, key)
        if not path.exists():
            return None

        try:
            entry = CacheEntry.model_validate_json(path.read_bytes())
            if not self._is_valid_entry(entry, fingerprint):
                return None
            entry = self._decompress(entry)
        except _READ_ERRORS as e:
            raise CacheError(f"Failed to read cache entry {path}: {e}") from e

        if not entry.suggestions:
            return None
        return entry

    @staticmethod
    def _decompress(entry: CacheEntry) -> CacheEntry:
        if not entry.compressed:
            if isinstance(entry.suggestions, str):
                raise ValueError("uncompressed entry holds an encoded payload")
            return entry

        if not isinstance(entry.suggestions, str):
            raise ValueError("compressed entry holds a decoded payload")
        payload = gzip.decompress(base64.b64decode(entry.suggestions, validate=True))
        suggestions = _SUGGESTIONS_ADAPTER.validate_json(payload)
        return entry.model_copy(update={"suggestions": suggestions, "compressed": False})

    def _write_durable(self, key: str, entry: CacheEntry) -> None:
        path = get_entry_file(self.cache_dir, key)
        try:
            serialized = _SUGGESTIONS_ADAPTER.dump_json(entry.suggestions)
            disk_entry = entry
            if len(serialized) > self.compression_threshold:
                encoded = base64.b64encode(gzip.compress(serialized)).decode("ascii")
                disk_entry = entry.model_copy(update={"suggestions": encoded, "compressed": True})

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(disk_entry.model_dump_json())
        except (OSError, ValueError) as e:
            raise CacheError(f"Failed to write cache entry {path}: {e}") from e
