"""Cache module for commitgroup.

This package provides caching utilities to prevent redundant LLM API calls:
- models: CacheEntry, CacheStats data models
- keys: Cache key and fingerprint generation
- paths: Functions for getting cache file paths
- store: TieredCache (memory tier + durable tier)
"""

# Models
from commitgroup.cache.models import (
    CacheEntry,
    CacheStats,
)

# Key generation
from commitgroup.cache.keys import (
    compute_fingerprint,
    generate_cache_key,
    hash_content,
)

# Path utilities
from commitgroup.cache.paths import (
    get_cache_dir,
    get_entry_file,
)

# Tiered cache
from commitgroup.cache.store import (
    TieredCache,
)


__all__ = [
    # Models
    "CacheEntry",
    "CacheStats",
    # Keys
    "compute_fingerprint",
    "generate_cache_key",
    "hash_content",
    # Paths
    "get_cache_dir",
    "get_entry_file",
    # Store
    "TieredCache",
]
