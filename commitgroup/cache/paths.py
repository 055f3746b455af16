"""Cache file path utilities for commitgroup.

Contains functions for getting paths to cache files:
- get_cache_dir: Get the durable cache directory
- get_entry_file: Get path to the file holding one cache entry
"""

from pathlib import Path
from typing import Optional

CACHE_FILE_SUFFIX = ".cache"


def get_cache_dir(base_dir: Optional[Path] = None) -> Path:
    """Return the durable cache directory (not created here).

    Args:
        base_dir: Explicit cache directory. Defaults to the configured
            cache_dir, or ~/.commitgroup/cache.

    Returns:
        Path to the cache directory.
    """
    if base_dir is not None:
        return base_dir

    from commitgroup.global_config import (
        GlobalConfigError,
        get_cache_dir_override,
        get_global_config_dir,
    )

    try:
        override = get_cache_dir_override()
    except GlobalConfigError:
        override = None
    return override or get_global_config_dir() / "cache"


def get_entry_file(cache_dir: Path, key: str) -> Path:
    """Return path to the file storing the entry for a cache key.

    Args:
        cache_dir: The durable cache directory.
        key: The cache key.

    Returns:
        Path to <key>.cache inside the cache directory.
    """
    return cache_dir / f"{key}{CACHE_FILE_SUFFIX}"
