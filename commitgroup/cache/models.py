"""Cache data models for commitgroup.

Contains Pydantic models for the result cache:
- CacheEntry: A persisted set of suggestions with format metadata
- CacheStats: Hit/miss counters for observability
"""

from typing import Optional, Union

from pydantic import BaseModel

from commitgroup.models import Suggestion


class CacheEntry(BaseModel):
    """A cached suggestion set as stored in either tier."""

    # Base64 gzip payload when compressed
    suggestions: Union[list[Suggestion], str]
    timestamp: float  # Epoch seconds
    version: str
    compressed: bool = False
    fingerprint: Optional[str] = None


class CacheStats(BaseModel):
    """Cache counters accumulated since the cache was created."""

    size: int
    hit_rate: float
    hits: int = 0
    misses: int = 0
