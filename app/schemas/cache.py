"""Pydantic schema for the cache statistics payload."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Cache statistics as returned by ``ExpiringCache.get_stats()``.

    Field names are camelCase on the wire; consumers depend on this exact set
    and on ``hitRate`` being a two-decimal string.
    """

    size: int = Field(..., description="Entries currently stored, including expired ones not yet swept.")
    defaultTTL: int = Field(..., description="Default TTL in milliseconds.")
    hits: int = Field(..., description="Cumulative cache hits.")
    misses: int = Field(..., description="Cumulative cache misses.")
    hitRate: str = Field(..., description="hits / totalRequests with two decimals, '0.00' when idle.")
    totalRequests: int = Field(..., description="hits + misses.")
