from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import get_cache
from app.core.rate_limit import enforce_rate_limit
from app.schemas.cache import CacheStats
from app.schemas.common import SuccessResponse, success
from app.utils.ttl_cache import ExpiringCache

router = APIRouter(
    prefix="/cache",
    tags=["Cache"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get("/stats", response_model=SuccessResponse[CacheStats])
def get_cache_stats(
    cache: Annotated[ExpiringCache, Depends(get_cache)],
) -> SuccessResponse[CacheStats]:
    """Cache statistics: size, default TTL, hits, misses and hit rate.

    Returns:
        The output of ``ExpiringCache.get_stats()`` under ``data``.
    """

    return success(CacheStats(**cache.get_stats()), "Cache statistics retrieved successfully")
