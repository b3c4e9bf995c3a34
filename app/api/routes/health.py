from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns a status response to verify the API is operational, along with
    the number of cache entries and rate-limited clients currently held in
    memory. Not rate limited, so load balancers can poll it freely.

    Returns:
        dict: ``status`` plus ``cache_size`` and ``rate_limit_clients``.
    """

    state = request.app.state
    return {
        "status": "ok",
        "cache_size": state.cache.size(),
        "rate_limit_clients": state.rate_limiter.get_size(),
    }
