"""Application factory for FastAPI app.

Centralizes app construction (middleware, handlers, routers) and owns the
lifecycle of the in-memory components: the cache, the rate limiter and the
user store are built when the app starts and torn down when it stops.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.api.routes import cache_router, health_router, users_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, request_logging_middleware
from app.services.user_service import UserService
from app.services.user_store import InMemoryUserStore
from app.utils.ttl_cache import ExpiringCache

logger = logging.getLogger(__name__)


def init_components(app: FastAPI, cfg: Settings) -> None:
    """Build the cache, rate limiter and user service and attach them to app.state."""

    cache = ExpiringCache(
        default_ttl=cfg.cache.default_ttl_seconds,
        sweep_interval=cfg.cache.sweep_interval_seconds,
        sweep_batch_size=cfg.cache.sweep_batch_size,
    )
    rate_limiter = InMemoryFixedWindowRateLimiter(
        max_requests=cfg.app.rate_limit_requests,
        window_seconds=cfg.app.rate_limit_window_seconds,
        sweep_interval=cfg.app.rate_limit_sweep_interval_seconds,
    )

    app.state.cache = cache
    app.state.rate_limiter = rate_limiter
    app.state.user_service = UserService(
        InMemoryUserStore(),
        cache,
        ttl_seconds=cfg.cache.user_ttl_seconds,
    )

    logger.info(
        "app.components_started",
        extra={
            "cache_default_ttl_s": cfg.cache.default_ttl_seconds,
            "rate_limit_requests": cfg.app.rate_limit_requests,
            "rate_limit_window_s": cfg.app.rate_limit_window_seconds,
        },
    )


def shutdown_components(app: FastAPI) -> None:
    """Stop background sweeps and release in-memory state. Idempotent."""

    for name in ("cache", "rate_limiter"):
        component = getattr(app.state, name, None)
        if component is not None:
            component.destroy()

    logger.info("app.components_stopped")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the environment-loaded ones.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_components(app, cfg)
        try:
            yield
        finally:
            shutdown_components(app)

    app = FastAPI(
        title="User Service API",
        description=(
            "CRUD API over an in-memory user store, with an expiring cache "
            "for reads and a fixed-window rate limiter per client."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg

    # Middleware (last registered runs first)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(users_router, prefix="/api")
    app.include_router(cache_router, prefix="/api")
    app.include_router(health_router)

    return app
