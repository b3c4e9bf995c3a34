"""HTTP middleware for request correlation and request logging.

``request_id_middleware`` accepts an incoming X-Request-ID header (or
generates a UUID), stores it in contextvars for log correlation, and echoes
it back together with the request duration.

``request_logging_middleware`` emits one ``request.completed`` record for
slow or failed requests, or for every request when LOG_LOG_ALL_REQUESTS is on.

Usage:
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(request_id_middleware)

The request id middleware must be registered last so it runs outermost and
the request logger sees the id.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


def _log_settings(request: Request):
    return request.app.state.settings.log


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.

    Side Effects:
        - Sets request_id in contextvars (accessible via get_request_id())
        - Clears request_id from contextvars after request completes
        - Adds X-Request-ID header to response
        - Adds X-Request-Duration-ms header to response
    """

    header_name = _log_settings(request).request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    request.state.request_id = request_id
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log method, path, status and duration for slow or failed requests."""

    cfg = _log_settings(request)
    start = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    status_code = response.status_code
    if cfg.log_all_requests or duration_ms > cfg.slow_request_ms or status_code >= 400:
        logger.info(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else None,
            },
        )
    return response
