"""FastAPI dependencies resolving components owned by the application.

The components are constructed once in the app factory lifespan and kept on
``app.state``; routes receive them through ``Depends`` instead of importing
module-level instances.
"""

from __future__ import annotations

from fastapi import Request

from app.services.user_service import UserService
from app.utils.ttl_cache import ExpiringCache


def get_cache(request: Request) -> ExpiringCache:
    return request.app.state.cache


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service
