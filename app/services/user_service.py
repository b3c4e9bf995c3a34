"""User service: CRUD over the user store with cache-aside reads.

Single-user lookups and the full listing are cached in the shared
ExpiringCache. Every write invalidates the keys it could have made stale.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from app.core.errors import NotFoundAppError, ValidationAppError
from app.services.user_store import InMemoryUserStore
from app.utils.ttl_cache import ExpiringCache

logger = logging.getLogger(__name__)

USERS_ALL_KEY = "users:all"


def user_cache_key(user_id: str) -> str:
    return f"user:{user_id}"


class UserService:
    """Orchestrates user reads and writes.

    Returned users are plain dicts (public fields only) so cached values are
    never aliased to the store's records.

    Every write bumps a generation counter before invalidating. A read that
    missed the cache only fills it if no write happened since the miss, so a
    slow read cannot put back a value that a concurrent write made stale.
    """

    def __init__(
        self,
        store: InMemoryUserStore,
        cache: ExpiringCache,
        *,
        ttl_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._ttl = ttl_seconds
        self._lock = threading.Lock()
        self._generation = 0

    def list_users(self) -> list[dict[str, Any]]:
        cached = self._cache.get(USERS_ALL_KEY)
        if cached is not None:
            return list(cached)

        generation = self._current_generation()
        users = [user.to_public() for user in self._store.find_all()]
        self._fill(USERS_ALL_KEY, users, generation)
        return list(users)

    def get_user(self, user_id: str) -> dict[str, Any]:
        """Fetch one user.

        Raises:
            NotFoundAppError: If no user has this id.
        """

        key = user_cache_key(user_id)
        cached = self._cache.get(key)
        if cached is not None:
            return dict(cached)

        generation = self._current_generation()
        user = self._store.find_by_id(user_id)
        if user is None:
            raise NotFoundAppError.for_resource("User", user_id)

        public = user.to_public()
        self._fill(key, public, generation)
        return dict(public)

    def create_user(
        self,
        *,
        email: str,
        name: str,
        password: str,
        role: str | None = None,
    ) -> dict[str, Any]:
        """Create a user.

        Raises:
            ValidationAppError: If the e-mail is already registered.
        """

        user = self._store.create(email=email, name=name, password=password, role=role)
        if user is None:
            logger.info("user.create_rejected", extra={"reason": "email_exists"})
            raise ValidationAppError(
                code="email_exists",
                message="Email already exists",
                details={"field": "email"},
            )

        with self._lock:
            self._generation += 1
            self._cache.delete(USERS_ALL_KEY)
        return user.to_public()

    def update_user(self, user_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        user = self._store.update(user_id, changes)
        if user is None:
            raise NotFoundAppError.for_resource("User", user_id)

        self._invalidate(user_id)
        return user.to_public()

    def delete_user(self, user_id: str) -> None:
        if not self._store.delete(user_id):
            raise NotFoundAppError.for_resource("User", user_id)

        self._invalidate(user_id)

    def _current_generation(self) -> int:
        with self._lock:
            return self._generation

    def _fill(self, key: str, value: Any, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("user.cache_fill_skipped", extra={"cache_key": key})
                return
            self._cache.set(key, value, self._ttl)

    def _invalidate(self, user_id: str) -> None:
        with self._lock:
            self._generation += 1
            self._cache.delete(user_cache_key(user_id))
            self._cache.delete(USERS_ALL_KEY)
