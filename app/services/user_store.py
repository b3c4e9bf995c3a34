"""In-memory user store.

Users live in a dict guarded by a lock. Data is lost on restart; durable
storage is out of scope for this service.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

_PBKDF2_ITERATIONS = 120_000


def hash_password(password: str, *, salt: bytes | None = None) -> str:
    """Return ``salt$digest`` (hex) using PBKDF2-HMAC-SHA256."""

    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    role: str
    password_hash: str = field(repr=False)
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, Any]:
        """Serializable view without the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class InMemoryUserStore:
    """Thread-safe user store keyed by id, with unique e-mails."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.RLock()

    def find_all(self) -> list[User]:
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.created_at)

    def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def find_by_email(self, email: str) -> User | None:
        needle = email.lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == needle:
                    return user
        return None

    def create(
        self,
        *,
        email: str,
        name: str,
        password: str,
        role: str | None = None,
    ) -> User | None:
        """Create a user.

        Returns:
            The new user, or None when the e-mail is already registered.
        """

        password_hash = hash_password(password)
        now = _utcnow()
        with self._lock:
            if self.find_by_email(email) is not None:
                return None
            user = User(
                id=str(uuid.uuid4()),
                email=email,
                name=name,
                role=role or "user",
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user

        logger.info("user.created", extra={"user_id": user.id, "role": user.role})
        return user

    def update(self, user_id: str, changes: dict[str, Any]) -> User | None:
        """Apply ``changes`` (name, email, role) to a user.

        Returns:
            The updated user, or None when no user has this id.

        Raises:
            ValidationAppError: If the new e-mail belongs to another user.
        """

        allowed = {k: v for k, v in changes.items() if k in {"name", "email", "role"} and v is not None}
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None

            new_email = allowed.get("email")
            if new_email is not None:
                owner = self.find_by_email(new_email)
                if owner is not None and owner.id != user_id:
                    raise ValidationAppError(
                        code="email_exists",
                        message="Email already exists",
                        details={"field": "email"},
                    )

            updated = replace(user, **allowed, updated_at=_utcnow())
            self._users[user_id] = updated

        logger.info("user.updated", extra={"user_id": user_id, "fields": sorted(allowed)})
        return updated

    def delete(self, user_id: str) -> bool:
        with self._lock:
            removed = self._users.pop(user_id, None) is not None
        if removed:
            logger.info("user.deleted", extra={"user_id": user_id})
        return removed
