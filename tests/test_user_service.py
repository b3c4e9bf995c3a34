"""Unit tests for the user store and the cache-aside UserService."""

import pytest

from app.core.errors import NotFoundAppError, ValidationAppError
from app.services.user_service import USERS_ALL_KEY, UserService, user_cache_key
from app.services.user_store import InMemoryUserStore, hash_password
from app.utils.ttl_cache import ExpiringCache


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def cache(clock) -> ExpiringCache:
    return ExpiringCache(default_ttl=60, sweep_interval=None, clock=clock)


@pytest.fixture
def service(store, cache) -> UserService:
    return UserService(store, cache, ttl_seconds=30)


def _create(service: UserService, email: str = "ada@example.com", **kwargs):
    values = {"name": "Ada", "password": "s3cret-pass"}
    values.update(kwargs)
    return service.create_user(email=email, **values)


class TestPasswordHashing:
    def test_hash_is_salted(self) -> None:
        first = hash_password("correct horse")
        second = hash_password("correct horse")

        assert first != second
        assert first.count("$") == 1

    def test_same_salt_gives_same_hash(self) -> None:
        salt = b"0" * 16

        assert hash_password("correct horse", salt=salt) == hash_password("correct horse", salt=salt)
        assert hash_password("correct horse", salt=salt) != hash_password("wrong", salt=salt)


class TestInMemoryUserStore:
    def test_create_defaults_role_and_rejects_duplicate_email(self, store) -> None:
        user = store.create(email="a@example.com", name="A", password="password1")

        assert user is not None
        assert user.role == "user"
        assert store.create(email="A@example.com", name="B", password="password2") is None
        assert len(store.find_all()) == 1

    def test_update_missing_user_returns_none(self, store) -> None:
        assert store.update("nope", {"name": "x"}) is None

    def test_update_ignores_unknown_fields(self, store) -> None:
        user = store.create(email="a@example.com", name="A", password="password1")

        updated = store.update(user.id, {"name": "B", "password_hash": "x", "id": "other"})

        assert updated.name == "B"
        assert updated.id == user.id
        assert updated.password_hash == user.password_hash

    def test_update_to_taken_email_raises(self, store) -> None:
        store.create(email="a@example.com", name="A", password="password1")
        other = store.create(email="b@example.com", name="B", password="password2")

        with pytest.raises(ValidationAppError):
            store.update(other.id, {"email": "a@example.com"})

    def test_delete(self, store) -> None:
        user = store.create(email="a@example.com", name="A", password="password1")

        assert store.delete(user.id) is True
        assert store.delete(user.id) is False
        assert store.find_by_id(user.id) is None


class TestUserService:
    def test_public_view_has_no_password(self, service) -> None:
        user = _create(service)

        assert "password" not in user
        assert "password_hash" not in user
        assert user["email"] == "ada@example.com"

    def test_duplicate_email_raises_validation_error(self, service) -> None:
        _create(service)

        with pytest.raises(ValidationAppError) as exc_info:
            _create(service, name="Other")
        assert exc_info.value.message == "Email already exists"

    def test_get_user_populates_cache_then_hits(self, service, cache) -> None:
        user = _create(service)

        service.get_user(user["id"])
        assert cache.misses == 1
        assert cache.has(user_cache_key(user["id"]))

        assert service.get_user(user["id"]) == user
        assert cache.hits == 1

    def test_get_missing_user_raises_not_found(self, service) -> None:
        with pytest.raises(NotFoundAppError) as exc_info:
            service.get_user("missing")
        assert exc_info.value.details == {"resource": "User", "resource_id": "missing"}

    def test_cached_entry_expires_after_ttl(self, service, cache, clock) -> None:
        user = _create(service)
        service.get_user(user["id"])

        clock.advance(31)

        assert not cache.has(user_cache_key(user["id"]))

    def test_list_users_is_cached_and_invalidated_by_create(self, service, cache) -> None:
        _create(service, "a@example.com")
        assert len(service.list_users()) == 1
        assert cache.has(USERS_ALL_KEY)

        _create(service, "b@example.com")
        assert not cache.has(USERS_ALL_KEY)
        assert [u["email"] for u in service.list_users()] == ["a@example.com", "b@example.com"]

    def test_update_invalidates_cached_user(self, service, cache) -> None:
        user = _create(service)
        service.get_user(user["id"])
        service.list_users()

        updated = service.update_user(user["id"], {"name": "Countess"})

        assert updated["name"] == "Countess"
        assert not cache.has(user_cache_key(user["id"]))
        assert not cache.has(USERS_ALL_KEY)
        assert service.get_user(user["id"])["name"] == "Countess"

    def test_update_missing_user_raises_not_found(self, service) -> None:
        with pytest.raises(NotFoundAppError):
            service.update_user("missing", {"name": "x"})

    def test_delete_user(self, service, cache) -> None:
        user = _create(service)
        service.get_user(user["id"])

        service.delete_user(user["id"])

        assert not cache.has(user_cache_key(user["id"]))
        with pytest.raises(NotFoundAppError):
            service.get_user(user["id"])
        with pytest.raises(NotFoundAppError):
            service.delete_user(user["id"])

    def test_update_during_get_fill_is_not_overwritten(self, service, store, monkeypatch) -> None:
        user = _create(service)
        original_find = store.find_by_id

        def find_then_update(user_id):
            stale = original_find(user_id)
            monkeypatch.setattr(store, "find_by_id", original_find)
            service.update_user(user_id, {"name": "New"})
            return stale

        monkeypatch.setattr(store, "find_by_id", find_then_update)

        assert service.get_user(user["id"])["name"] == "Ada"
        assert service.get_user(user["id"])["name"] == "New"

    def test_create_during_list_fill_is_not_overwritten(self, service, store, monkeypatch) -> None:
        _create(service, "a@example.com")
        original_find_all = store.find_all

        def find_all_then_create():
            stale = original_find_all()
            monkeypatch.setattr(store, "find_all", original_find_all)
            _create(service, "b@example.com")
            return stale

        monkeypatch.setattr(store, "find_all", find_all_then_create)

        assert len(service.list_users()) == 1
        assert len(service.list_users()) == 2
