import pytest
import redis

from app.core import redis as cache
from app.core.errors import NotFoundError, ValidationError
from app.models.activity_log import ActivityLog, LogActionType
from app.models.permission import Permission, UserPermission
from app.models.user import UserRole
from app.services.permission_service import PermissionService, permission_cache_key
from app.services.user_service import UserService
from app.services.seed_service import ALL_PERMISSION_CODES, DEFAULT_PERMISSIONS, ROLE_PERMISSIONS, seed_default_permissions


def test_effective_permissions_are_role_defaults_plus_grants(db, make_user):
    user = make_user(UserRole.EMPLOYEE)
    service = PermissionService(db)
    service.add_user_permission(user.id, "customers.delete")
    service.add_user_permission(user.id, "system.logs")

    expected = ROLE_PERMISSIONS["employee"] | {"customers.delete", "system.logs"}
    assert service.get_user_permissions(user.id) == expected
    for code in ALL_PERMISSION_CODES:
        assert service.has_permission(user.id, code) is (code in expected)


def test_custom_role_defaults_with_grant(db, make_user):
    user = make_user(UserRole.USER)
    service = PermissionService(db, role_defaults={"user": {"customers.view"}})

    service.add_user_permission(user.id, "customers.edit")

    assert service.get_user_permissions(user.id) == {"customers.view", "customers.edit"}


def test_role_lookup_is_case_insensitive(db, make_user):
    user = make_user("Manager")

    assert PermissionService(db).get_user_permissions(user.id) == ROLE_PERMISSIONS["manager"]


def test_update_with_empty_list_keeps_role_defaults(db, make_user):
    user = make_user(UserRole.EMPLOYEE)
    service = PermissionService(db)
    service.add_user_permission(user.id, "customers.delete")

    result = service.update_user_permissions(user.id, [])

    assert result == ROLE_PERMISSIONS["employee"]
    assert db.query(UserPermission).filter_by(user_id=user.id).count() == 0


def test_update_stores_only_codes_beyond_role_defaults(db, make_user, admin_user):
    user = make_user(UserRole.EMPLOYEE)
    service = PermissionService(db)

    result = service.update_user_permissions(
        user.id, ["customers.view", "customers.delete", "users.view"], updated_by=admin_user.id
    )

    assert result == ROLE_PERMISSIONS["employee"] | {"customers.delete", "users.view"}
    assert service.describe_user_permissions(user.id)["explicit_permissions"] == ["customers.delete", "users.view"]
    log = db.query(ActivityLog).filter_by(action=LogActionType.CHANGE_PERMISSION).one()
    assert log.entity_id == user.id
    assert log.user_id == admin_user.id


def test_update_rejects_unknown_codes(db, make_user):
    user = make_user()

    with pytest.raises(ValidationError) as exc_info:
        PermissionService(db).update_user_permissions(user.id, ["customers.view", "rockets.launch"])

    assert exc_info.value.errors == ["permissions: Unknown permission code: rockets.launch"]


def test_add_is_idempotent_and_remove_reports_change(db, make_user):
    user = make_user()
    service = PermissionService(db)

    assert service.add_user_permission(user.id, "customers.view") is True
    assert service.add_user_permission(user.id, "customers.view") is False
    assert service.remove_user_permission(user.id, "customers.view") is True
    assert service.remove_user_permission(user.id, "customers.view") is False
    assert not service.has_permission(user.id, "customers.view")


def test_unknown_user_or_code_raises_not_found(db, make_user):
    user = make_user()
    service = PermissionService(db)

    with pytest.raises(NotFoundError):
        service.get_user_permissions(4242)
    with pytest.raises(NotFoundError):
        service.add_user_permission(user.id, "rockets.launch")


def test_seed_only_fills_an_empty_catalog(db):
    assert seed_default_permissions(db) == 0

    db.query(Permission).delete()
    db.commit()

    assert seed_default_permissions(db) == len(DEFAULT_PERMISSIONS)
    assert seed_default_permissions(db) == 0
    assert db.query(Permission).count() == len(DEFAULT_PERMISSIONS)


def test_list_permissions_by_category(db):
    codes = {p.code for p in PermissionService(db).list_permissions("customers")}
    assert codes == {code for code, _, _, category in DEFAULT_PERMISSIONS if category == "customers"}


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


class BrokenRedis:
    def get(self, *args):
        raise redis.ConnectionError("down")

    setex = delete = get


def test_permission_set_is_cached_and_invalidated(db, make_user, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "get_redis_client", lambda: fake)
    user = make_user(UserRole.USER)
    service = PermissionService(db)

    assert "customers.view" not in service.get_user_permissions(user.id)
    assert f"bizservice:permissions:user:{user.id}" in fake.store

    service.add_user_permission(user.id, "customers.view")

    assert fake.store == {}
    assert "customers.view" in service.get_user_permissions(user.id)


def test_cache_failures_degrade_to_database(db, make_user, monkeypatch):
    monkeypatch.setattr(cache, "get_redis_client", lambda: BrokenRedis())
    user = make_user(UserRole.USER)

    assert PermissionService(db).get_user_permissions(user.id) == ROLE_PERMISSIONS["user"]
    assert cache.cache_delete("anything") is False


def test_deleting_user_evicts_cached_permissions(db, make_user, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "get_redis_client", lambda: fake)
    user = make_user(UserRole.EMPLOYEE)
    service = PermissionService(db)
    service.get_user_permissions(user.id)
    assert f"bizservice:{permission_cache_key(user.id)}" in fake.store

    UserService(db).delete(user.id)

    assert fake.store == {}
    with pytest.raises(NotFoundError):
        service.get_user_permissions(user.id)


def test_stale_cache_entry_for_missing_user_is_not_served(db, monkeypatch):
    fake = FakeRedis()
    fake.store["bizservice:permissions:user:4242"] = '["customers.view"]'
    monkeypatch.setattr(cache, "get_redis_client", lambda: fake)

    with pytest.raises(NotFoundError):
        PermissionService(db).get_user_permissions(4242)

    assert fake.store == {}
