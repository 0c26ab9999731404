from __future__ import annotations

import pytest

from rollcall.core.enums import LoginStatus, Role
from rollcall.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from rollcall.users.identity import make_login_key, make_manager_login_id


def test_login_key_is_normalized_name():
    assert make_login_key("  Anna  Marie O'Neil ") == "anna.marie.oneil"
    assert make_login_key("BOB\tsmith") == "bob.smith"


def test_manager_login_id_uses_last_four_digits_of_employee_id():
    assert make_manager_login_id("Bob Smith", 123456) == "bob.smith.3456@rollcall.local"
    assert make_manager_login_id("Bob Smith", 7, domain="shop.test") == "bob.smith.7@shop.test"
    assert make_manager_login_id("Bob Smith", 123456, full_id=True) == "bob.smith.123456@rollcall.local"


def test_signup_and_authenticate_admin(world):
    auth = world.container.auth_service
    user_id = world.admin(email="Owner@Shop.test")

    s_user = auth.authenticate("owner@shop.test", "secret1")
    assert s_user.user_id == user_id
    assert s_user.role == Role.ADMIN
    assert auth.get_current_user(user_id)["email"] == "owner@shop.test"
    assert auth.has_role(user_id, Role.ADMIN)

    with pytest.raises(AuthenticationError):
        auth.authenticate("owner@shop.test", "wrong-password")


def test_signup_rejects_duplicates_and_short_passwords(world):
    world.admin()
    auth = world.container.auth_service

    with pytest.raises(ValidationError):
        auth.signup_admin(email="owner@shop.test", password="another1")
    with pytest.raises(ValidationError):
        auth.signup_admin(email="new@shop.test", password="123")


def test_unauthenticated_queries_return_nothing(world):
    auth = world.container.auth_service
    assert auth.get_current_user(None) is None
    assert auth.get_user_role(None) is None
    assert auth.has_role(None, Role.ADMIN) is False


def test_manager_logs_in_with_name_and_pin(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob Smith", is_manager=True, pin="1234")

    emp = world.employees.get_by_id(emp_id)
    assert emp.login_status == LoginStatus.LINKED

    s_user = world.container.auth_service.authenticate_manager("  bob   SMITH ", "1234")
    assert s_user.user_id == emp.user_id
    assert s_user.role == Role.MANAGER

    with pytest.raises(AuthenticationError):
        world.container.auth_service.authenticate_manager("Bob Smith", "9999")


def test_managers_sharing_a_name_are_told_apart_by_pin(world):
    owner = world.admin()
    store = world.store(owner)
    first = world.employee(owner, store, name="Sam Lee", is_manager=True, pin="1111")
    second = world.employee(owner, store, name="Sam Lee", is_manager=True, pin="2222")

    auth = world.container.auth_service
    assert auth.authenticate_manager("Sam Lee", "1111").user_id == world.employees.get_by_id(first).user_id
    assert auth.authenticate_manager("Sam Lee", "2222").user_id == world.employees.get_by_id(second).user_id
    assert auth.find_manager_account_by_name("sam lee")["id"] == world.employees.get_by_id(first).user_id
    assert auth.find_manager_account_by_name("Nobody") is None


def test_register_access_for_owner_manager_and_stranger(world):
    owner = world.admin()
    stranger = world.admin(email="other@shop.test")
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    manager_user = world.employees.get_by_id(emp_id).user_id

    access = world.container.access_service
    assert access.has_register_access(store, owner)
    assert access.has_register_access(store, manager_user)
    assert not access.has_register_access(store, stranger)

    with pytest.raises(AuthorizationError):
        access.require_register_access(stranger, store)


def test_user_management_is_admin_only(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    manager_user = world.employees.get_by_id(emp_id).user_id
    users = world.container.user_service

    new_id = users.create_admin(owner, email="second@shop.test", password="secret2", name="Second")
    assert {u["id"] for u in users.list_users(owner)} >= {owner, new_id, manager_user}

    with pytest.raises(AuthorizationError):
        users.list_users(manager_user)
    with pytest.raises(AuthenticationError):
        users.create_admin(None, email="x@shop.test", password="secret3", name="X")
