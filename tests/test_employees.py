from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from rollcall.core.enums import LoginStatus, Role
from rollcall.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError

from fakes import NOW, OPEN_AT, WINDOW


def _update(world, caller, emp_id, **changes):
    emp = world.employees.get_by_id(emp_id)
    fields = {
        "name": emp.name,
        "start_time": emp.start_time,
        "end_time": emp.end_time,
        "allowed_break_time": emp.allowed_break_time,
        "rate_per_day": emp.rate_per_day,
        "is_manager": emp.is_manager,
    }
    fields.update(changes)
    world.container.employee_service.update_employee(caller, emp_id, now=NOW, **fields)
    return world.employees.get_by_id(emp_id)


def test_create_plain_employee(world):
    owner = world.admin()
    store = world.store(owner)
    emp = world.employees.get_by_id(world.employee(owner, store))

    assert emp.login_status == LoginStatus.NONE
    assert emp.pin_hash is None
    assert emp.user_id is None
    assert (emp.start_time, emp.end_time, emp.allowed_break_time, emp.rate_per_day) == (540, 1020, 60, 800.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"rate_per_day": -1},
        {"start_time": 1440},
        {"end_time": -5},
        {"allowed_break_time": -10},
        {"is_manager": True},
        {"is_manager": True, "pin": "12a4"},
        {"is_manager": True, "pin": "123"},
    ],
)
def test_create_employee_validation(world, overrides):
    owner = world.admin()
    store = world.store(owner)
    with pytest.raises(ValidationError):
        world.employee(owner, store, **overrides)


def test_only_owner_adds_employees(world):
    owner = world.admin()
    stranger = world.admin(email="other@shop.test")
    store = world.store(owner)
    manager = world.employees.get_by_id(world.employee(owner, store, name="Bob", is_manager=True, pin="1234"))

    with pytest.raises(AuthorizationError):
        world.employee(stranger, store)
    with pytest.raises(AuthorizationError):
        world.employee(manager.user_id, store)


def test_manager_login_is_provisioned_and_linked(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob Smith", is_manager=True, pin="1234")
    emp = world.employees.get_by_id(emp_id)

    user = world.users.get_by_id(emp.user_id)
    assert emp.login_status == LoginStatus.LINKED
    assert user.email == f"bob.smith.{emp_id}@rollcall.local"
    assert user.role == Role.MANAGER
    assert user.login_key == "bob.smith"
    assert user.password_hash == emp.pin_hash
    assert check_password_hash(user.password_hash, "1234")


def test_provision_is_idempotent(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    logins = world.container.manager_login_service
    users_before = len(world.users.list_all())

    assert logins.provision(emp_id) == world.employees.get_by_id(emp_id).user_id
    assert len(world.users.list_all()) == users_before


def test_failed_provisioning_leaves_manager_pending_until_retry(world):
    owner = world.admin()
    store = world.store(owner)

    world.users.fail_create = True
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    assert world.employees.get_by_id(emp_id).login_status == LoginStatus.PENDING

    logins = world.container.manager_login_service
    assert logins.retry_pending() == {"linked": 0, "failed": 1}

    world.users.fail_create = False
    assert logins.retry_pending() == {"linked": 1, "failed": 0}
    assert world.employees.get_by_id(emp_id).login_status == LoginStatus.LINKED
    assert logins.retry_pending() == {"linked": 0, "failed": 0}


def test_retry_reuses_login_left_behind_by_an_earlier_attempt(world):
    owner = world.admin()
    store = world.store(owner)
    world.users.fail_create = True
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    world.users.fail_create = False

    emp = world.employees.get_by_id(emp_id)
    logins = world.container.manager_login_service
    leftover = world.users.create_user(
        name="Bob",
        email=logins.login_id_for(emp),
        password_hash="stale",
        role=Role.MANAGER,
        login_key="bob",
        created_at=NOW,
    )

    assert logins.provision(emp_id) == leftover
    assert world.users.get_by_id(leftover).password_hash == emp.pin_hash


def test_colliding_login_suffix_gets_its_own_account(world):
    owner_a = world.admin()
    owner_b = world.admin(email="other@shop.test")
    store_a = world.store(owner_a, name="Store A")
    store_b = world.store(owner_b, name="Store B")

    world.employees._id = 2344
    first = world.employees.get_by_id(world.employee(owner_a, store_a, name="Bob", is_manager=True, pin="1111"))
    world.employees._id = 12344
    second = world.employees.get_by_id(world.employee(owner_b, store_b, name="Bob", is_manager=True, pin="2222"))

    assert (first.employee_id, second.employee_id) == (2345, 12345)
    assert second.login_status == LoginStatus.LINKED
    assert first.user_id != second.user_id
    assert world.users.get_by_id(first.user_id).email == "bob.2345@rollcall.local"
    assert world.users.get_by_id(second.user_id).email == "bob.12345@rollcall.local"

    auth = world.container.auth_service
    assert auth.authenticate_manager("Bob", "1111").user_id == first.user_id
    assert auth.authenticate_manager("Bob", "2222").user_id == second.user_id

    access = world.container.access_service
    assert access.has_register_access(store_a, first.user_id)
    assert not access.has_register_access(store_a, second.user_id)


def test_provision_refuses_login_owned_by_another_account(world):
    owner = world.admin()
    store = world.store(owner)
    world.users.fail_create = True
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    world.users.fail_create = False

    emp = world.employees.get_by_id(emp_id)
    logins = world.container.manager_login_service
    stranger = world.users.create_user(
        name="Robert",
        email=logins.login_id_for(emp),
        password_hash="theirs",
        role=Role.MANAGER,
        login_key="robert",
        created_at=NOW,
    )

    with pytest.raises(InvalidStateError):
        logins.provision(emp_id)
    assert world.users.get_by_id(stranger).password_hash == "theirs"
    assert world.employees.get_by_id(emp_id).login_status == LoginStatus.PENDING


def test_provision_rejects_non_managers(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store)
    with pytest.raises(InvalidStateError):
        world.container.manager_login_service.provision(emp_id)
    with pytest.raises(NotFoundError):
        world.container.manager_login_service.provision(999)


def test_update_keeps_existing_pin_when_none_given(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    old_hash = world.employees.get_by_id(emp_id).pin_hash

    emp = _update(world, owner, emp_id, rate_per_day=900)
    assert emp.pin_hash == old_hash
    assert emp.rate_per_day == 900
    assert emp.login_status == LoginStatus.LINKED


def test_new_pin_updates_linked_login(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")

    _update(world, owner, emp_id, pin="5678")
    auth = world.container.auth_service
    assert auth.authenticate_manager("Bob", "5678").user_id == world.employees.get_by_id(emp_id).user_id


def test_rename_updates_login_lookup(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")

    emp = _update(world, owner, emp_id, name="Robert Smith")
    user = world.users.get_by_id(emp.user_id)
    assert user.name == "Robert Smith"
    assert user.login_key == "robert.smith"
    assert world.container.auth_service.authenticate_manager("Robert Smith", "1234").user_id == user.user_id


def test_demotion_clears_pin_but_keeps_login(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    user_id = world.employees.get_by_id(emp_id).user_id

    emp = _update(world, owner, emp_id, is_manager=False)
    assert emp.pin_hash is None
    assert emp.login_status == LoginStatus.NONE
    assert world.users.get_by_id(user_id) is not None
    assert not world.container.access_service.has_register_access(store, user_id)


def test_promotion_provisions_login(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Carol")

    with pytest.raises(ValidationError):
        _update(world, owner, emp_id, is_manager=True)

    emp = _update(world, owner, emp_id, is_manager=True, pin="4321")
    assert emp.login_status == LoginStatus.LINKED
    assert world.container.auth_service.authenticate_manager("Carol", "4321").user_id == emp.user_id


def test_delete_requires_admin_owner(world):
    owner = world.admin()
    stranger = world.admin(email="other@shop.test")
    store = world.store(owner)
    manager = world.employees.get_by_id(world.employee(owner, store, name="Bob", is_manager=True, pin="1234"))
    emp_id = world.employee(owner, store)
    service = world.container.employee_service

    with pytest.raises(AuthorizationError):
        service.delete_employee(manager.user_id, emp_id, window=WINDOW, now=NOW)
    with pytest.raises(AuthorizationError):
        service.delete_employee(stranger, emp_id, window=WINDOW, now=NOW)
    with pytest.raises(NotFoundError):
        service.delete_employee(owner, 999, window=WINDOW, now=NOW)


def test_delete_refused_while_on_shift(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store)
    log_id = world.open_day(owner, store)
    attendance = world.container.attendance_service
    service = world.container.employee_service

    rollcall_id = attendance.mark_employee_present(owner, emp_id, log_id, now=OPEN_AT)
    with pytest.raises(InvalidStateError):
        service.delete_employee(owner, emp_id, window=WINDOW, now=NOW)

    attendance.start_employee_break(owner, emp_id, rollcall_id, now=OPEN_AT + 1)
    with pytest.raises(InvalidStateError):
        service.delete_employee(owner, emp_id, window=WINDOW, now=NOW)


def test_delete_cascades_attendance_and_login(world):
    owner = world.admin()
    store = world.store(owner)
    emp_id = world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    user_id = world.employees.get_by_id(emp_id).user_id
    log_id = world.open_day(owner, store)
    attendance = world.container.attendance_service

    rollcall_id = attendance.mark_employee_present(owner, emp_id, log_id, now=OPEN_AT)
    break_id = attendance.start_employee_break(owner, emp_id, rollcall_id, now=OPEN_AT + 1)
    attendance.end_employee_break(owner, break_id, now=OPEN_AT + 2)
    attendance.mark_employee_absent(owner, emp_id, log_id, now=OPEN_AT + 3)

    world.container.employee_service.delete_employee(owner, emp_id, window=WINDOW, now=NOW)

    assert world.employees.get_by_id(emp_id) is None
    assert world.attendance.rollcalls == {}
    assert world.attendance.logs == {}
    assert world.users.get_by_id(user_id) is None


def test_register_employees_listing(world):
    owner = world.admin()
    stranger = world.admin(email="other@shop.test")
    store = world.store(owner)
    world.employee(owner, store, name="Alice")
    world.employee(owner, store, name="Bob", is_manager=True, pin="1234")
    service = world.container.employee_service

    rows = service.get_register_employees(owner, store)
    assert [r["name"] for r in rows] == ["Alice", "Bob"]
    assert rows[1]["login_status"] == "linked"
    assert "pin_hash" not in rows[1]

    with pytest.raises(AuthorizationError):
        service.get_register_employees(stranger, store)
