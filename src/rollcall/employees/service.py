from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import generate_password_hash

from ..attendance.repository import AttendanceRepository
from ..attendance.status import derive_status, is_on_shift
from ..common.datetime_utils import DayWindow, now_ms, resolve_day_window
from ..common.validators import require_minute_of_day, require_non_empty, require_non_negative, require_pin
from ..core.constants import DEFAULT_LOGIN_DOMAIN, MANAGER_PIN_LENGTH
from ..core.enums import LoginStatus, Role
from ..core.exceptions import AuthenticationError, InvalidStateError, NotFoundError, ValidationError
from ..registers.repository import RegisterRepository
from ..users.access import AccessService
from ..users.identity import make_login_key, make_manager_login_id
from ..users.model import User
from ..users.repository import UserRepository
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


def employee_view(emp: Employee) -> dict:
    return {
        "id": emp.employee_id,
        "name": emp.name,
        "register_id": emp.register_id,
        "is_manager": emp.is_manager,
        "start_time": emp.start_time,
        "end_time": emp.end_time,
        "allowed_break_time": emp.allowed_break_time,
        "rate_per_day": emp.rate_per_day,
        "login_status": emp.login_status.value,
        "created_at": emp.created_at,
    }


class ManagerLoginService:
    """Provision login accounts for manager employees.

    Provisioning is idempotent: an employee row stays ``pending`` until its
    login exists and is linked, and can be retried any number of times.
    """

    def __init__(self, employees: EmployeeRepository, users: UserRepository, *, login_domain: str = DEFAULT_LOGIN_DOMAIN):
        self._employees = employees
        self._users = users
        self._login_domain = login_domain

    def login_id_for(self, emp: Employee, *, full_id: bool = False) -> str:
        return make_manager_login_id(emp.name, emp.employee_id, domain=self._login_domain, full_id=full_id)

    def _claimable(self, user: User, emp: Employee) -> bool:
        """A login left over from an earlier attempt for this same employee."""
        if user.role != Role.MANAGER or user.login_key != make_login_key(emp.name):
            return False
        return all(other.employee_id == emp.employee_id for other in self._employees.list_by_user_id(user.user_id))

    def _free_login(self, emp: Employee) -> tuple[str, Optional[User]]:
        login_id = self.login_id_for(emp)
        user = self._users.get_by_email(login_id)
        if user is None or self._claimable(user, emp):
            return login_id, user

        # the short suffix repeats every 10,000 ids
        wide_id = self.login_id_for(emp, full_id=True)
        wide_user = self._users.get_by_email(wide_id)
        if wide_id != login_id and (wide_user is None or self._claimable(wide_user, emp)):
            logger.warning("login id %s taken by user_id=%s; using %s", login_id, user.user_id, wide_id)
            return wide_id, wide_user
        raise InvalidStateError(f"Login id {login_id} is already used by another account")

    def provision(self, employee_id: int, *, now: Optional[int] = None) -> int:
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        if not emp.is_manager:
            raise InvalidStateError("Employee is not a manager")
        if emp.login_status == LoginStatus.LINKED and emp.user_id is not None:
            return emp.user_id
        if not emp.pin_hash:
            raise ValidationError("Manager PIN is required for manager employees")

        now = now_ms() if now is None else now
        login_id, user = self._free_login(emp)
        if user is None:
            user_id = self._users.create_user(
                name=emp.name,
                email=login_id,
                password_hash=emp.pin_hash,
                role=Role.MANAGER,
                login_key=make_login_key(emp.name),
                created_at=now,
            )
        else:
            # left over from an earlier attempt that failed before linking
            user_id = user.user_id
            self._users.update_password_hash(user_id, emp.pin_hash)

        self._employees.link_user(emp.employee_id, user_id=user_id, now=now)
        logger.info("manager login linked employee_id=%s user_id=%s login=%s", emp.employee_id, user_id, login_id)
        return user_id

    def try_provision(self, employee_id: int, *, now: Optional[int] = None) -> Optional[int]:
        """Provision, leaving the employee ``pending`` on failure."""
        try:
            return self.provision(employee_id, now=now)
        except Exception:
            logger.exception("manager login provisioning failed employee_id=%s; left pending", employee_id)
            return None

    def retry_pending(self, *, now: Optional[int] = None) -> dict:
        linked = 0
        failed = 0
        for emp in self._employees.list_by_login_status(LoginStatus.PENDING):
            if self.try_provision(emp.employee_id, now=now) is None:
                failed += 1
            else:
                linked += 1
        return {"linked": linked, "failed": failed}


class EmployeeService:
    """Use cases: manage the roster of a register."""

    def __init__(
        self,
        employees: EmployeeRepository,
        users: UserRepository,
        registers: RegisterRepository,
        attendance: AttendanceRepository,
        access: AccessService,
        logins: ManagerLoginService,
    ):
        self._employees = employees
        self._users = users
        self._registers = registers
        self._attendance = attendance
        self._access = access
        self._logins = logins

    @staticmethod
    def _validate_schedule(*, start_time, end_time, allowed_break_time, rate_per_day) -> tuple[int, int, int, float]:
        start_time = require_minute_of_day(start_time, "Start time")
        end_time = require_minute_of_day(end_time, "End time")
        allowed = require_non_negative(allowed_break_time, "Allowed break time")
        rate = require_non_negative(rate_per_day, "Rate per day")
        return start_time, end_time, int(allowed), rate

    def create_employee(
        self,
        caller_id: Optional[int],
        *,
        register_id: int,
        name: str,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool = False,
        pin: Optional[str] = None,
        now: Optional[int] = None,
    ) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to create an employee")
        self._access.require_owner(caller_id, register_id, "You don't have permission to add employees to this register")

        name = require_non_empty(name, "Employee name")
        start_time, end_time, allowed, rate = self._validate_schedule(
            start_time=start_time,
            end_time=end_time,
            allowed_break_time=allowed_break_time,
            rate_per_day=rate_per_day,
        )

        pin_hash = None
        if is_manager:
            if not pin:
                raise ValidationError("Manager PIN is required for manager employees")
            pin_hash = generate_password_hash(require_pin(pin, MANAGER_PIN_LENGTH))

        now = now_ms() if now is None else now
        employee_id = self._employees.create_employee(
            name=name,
            register_id=register_id,
            start_time=start_time,
            end_time=end_time,
            allowed_break_time=allowed,
            rate_per_day=rate,
            is_manager=bool(is_manager),
            pin_hash=pin_hash,
            login_status=LoginStatus.PENDING if is_manager else LoginStatus.NONE,
            created_by=caller_id,
            now=now,
        )
        logger.info("employee created employee_id=%s register_id=%s manager=%s", employee_id, register_id, bool(is_manager))

        if is_manager:
            self._logins.try_provision(employee_id, now=now)
        return employee_id

    def update_employee(
        self,
        caller_id: Optional[int],
        employee_id: int,
        *,
        name: str,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool,
        pin: Optional[str] = None,
        now: Optional[int] = None,
    ) -> None:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to update an employee")
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        self._access.require_owner(caller_id, emp.register_id, "You don't have permission to update employees in this register")

        name = require_non_empty(name, "Employee name")
        start_time, end_time, allowed, rate = self._validate_schedule(
            start_time=start_time,
            end_time=end_time,
            allowed_break_time=allowed_break_time,
            rate_per_day=rate_per_day,
        )

        pin_hash = emp.pin_hash
        pin_changed = False
        if is_manager and pin:
            pin_hash = generate_password_hash(require_pin(pin, MANAGER_PIN_LENGTH))
            pin_changed = True
        elif is_manager and not emp.pin_hash:
            raise ValidationError("Manager PIN is required for manager employees")
        elif not is_manager:
            # The login account is kept; it no longer grants access without is_manager.
            pin_hash = None

        linked = is_manager and emp.login_status == LoginStatus.LINKED and emp.user_id is not None
        if not is_manager:
            login_status = LoginStatus.NONE
        elif linked:
            login_status = LoginStatus.LINKED
        else:
            login_status = LoginStatus.PENDING

        now = now_ms() if now is None else now
        self._employees.update_employee(
            employee_id=employee_id,
            name=name,
            start_time=start_time,
            end_time=end_time,
            allowed_break_time=allowed,
            rate_per_day=rate,
            is_manager=bool(is_manager),
            pin_hash=pin_hash,
            login_status=login_status,
            now=now,
        )

        if emp.is_manager and not is_manager:
            logger.info("employee_id=%s is no longer a manager; login user_id=%s preserved", employee_id, emp.user_id)
        if linked:
            if pin_changed:
                self._users.update_password_hash(emp.user_id, pin_hash)
            if name != emp.name:
                self._users.update_profile(emp.user_id, name=name, login_key=make_login_key(name))
        elif login_status == LoginStatus.PENDING:
            self._logins.try_provision(employee_id, now=now)

    def delete_employee(
        self,
        caller_id: Optional[int],
        employee_id: int,
        *,
        window: Optional[DayWindow] = None,
        now: Optional[int] = None,
    ) -> None:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to delete an employee")
        self._access.require_admin(caller_id, "Only admins can delete employees")
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        self._access.require_owner(caller_id, emp.register_id, "You don't have permission to delete employees in this register")

        now = now_ms() if now is None else now
        window = window or resolve_day_window(now=now)
        today = self._registers.find_log_in_window(emp.register_id, window)
        if today:
            rollcall = self._attendance.find_rollcall(employee_id, today.register_log_id)
            open_log = self._attendance.find_open_log(rollcall.rollcall_id) if rollcall else None
            if is_on_shift(derive_status(rollcall, open_log)):
                raise InvalidStateError("Cannot delete an employee who is currently working or on break")

        rollcall_ids = [r.rollcall_id for r in self._attendance.list_rollcalls_for_employee(employee_id)]
        removed_logs = self._attendance.delete_logs_for_rollcalls(rollcall_ids)
        removed_rollcalls = self._attendance.delete_rollcalls(rollcall_ids)

        if emp.user_id is not None:
            try:
                self._users.delete_by_id(emp.user_id)
            except Exception:
                logger.warning("could not delete login user_id=%s of employee_id=%s", emp.user_id, employee_id, exc_info=True)

        self._employees.delete_by_id(employee_id)
        logger.info(
            "employee deleted employee_id=%s rollcalls=%s attendance_logs=%s",
            employee_id,
            removed_rollcalls,
            removed_logs,
        )

    def get_register_employees(self, caller_id: Optional[int], register_id: int) -> list[dict]:
        if caller_id is None:
            raise AuthenticationError("Not authenticated")
        self._access.require_register_access(caller_id, register_id)
        return [employee_view(e) for e in self._employees.list_for_registers([register_id])]
