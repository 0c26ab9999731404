from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import DayWindow, now_ms, resolve_day_window
from ..core.enums import EmployeeStatus
from ..core.exceptions import AuthenticationError, InvalidStateError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..registers.model import RegisterLog
from ..registers.repository import RegisterRepository
from ..users.access import AccessService
from .model import AttendanceLog, EmployeeRollcall
from .repository import AttendanceRepository
from .status import derive_status, log_duration_ms, used_break_ms

logger = logging.getLogger(__name__)


def _open_log(logs: Sequence[AttendanceLog]) -> Optional[AttendanceLog]:
    open_logs = [log for log in logs if log.is_active]
    return max(open_logs, key=lambda log: log.checkin_time) if open_logs else None


def attendance_log_view(log: AttendanceLog) -> dict:
    return {
        "id": log.attendance_log_id,
        "checkin_time": log.checkin_time,
        "check_out_time": log.check_out_time,
        "is_active": log.is_active,
    }


def rollcall_view(rollcall: EmployeeRollcall) -> dict:
    return {
        "id": rollcall.rollcall_id,
        "register_log_id": rollcall.register_log_id,
        "employee_id": rollcall.employee_id,
        "present_time": rollcall.present_time,
        "absent_time": rollcall.absent_time,
        "half_day": bool(rollcall.half_day),
        "created_at": rollcall.created_at,
    }


class AttendanceService:
    """Daily attendance state per employee: present/absent, breaks, half days.

    Every operation checks register access through the register log the
    rollcall belongs to.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        registers: RegisterRepository,
        access: AccessService,
    ):
        self._attendance = attendance
        self._employees = employees
        self._registers = registers
        self._access = access

    # lookups

    def _require_rollcall(self, rollcall_id: int) -> EmployeeRollcall:
        rollcall = self._attendance.get_rollcall(rollcall_id)
        if not rollcall:
            raise NotFoundError("Rollcall not found")
        return rollcall

    def _require_log_access(self, caller_id: int, register_log_id: int) -> RegisterLog:
        log = self._registers.get_log_by_id(register_log_id)
        if not log:
            raise NotFoundError("Register log not found")
        self._access.require_register_access(caller_id, log.register_id)
        return log

    def _require_employee_on_log(self, caller_id: int, employee_id: int, register_log_id: int) -> tuple[Employee, RegisterLog]:
        emp = self._employees.get_by_id(employee_id)
        log = self._registers.get_log_by_id(register_log_id)
        if not emp or not log:
            raise NotFoundError("Employee or register log not found")
        self._access.require_register_access(caller_id, log.register_id)
        if emp.register_id != log.register_id:
            raise ValidationError("Employee does not belong to this register")
        return emp, log

    # transitions

    def mark_employee_present(self, caller_id: Optional[int], employee_id: int, register_log_id: int, *, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to mark attendance")
        self._require_employee_on_log(caller_id, employee_id, register_log_id)
        now = now_ms() if now is None else now

        existing = self._attendance.find_rollcall(employee_id, register_log_id)
        if existing is None:
            rollcall_id = self._attendance.create_rollcall(
                register_log_id=register_log_id,
                employee_id=employee_id,
                present_time=now,
                absent_time=None,
                created_by=caller_id,
                now=now,
            )
            if rollcall_id is not None:
                logger.info("employee_id=%s present rollcall_id=%s", employee_id, rollcall_id)
                return rollcall_id
            # created concurrently; fall through to the existing row
            existing = self._attendance.find_rollcall(employee_id, register_log_id)

        if existing.present_time is not None and existing.absent_time is None:
            return existing.rollcall_id

        self._attendance.mark_present(existing.rollcall_id, present_time=now, now=now)
        logger.info("employee_id=%s present again rollcall_id=%s", employee_id, existing.rollcall_id)
        return existing.rollcall_id

    def mark_employee_absent(self, caller_id: Optional[int], employee_id: int, register_log_id: int, *, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to mark attendance")
        self._require_employee_on_log(caller_id, employee_id, register_log_id)
        now = now_ms() if now is None else now

        existing = self._attendance.find_rollcall(employee_id, register_log_id)
        if existing is None:
            rollcall_id = self._attendance.create_rollcall(
                register_log_id=register_log_id,
                employee_id=employee_id,
                present_time=None,
                absent_time=now,
                created_by=caller_id,
                now=now,
            )
            if rollcall_id is not None:
                logger.info("employee_id=%s absent rollcall_id=%s", employee_id, rollcall_id)
                return rollcall_id
            existing = self._attendance.find_rollcall(employee_id, register_log_id)

        # An open break ends where the absence starts.
        closed = self._attendance.close_open_logs(existing.rollcall_id, check_out_time=now, now=now)
        if closed:
            logger.info("closed %s open break(s) for rollcall_id=%s on absence", closed, existing.rollcall_id)
        self._attendance.set_absent_time(existing.rollcall_id, absent_time=now, now=now)
        logger.info("employee_id=%s absent rollcall_id=%s", employee_id, existing.rollcall_id)
        return existing.rollcall_id

    def start_employee_break(self, caller_id: Optional[int], employee_id: int, rollcall_id: int, *, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to manage attendance")
        rollcall = self._attendance.get_rollcall(rollcall_id)
        emp = self._employees.get_by_id(employee_id)
        if not rollcall or not emp:
            raise NotFoundError("Rollcall or employee not found")
        self._require_log_access(caller_id, rollcall.register_log_id)
        if rollcall.employee_id != employee_id:
            raise ValidationError("Rollcall does not belong to this employee")
        if rollcall.absent_time is not None:
            raise InvalidStateError("Employee is marked absent")

        now = now_ms() if now is None else now
        attendance_log_id = self._attendance.open_break(
            rollcall_id=rollcall_id,
            employee_id=employee_id,
            checkin_time=now,
            created_by=caller_id,
            now=now,
        )
        if attendance_log_id is None:
            raise InvalidStateError("Employee is already on break")
        logger.info("break started employee_id=%s attendance_log_id=%s", employee_id, attendance_log_id)
        return attendance_log_id

    def end_employee_break(self, caller_id: Optional[int], attendance_log_id: int, *, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to manage attendance")
        log = self._attendance.get_log(attendance_log_id)
        if not log:
            raise NotFoundError("Attendance log not found")
        if not log.is_active:
            raise InvalidStateError("Break has already ended")

        rollcall = self._require_rollcall(log.employee_rollcall_id)
        self._require_log_access(caller_id, rollcall.register_log_id)

        now = now_ms() if now is None else now
        if not self._attendance.close_log(attendance_log_id, check_out_time=now, now=now):
            raise InvalidStateError("Break has already ended")
        logger.info("break ended attendance_log_id=%s", attendance_log_id)
        return attendance_log_id

    def return_from_absence(self, caller_id: Optional[int], rollcall_id: int, *, now: Optional[int] = None) -> int:
        """Record the absence as a closed break and clear it."""
        caller_id = self._access.require_caller(caller_id, "You must be logged in to manage attendance")
        rollcall = self._require_rollcall(rollcall_id)
        if rollcall.absent_time is None:
            raise InvalidStateError("Employee was not marked absent")
        self._require_log_access(caller_id, rollcall.register_log_id)

        now = now_ms() if now is None else now
        attendance_log_id = self._attendance.create_closed_log(
            rollcall_id=rollcall_id,
            employee_id=rollcall.employee_id,
            checkin_time=rollcall.absent_time,
            check_out_time=now,
            created_by=caller_id,
            now=now,
        )
        self._attendance.set_absent_time(rollcall_id, absent_time=None, now=now)
        logger.info("employee_id=%s returned from absence attendance_log_id=%s", rollcall.employee_id, attendance_log_id)
        return attendance_log_id

    def _set_half_day(self, caller_id: Optional[int], rollcall_id: int, half_day: bool, now: Optional[int]) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to manage attendance")
        rollcall = self._require_rollcall(rollcall_id)
        self._require_log_access(caller_id, rollcall.register_log_id)
        self._attendance.set_half_day(rollcall_id, half_day=half_day, now=now_ms() if now is None else now)
        return rollcall_id

    def mark_half_day(self, caller_id: Optional[int], rollcall_id: int, *, now: Optional[int] = None) -> int:
        return self._set_half_day(caller_id, rollcall_id, True, now)

    def remove_half_day(self, caller_id: Optional[int], rollcall_id: int, *, now: Optional[int] = None) -> int:
        return self._set_half_day(caller_id, rollcall_id, False, now)

    def update_present_time(self, caller_id: Optional[int], rollcall_id: int, *, new_present_time: int, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to manage attendance")
        rollcall = self._require_rollcall(rollcall_id)
        log = self._require_log_access(caller_id, rollcall.register_log_id)
        if rollcall.present_time is None:
            raise InvalidStateError("Employee is not marked present")

        now = now_ms() if now is None else now
        if new_present_time > now:
            raise ValidationError("Cannot set present time in the future")
        if new_present_time < log.timestamp:
            raise ValidationError("Present time cannot be before register start time")

        self._attendance.set_present_time(rollcall_id, present_time=new_present_time, now=now)
        return rollcall_id

    # queries

    @staticmethod
    def _status_fields(rollcall: Optional[EmployeeRollcall], logs: Sequence[AttendanceLog], now: int) -> dict:
        open_log = _open_log(logs)
        status = derive_status(rollcall, open_log)
        return {
            "status": status.value,
            "rollcall_id": rollcall.rollcall_id if rollcall else None,
            "current_break_id": open_log.attendance_log_id if open_log and status == EmployeeStatus.CHECKOUT else None,
            "break_duration": log_duration_ms(open_log, now) if open_log and status == EmployeeStatus.CHECKOUT else None,
            "break_start_time": open_log.checkin_time if open_log and status == EmployeeStatus.CHECKOUT else None,
            "used_break_time": used_break_ms(logs, now),
            "present_time": rollcall.present_time if rollcall else None,
            "absent_time": rollcall.absent_time if rollcall else None,
            "half_day": bool(rollcall.half_day) if rollcall else False,
        }

    def get_employee_attendance_status(
        self,
        caller_id: Optional[int],
        employee_id: int,
        register_log_id: int,
        *,
        now: Optional[int] = None,
    ) -> Optional[dict]:
        if caller_id is None:
            return None
        emp = self._employees.get_by_id(employee_id)
        log = self._registers.get_log_by_id(register_log_id)
        if not emp or not log:
            return None
        if not self._access.has_register_access(log.register_id, caller_id):
            return None

        now = now_ms() if now is None else now
        rollcall = self._attendance.find_rollcall(employee_id, register_log_id)
        logs = self._attendance.list_logs_for_rollcalls([rollcall.rollcall_id]) if rollcall else []
        return self._status_fields(rollcall, logs, now)

    def get_employees_with_status(
        self,
        caller_id: Optional[int],
        register_id: int,
        *,
        window: Optional[DayWindow] = None,
        now: Optional[int] = None,
    ) -> list[dict]:
        if caller_id is None:
            raise AuthenticationError("Not authenticated")
        self._access.require_register_access(caller_id, register_id)

        now = now_ms() if now is None else now
        window = window or resolve_day_window(now=now)
        today = self._registers.find_log_in_window(register_id, window)
        employees = self._employees.list_for_registers([register_id])

        rollcalls: dict[int, EmployeeRollcall] = {}
        logs_by_rollcall: dict[int, list[AttendanceLog]] = {}
        if today:
            rollcalls = {r.employee_id: r for r in self._attendance.list_rollcalls_for_log(today.register_log_id)}
            for log in self._attendance.list_logs_for_rollcalls([r.rollcall_id for r in rollcalls.values()]):
                logs_by_rollcall.setdefault(log.employee_rollcall_id, []).append(log)

        out: list[dict] = []
        for emp in employees:
            row = {
                "id": emp.employee_id,
                "name": emp.name,
                "is_manager": emp.is_manager,
                "start_time": emp.start_time,
                "end_time": emp.end_time,
                "allowed_break_time": emp.allowed_break_time,
                "rate_per_day": emp.rate_per_day,
                "created_at": emp.created_at,
                "register_log_id": today.register_log_id if today else None,
            }
            if today is None:
                row.update(self._status_fields(None, [], now))
                row["status"] = EmployeeStatus.REGISTER_NOT_STARTED.value
            else:
                rollcall = rollcalls.get(emp.employee_id)
                logs = logs_by_rollcall.get(rollcall.rollcall_id, []) if rollcall else []
                row.update(self._status_fields(rollcall, logs, now))
            out.append(row)
        return out

    def get_active_attendance_logs(self, caller_id: Optional[int], register_log_id: int, *, now: Optional[int] = None) -> list[dict]:
        if caller_id is None:
            return []
        log = self._registers.get_log_by_id(register_log_id)
        if not log or not self._access.has_register_access(log.register_id, caller_id):
            return []

        now = now_ms() if now is None else now
        rollcall_ids = [r.rollcall_id for r in self._attendance.list_rollcalls_for_log(register_log_id)]
        out: list[dict] = []
        for entry in self._attendance.list_logs_for_rollcalls(rollcall_ids):
            if not entry.is_active:
                continue
            emp = self._employees.get_by_id(entry.employee_id)
            out.append(
                {
                    "id": entry.attendance_log_id,
                    "employee_id": entry.employee_id,
                    "employee_name": emp.name if emp else "Unknown",
                    "rollcall_id": entry.employee_rollcall_id,
                    "checkin_time": entry.checkin_time,
                    "duration": log_duration_ms(entry, now),
                }
            )
        return out

    def get_employee_attendance_logs(self, caller_id: Optional[int], employee_id: int, register_log_id: int) -> dict:
        if caller_id is None:
            raise AuthenticationError("Not authenticated")
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        log = self._require_log_access(caller_id, register_log_id)

        rollcall = self._attendance.find_rollcall(employee_id, register_log_id)
        logs = self._attendance.list_logs_for_rollcalls([rollcall.rollcall_id]) if rollcall else []
        return {
            "employee": {
                "id": emp.employee_id,
                "name": emp.name,
                "start_time": emp.start_time,
                "allowed_break_time": emp.allowed_break_time,
            },
            "rollcall": {
                "present_time": rollcall.present_time if rollcall else None,
                "absent_time": rollcall.absent_time if rollcall else None,
            },
            "register_log": {"timestamp": log.timestamp},
            "logs": [attendance_log_view(entry) for entry in logs],
        }
