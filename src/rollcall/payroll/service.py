from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..attendance.model import EmployeeRollcall
from ..attendance.repository import AttendanceRepository
from ..attendance.service import attendance_log_view, rollcall_view
from ..attendance.status import log_duration_ms
from ..common.datetime_utils import local_date_of, now_ms, server_timezone_offset
from ..core.constants import MS_PER_HOUR, MS_PER_MINUTE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..employees.service import employee_view
from ..registers.repository import RegisterRepository
from ..registers.service import register_log_view
from ..users.access import AccessService
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportScope:
    register_ids: list[int]
    employees: dict[int, Employee]


def _empty_stats(register_days: int = 0) -> dict:
    return {
        "register_days": register_days,
        "present_days": 0,
        "half_days": 0,
        "total_hours": 0,
        "total_break_time_minutes": 0,
        "allowed_break_time_minutes": 0,
        "wage_details": {
            "full_day_wage": 0,
            "half_day_wage": 0,
            "total_wage": 0,
            "break_time_compliance": {"total_allowed": 0, "total_used": 0, "compliant": True},
        },
    }


class PayrollReportService:
    """Wage, hours and heatmap reports over a date range.

    ``start``/``end`` are epoch-ms bounds of the client's local date range.
    ``timezone_offset`` (minutes, UTC - local) maps stored timestamps back to
    the client's calendar days; when omitted the server's local zone is used.
    """

    def __init__(
        self,
        users: UserRepository,
        registers: RegisterRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        access: AccessService,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._users = users
        self._registers = registers
        self._employees = employees
        self._attendance = attendance
        self._access = access
        self._calculator = calculator or StandardPayrollCalculator()

    @staticmethod
    def _check_range(start: int, end: int) -> None:
        if end < start:
            raise ValidationError("End date must not be before start date")

    @staticmethod
    def _offset_at(ts: int, timezone_offset: Optional[int]) -> int:
        return server_timezone_offset(ts) if timezone_offset is None else int(timezone_offset)

    def _resolve_scope(self, caller_id: int, register_id: Optional[int], employee_id: Optional[int]) -> ReportScope:
        """Registers and employees the caller may report on.

        Raises ``AuthorizationError`` for a register or employee outside it.
        """
        if register_id is not None:
            self._access.require_register_access(caller_id, register_id)
            register_ids = [register_id]
        else:
            user = self._users.get_by_id(caller_id)
            if not user:
                raise NotFoundError("User not found")
            if user.role == Role.ADMIN:
                register_ids = [r.register_id for r in self._registers.list_by_owner(caller_id)]
            else:
                register_ids = self._access.managed_register_ids(caller_id)

        employees = {e.employee_id: e for e in self._employees.list_for_registers(register_ids)} if register_ids else {}
        if employee_id is not None:
            emp = employees.get(employee_id)
            if emp is None:
                if self._employees.get_by_id(employee_id) is None:
                    raise NotFoundError("Employee not found")
                raise AuthorizationError("Access denied")
            employees = {employee_id: emp}
        return ReportScope(register_ids=register_ids, employees=employees)

    def _rollcalls_in_scope(self, scope: ReportScope, *, start: int, end: int, employee_id: Optional[int]) -> list[EmployeeRollcall]:
        rollcalls = self._attendance.list_rollcalls_created_between(start=start, end=end, employee_id=employee_id)
        return sorted(
            (r for r in rollcalls if r.employee_id in scope.employees),
            key=lambda r: (r.created_at, r.rollcall_id),
        )

    def _break_ms_by_rollcall(self, rollcalls: list[EmployeeRollcall], now: int) -> dict[int, int]:
        totals: dict[int, int] = {r.rollcall_id: 0 for r in rollcalls}
        if not totals:
            return totals
        for log in self._attendance.list_logs_for_rollcalls(list(totals)):
            totals[log.employee_rollcall_id] = totals.get(log.employee_rollcall_id, 0) + log_duration_ms(log, now)
        return totals

    def get_dashboard_stats(
        self,
        caller_id: Optional[int],
        *,
        start: int,
        end: int,
        register_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        timezone_offset: Optional[int] = None,
        now: Optional[int] = None,
    ) -> dict:
        if caller_id is None:
            raise AuthenticationError("You must be logged in to view dashboard stats")
        self._check_range(start, end)
        scope = self._resolve_scope(caller_id, register_id, employee_id)
        if not scope.register_ids:
            return _empty_stats()

        register_days = len(self._registers.list_logs_in_range(scope.register_ids, start=start, end=end))
        if not scope.employees:
            return _empty_stats(register_days)

        now = now_ms() if now is None else now
        present = [r for r in self._rollcalls_in_scope(scope, start=start, end=end, employee_id=employee_id) if r.present_time is not None]
        breaks = self._break_ms_by_rollcall(present, now)
        logger.debug("dashboard stats caller=%s registers=%s rollcalls=%s", caller_id, scope.register_ids, len(present))

        present_days = 0
        half_days = 0
        full_day_wage = 0.0
        half_day_wage = 0.0
        worked_ms = 0
        break_ms = 0
        for rollcall in present:
            emp = scope.employees[rollcall.employee_id]
            wage = self._calculator.day_wage(rollcall, emp)
            if rollcall.half_day:
                half_days += 1
                half_day_wage += wage
            else:
                present_days += 1
                full_day_wage += wage
            worked_ms += self._calculator.worked_ms(rollcall, emp, self._offset_at(rollcall.present_time, timezone_offset))
            break_ms += breaks.get(rollcall.rollcall_id, 0)

        allowed_minutes = sum(int(e.allowed_break_time or 0) for e in scope.employees.values())
        used_minutes = round(break_ms / MS_PER_MINUTE)
        return {
            "register_days": register_days,
            "present_days": present_days,
            "half_days": half_days,
            "total_hours": round(worked_ms / MS_PER_HOUR, 2),
            "total_break_time_minutes": used_minutes,
            "allowed_break_time_minutes": allowed_minutes,
            "wage_details": {
                "full_day_wage": full_day_wage,
                "half_day_wage": half_day_wage,
                "total_wage": full_day_wage + half_day_wage,
                "break_time_compliance": {
                    "total_allowed": allowed_minutes,
                    "total_used": used_minutes,
                    "compliant": break_ms <= allowed_minutes * MS_PER_MINUTE,
                },
            },
        }

    def _scope_or_none(self, caller_id: Optional[int], register_id: Optional[int], employee_id: Optional[int]) -> Optional[ReportScope]:
        if caller_id is None:
            return None
        try:
            return self._resolve_scope(caller_id, register_id, employee_id)
        except (AuthorizationError, NotFoundError):
            return None

    def get_contribution_data(
        self,
        caller_id: Optional[int],
        *,
        start: int,
        end: int,
        register_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        timezone_offset: Optional[int] = None,
    ) -> list[dict]:
        """One heatmap cell per local date; the first rollcall of a date wins."""
        self._check_range(start, end)
        scope = self._scope_or_none(caller_id, register_id, employee_id)
        if scope is None or not scope.employees:
            return []

        by_date: dict[str, dict] = {}
        for rollcall in self._rollcalls_in_scope(scope, start=start, end=end, employee_id=employee_id):
            if rollcall.present_time is None and rollcall.absent_time is None:
                continue
            offset = self._offset_at(rollcall.created_at, timezone_offset)
            day = local_date_of(rollcall.created_at, offset).isoformat()
            if day in by_date:
                continue
            emp = scope.employees[rollcall.employee_id]
            by_date[day] = {
                "date": day,
                "count": 1 if rollcall.present_time is not None else 0,
                "intensity": self._calculator.intensity(rollcall, emp, offset),
                "register_log_id": rollcall.register_log_id,
                "employee_id": rollcall.employee_id,
                "rollcall_id": rollcall.rollcall_id,
                "half_day": bool(rollcall.half_day),
            }
        return sorted(by_date.values(), key=lambda d: d["date"])

    def get_hourly_data(
        self,
        caller_id: Optional[int],
        *,
        start: int,
        end: int,
        register_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        timezone_offset: Optional[int] = None,
        now: Optional[int] = None,
    ) -> list[dict]:
        """Work and break hours per local date, for the bar chart."""
        self._check_range(start, end)
        scope = self._scope_or_none(caller_id, register_id, employee_id)
        if scope is None or not scope.employees:
            return []

        now = now_ms() if now is None else now
        present = [r for r in self._rollcalls_in_scope(scope, start=start, end=end, employee_id=employee_id) if r.present_time is not None]
        breaks = self._break_ms_by_rollcall(present, now)

        hours: dict[str, list[int]] = {}
        for rollcall in present:
            emp = scope.employees[rollcall.employee_id]
            offset = self._offset_at(rollcall.created_at, timezone_offset)
            day = local_date_of(rollcall.created_at, offset).isoformat()
            total = self._calculator.worked_ms(rollcall, emp, self._offset_at(rollcall.present_time, timezone_offset))
            brk = breaks.get(rollcall.rollcall_id, 0)
            bucket = hours.setdefault(day, [0, 0])
            bucket[0] += max(0, total - brk)
            bucket[1] += brk

        out = []
        for day in sorted(hours):
            work, brk = hours[day]
            out.append(
                {
                    "date": day,
                    "work_duration": round(work / MS_PER_HOUR, 2),
                    "break_duration": round(brk / MS_PER_HOUR, 2),
                    "total_hours": round((work + brk) / MS_PER_HOUR, 2),
                }
            )
        return out

    def _log_detail(self, register_log, employee: Employee, rollcall: EmployeeRollcall) -> dict:
        logs = self._attendance.list_logs_for_rollcalls([rollcall.rollcall_id])
        return {
            "register_log": register_log_view(register_log),
            "employee": employee_view(employee),
            "rollcall": rollcall_view(rollcall),
            "logs": [attendance_log_view(log) for log in logs],
        }

    def get_employee_log(self, caller_id: Optional[int], register_log_id: int, employee_id: int) -> Optional[dict]:
        """Break log of one employee for one register day, or None if not marked."""
        caller_id = self._access.require_caller(caller_id, "Unauthorized")
        register_log = self._registers.get_log_by_id(register_log_id)
        if not register_log:
            raise NotFoundError("Register log not found")
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        self._access.require_register_access(caller_id, register_log.register_id)

        rollcall = self._attendance.find_rollcall(employee_id, register_log_id)
        if not rollcall:
            return None
        return self._log_detail(register_log, emp, rollcall)

    def get_employee_log_by_time_range(self, caller_id: Optional[int], employee_id: int, *, start: int, end: int) -> Optional[dict]:
        caller_id = self._access.require_caller(caller_id, "Unauthorized")
        self._check_range(start, end)
        emp = self._employees.get_by_id(employee_id)
        if not emp:
            raise NotFoundError("Employee not found")
        self._access.require_register_access(caller_id, emp.register_id)

        rollcalls = sorted(
            self._attendance.list_rollcalls_created_between(start=start, end=end, employee_id=employee_id),
            key=lambda r: (r.created_at, r.rollcall_id),
        )
        if not rollcalls:
            return None
        register_log = self._registers.get_log_by_id(rollcalls[0].register_log_id)
        if not register_log:
            return None
        return self._log_detail(register_log, emp, rollcalls[0])

