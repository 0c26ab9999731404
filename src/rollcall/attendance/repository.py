from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceLog, EmployeeRollcall


class AttendanceRepository(Protocol):
    # rollcalls

    def get_rollcall(self, rollcall_id: int) -> Optional[EmployeeRollcall]:
        raise NotImplementedError

    def find_rollcall(self, employee_id: int, register_log_id: int) -> Optional[EmployeeRollcall]:
        raise NotImplementedError

    def list_rollcalls_for_log(self, register_log_id: int) -> Sequence[EmployeeRollcall]:
        raise NotImplementedError

    def list_rollcalls_for_employee(self, employee_id: int) -> Sequence[EmployeeRollcall]:
        raise NotImplementedError

    def list_rollcalls_created_between(
        self,
        *,
        start: int,
        end: int,
        employee_id: Optional[int] = None,
    ) -> Sequence[EmployeeRollcall]:
        raise NotImplementedError

    def create_rollcall(
        self,
        *,
        register_log_id: int,
        employee_id: int,
        present_time: Optional[int],
        absent_time: Optional[int],
        created_by: int,
        now: int,
    ) -> Optional[int]:
        """Insert a rollcall; ``None`` if one already exists for (employee, register log)."""

        raise NotImplementedError

    def mark_present(self, rollcall_id: int, *, present_time: int, now: int) -> bool:
        """Set ``present_time`` and clear ``absent_time``."""

        raise NotImplementedError

    def set_absent_time(self, rollcall_id: int, *, absent_time: Optional[int], now: int) -> bool:
        raise NotImplementedError

    def set_present_time(self, rollcall_id: int, *, present_time: int, now: int) -> bool:
        raise NotImplementedError

    def set_half_day(self, rollcall_id: int, *, half_day: bool, now: int) -> bool:
        raise NotImplementedError

    def delete_rollcalls(self, rollcall_ids: Sequence[int]) -> int:
        raise NotImplementedError

    # break logs

    def get_log(self, attendance_log_id: int) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def list_logs_for_rollcalls(self, rollcall_ids: Sequence[int]) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def find_open_log(self, rollcall_id: int) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def open_break(self, *, rollcall_id: int, employee_id: int, checkin_time: int, created_by: int, now: int) -> Optional[int]:
        """Insert an open log only if the rollcall has none; ``None`` otherwise."""

        raise NotImplementedError

    def create_closed_log(
        self,
        *,
        rollcall_id: int,
        employee_id: int,
        checkin_time: int,
        check_out_time: int,
        created_by: int,
        now: int,
    ) -> int:
        raise NotImplementedError

    def close_log(self, attendance_log_id: int, *, check_out_time: int, now: int) -> bool:
        """Close the log only if it is still open."""

        raise NotImplementedError

    def close_open_logs(self, rollcall_id: int, *, check_out_time: int, now: int) -> int:
        raise NotImplementedError

    def delete_logs_for_rollcalls(self, rollcall_ids: Sequence[int]) -> int:
        raise NotImplementedError
