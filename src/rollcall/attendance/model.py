from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmployeeRollcall:
    """Domain entity: one attendance record per employee per opened register day."""

    rollcall_id: int
    register_log_id: int
    employee_id: int
    present_time: Optional[int]
    absent_time: Optional[int]
    half_day: bool
    created_by: int
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class AttendanceLog:
    """One break/errand interval. ``check_out_time is None`` means the break is open."""

    attendance_log_id: int
    employee_rollcall_id: int
    employee_id: int
    checkin_time: int
    check_out_time: Optional[int]
    created_by: int
    created_at: int
    updated_at: int

    @property
    def is_active(self) -> bool:
        return self.check_out_time is None
