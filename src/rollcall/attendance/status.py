"""Derived live status of an employee for one business day."""

from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import EmployeeStatus
from .model import AttendanceLog, EmployeeRollcall


def derive_status(rollcall: Optional[EmployeeRollcall], open_log: Optional[AttendanceLog]) -> EmployeeStatus:
    """Precedence: absent, then on break (``checkout``), then present, else not marked."""
    if rollcall is None:
        return EmployeeStatus.NOT_MARKED
    if rollcall.absent_time is not None:
        return EmployeeStatus.ABSENT
    if open_log is not None:
        return EmployeeStatus.CHECKOUT
    if rollcall.present_time is not None:
        return EmployeeStatus.PRESENT
    return EmployeeStatus.NOT_MARKED


def log_duration_ms(log: AttendanceLog, now: int) -> int:
    end = log.check_out_time if log.check_out_time is not None else now
    return max(0, end - log.checkin_time)


def used_break_ms(logs: Iterable[AttendanceLog], now: int) -> int:
    return sum(log_duration_ms(log, now) for log in logs)


def is_on_shift(status: EmployeeStatus) -> bool:
    """Working or on break: the employee is mid-shift."""
    return status in (EmployeeStatus.PRESENT, EmployeeStatus.CHECKOUT)
