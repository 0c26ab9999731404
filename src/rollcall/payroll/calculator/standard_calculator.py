from __future__ import annotations

from .base import PayrollCalculator
from ...attendance.model import EmployeeRollcall
from ...common.datetime_utils import time_on_same_day
from ...core.constants import MINUTES_PER_DAY, MS_PER_DAY, MS_PER_MINUTE
from ...employees.model import Employee


def shift_minutes(employee: Employee) -> int:
    """Scheduled shift length; an end before the start wraps past midnight."""
    return (employee.end_time - employee.start_time) % MINUTES_PER_DAY


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: a present day pays the daily rate, a half day pays half.

    Worked time runs from ``present_time`` to ``absent_time``, or to the end
    of the shift on the local day the employee was marked present.
    """

    def shift_end_ms(self, rollcall: EmployeeRollcall, employee: Employee, timezone_offset: int) -> int:
        end = time_on_same_day(rollcall.present_time, employee.end_time, timezone_offset)
        if employee.end_time < employee.start_time and end <= rollcall.present_time:
            end += MS_PER_DAY
        return end

    def worked_ms(self, rollcall: EmployeeRollcall, employee: Employee, timezone_offset: int) -> int:
        if rollcall.present_time is None:
            return 0
        end = rollcall.absent_time
        if end is None:
            end = self.shift_end_ms(rollcall, employee, timezone_offset)
        return max(0, end - rollcall.present_time)

    def day_wage(self, rollcall: EmployeeRollcall, employee: Employee) -> float:
        if rollcall.present_time is None:
            return 0.0
        rate = float(employee.rate_per_day or 0)
        return rate / 2 if rollcall.half_day else rate

    def intensity(self, rollcall: EmployeeRollcall, employee: Employee, timezone_offset: int) -> float:
        if rollcall.present_time is None:
            return 0.0
        expected = max(1, (shift_minutes(employee) - int(employee.allowed_break_time or 0)) * MS_PER_MINUTE)
        actual = self.worked_ms(rollcall, employee, timezone_offset)
        return min(1.0, max(0.0, actual / expected))
