from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import EmployeeRollcall
from ...employees.model import Employee


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def worked_ms(self, rollcall: EmployeeRollcall, employee: Employee, timezone_offset: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def day_wage(self, rollcall: EmployeeRollcall, employee: Employee) -> float:
        raise NotImplementedError

    @abstractmethod
    def intensity(self, rollcall: EmployeeRollcall, employee: Employee, timezone_offset: int) -> float:
        raise NotImplementedError
