from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import LoginStatus
from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_for_registers(self, register_ids: Sequence[int], *, active_only: bool = True) -> Sequence[Employee]:
        raise NotImplementedError

    def list_active_managers_for_user(self, user_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def list_by_login_status(self, status: LoginStatus) -> Sequence[Employee]:
        raise NotImplementedError

    def list_by_user_id(self, user_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def create_employee(
        self,
        *,
        name: str,
        register_id: int,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool,
        pin_hash: Optional[str],
        login_status: LoginStatus,
        created_by: int,
        now: int,
    ) -> int:
        raise NotImplementedError

    def update_employee(
        self,
        *,
        employee_id: int,
        name: str,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool,
        pin_hash: Optional[str],
        login_status: LoginStatus,
        now: int,
    ) -> bool:
        raise NotImplementedError

    def link_user(self, employee_id: int, *, user_id: int, now: int) -> bool:
        """Attach a login account and mark the row ``linked``."""

        raise NotImplementedError

    def delete_by_id(self, employee_id: int) -> bool:
        raise NotImplementedError
