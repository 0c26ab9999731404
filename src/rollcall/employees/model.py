from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import LoginStatus


@dataclass(frozen=True)
class Employee:
    """Domain entity: a staff member assigned to one register.

    ``start_time``/``end_time`` are minutes from midnight, ``allowed_break_time``
    is minutes per day.
    """

    employee_id: int
    name: str
    register_id: int
    start_time: int
    end_time: int
    allowed_break_time: int
    rate_per_day: float
    is_manager: bool
    user_id: Optional[int]
    pin_hash: Optional[str]
    login_status: LoginStatus
    is_active: bool
    created_by: int
    created_at: int
    updated_at: int
