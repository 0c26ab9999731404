from __future__ import annotations

import logging
import random
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.status import used_break_ms
from ..common.datetime_utils import DayWindow, now_ms, resolve_day_window
from ..common.validators import require_non_empty
from ..core.constants import AVATAR_SEEDS, MS_PER_MINUTE
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..users.access import AccessService
from .model import Register, RegisterLog
from .repository import RegisterRepository

logger = logging.getLogger(__name__)


def _register_view(register: Register) -> dict:
    return {
        "id": register.register_id,
        "name": register.name,
        "address": register.address,
        "avatar_seed": register.avatar_seed,
        "created_at": register.created_at,
    }


def register_log_view(log: RegisterLog) -> dict:
    return {
        "id": log.register_log_id,
        "register_id": log.register_id,
        "timestamp": log.timestamp,
        "created_by": log.created_by,
        "created_at": log.created_at,
        "updated_at": log.updated_at,
    }


class RegisterService:
    """Use cases: create registers and open them for the business day."""

    def __init__(
        self,
        registers: RegisterRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        access: AccessService,
        *,
        rng: Optional[random.Random] = None,
    ):
        self._registers = registers
        self._employees = employees
        self._attendance = attendance
        self._access = access
        self._rng = rng or random.Random()

    def create_register(self, caller_id: Optional[int], *, name: str, address: Optional[str] = None, now: Optional[int] = None) -> int:
        caller_id = self._access.require_caller(caller_id, "You must be logged in to create a register")
        name = require_non_empty(name, "Register name")
        now = now_ms() if now is None else now

        register_id = self._registers.create_register(
            name=name,
            address=(address or "").strip() or None,
            avatar_seed=self._rng.choice(AVATAR_SEEDS),
            owner_id=caller_id,
            now=now,
        )
        logger.info("register created register_id=%s owner_id=%s", register_id, caller_id)
        return register_id

    def get_register(self, caller_id: Optional[int], register_id: int) -> Optional[dict]:
        if caller_id is None:
            return None
        register = self._registers.get_by_id(register_id)
        if not register or not register.is_active:
            return None
        if not self._access.has_register_access(register_id, caller_id):
            return None
        return _register_view(register)

    def get_accessible_registers(self, caller_id: Optional[int]) -> list[dict]:
        if caller_id is None:
            return []
        return [_register_view(r) for r in self._registers.list_by_owner(caller_id)]

    def get_my_registers(self, caller_id: Optional[int], *, window: Optional[DayWindow] = None, now: Optional[int] = None) -> list[dict]:
        """Owned registers, or else the manager's assigned register with today's break usage."""
        if caller_id is None:
            return []

        owned = self._registers.list_by_owner(caller_id)
        if owned:
            return [_register_view(r) for r in owned]

        now = now_ms() if now is None else now
        window = window or resolve_day_window(now=now)
        for manager in self._employees.list_active_managers_for_user(caller_id):
            register = self._registers.get_by_id(manager.register_id)
            if not register or not register.is_active:
                continue

            used = 0
            log = self._registers.find_log_in_window(register.register_id, window)
            if log:
                rollcall = self._attendance.find_rollcall(manager.employee_id, log.register_log_id)
                if rollcall:
                    used = used_break_ms(self._attendance.list_logs_for_rollcalls([rollcall.rollcall_id]), now)

            view = _register_view(register)
            view["break_time_info"] = {
                "allowed": manager.allowed_break_time,
                "used": used // MS_PER_MINUTE,
            }
            return [view]

        return []

    def deactivate_register(self, caller_id: Optional[int], register_id: int, *, now: Optional[int] = None) -> None:
        caller_id = self._access.require_caller(caller_id)
        self._access.require_owner(caller_id, register_id, "Only the owner can deactivate this register")
        self._registers.set_active(register_id, is_active=False, now=now_ms() if now is None else now)
        logger.info("register deactivated register_id=%s", register_id)

    def start_register(
        self,
        caller_id: Optional[int],
        register_id: int,
        *,
        opening_time: Optional[int] = None,
        window: Optional[DayWindow] = None,
        now: Optional[int] = None,
    ) -> int:
        """Open the register for the day. Idempotent per day window."""
        caller_id = self._access.require_caller(caller_id, "You must be logged in to start a register")
        self._access.require_register_access(caller_id, register_id)

        now = now_ms() if now is None else now
        window = window or resolve_day_window(now=now)
        if opening_time is not None and not window.contains(opening_time):
            raise ValidationError("Opening time must fall on the same day")

        existing = self._registers.find_log_in_window(register_id, window)
        if existing:
            if opening_time is not None and opening_time != existing.timestamp:
                self._registers.update_log_timestamp(existing.register_log_id, timestamp=opening_time, now=now)
                logger.info("register log %s opening time moved to %s", existing.register_log_id, opening_time)
            return existing.register_log_id

        register_log_id = self._registers.create_log(
            register_id=register_id,
            timestamp=opening_time if opening_time is not None else now,
            created_by=caller_id,
            now=now,
        )
        logger.info("register started register_id=%s register_log_id=%s", register_id, register_log_id)
        return register_log_id

    def get_today_register_log(
        self,
        caller_id: Optional[int],
        register_id: int,
        *,
        window: Optional[DayWindow] = None,
        now: Optional[int] = None,
    ) -> Optional[RegisterLog]:
        if caller_id is None:
            return None
        if not self._registers.get_by_id(register_id):
            return None
        if not self._access.has_register_access(register_id, caller_id):
            return None
        window = window or resolve_day_window(now=now)
        return self._registers.find_log_in_window(register_id, window)

    def update_register_start_time(
        self,
        caller_id: Optional[int],
        register_id: int,
        *,
        new_start_time: int,
        window: DayWindow,
        now: Optional[int] = None,
    ) -> int:
        caller_id = self._access.require_caller(caller_id)
        self._access.require_register_access(caller_id, register_id)
        now = now_ms() if now is None else now

        log = self._registers.find_log_in_window(register_id, window)
        if not log:
            raise NotFoundError("Register has not been started for this day")
        if new_start_time > now:
            raise ValidationError("Opening time cannot be in the future")
        if not window.contains(new_start_time):
            raise ValidationError("Opening time must fall on the same day")

        self._registers.update_log_timestamp(log.register_log_id, timestamp=new_start_time, now=now)
        return log.register_log_id
