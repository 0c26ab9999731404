from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.datetime_utils import DayWindow
from .model import Register, RegisterLog


class RegisterRepository(Protocol):
    def get_by_id(self, register_id: int) -> Optional[Register]:
        raise NotImplementedError

    def list_by_owner(self, owner_id: int, *, active_only: bool = True) -> Sequence[Register]:
        raise NotImplementedError

    def create_register(self, *, name: str, address: Optional[str], avatar_seed: str, owner_id: int, now: int) -> int:
        raise NotImplementedError

    def set_active(self, register_id: int, *, is_active: bool, now: int) -> bool:
        raise NotImplementedError

    def get_log_by_id(self, register_log_id: int) -> Optional[RegisterLog]:
        raise NotImplementedError

    def find_log_in_window(self, register_id: int, window: DayWindow) -> Optional[RegisterLog]:
        raise NotImplementedError

    def list_logs_in_range(self, register_ids: Sequence[int], *, start: int, end: int) -> Sequence[RegisterLog]:
        raise NotImplementedError

    def create_log(self, *, register_id: int, timestamp: int, created_by: int, now: int) -> int:
        raise NotImplementedError

    def update_log_timestamp(self, register_log_id: int, *, timestamp: int, now: int) -> bool:
        raise NotImplementedError
