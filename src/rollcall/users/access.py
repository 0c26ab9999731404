from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from ..employees.repository import EmployeeRepository
from ..registers.model import Register
from ..registers.repository import RegisterRepository
from .model import User
from .repository import UserRepository


class AccessService:
    """Who may act on which register.

    A caller has access to a register when they own it, or when they are
    linked to an active manager employee of that register.
    """

    def __init__(self, users: UserRepository, registers: RegisterRepository, employees: EmployeeRepository):
        self._users = users
        self._registers = registers
        self._employees = employees

    @staticmethod
    def require_caller(caller_id: Optional[int], message: str = "You must be logged in") -> int:
        if caller_id is None:
            raise AuthenticationError(message)
        return int(caller_id)

    def require_admin(self, caller_id: Optional[int], message: str = "Only admins can do this") -> User:
        caller_id = self.require_caller(caller_id)
        user = self._users.get_by_id(caller_id)
        if not user or user.role != Role.ADMIN:
            raise AuthorizationError(message)
        return user

    def managed_register_ids(self, user_id: int) -> list[int]:
        seen: list[int] = []
        for emp in self._employees.list_active_managers_for_user(user_id):
            if emp.register_id not in seen:
                seen.append(emp.register_id)
        return seen

    def has_register_access(self, register_id: int, user_id: int) -> bool:
        register = self._registers.get_by_id(register_id)
        if register and register.owner_id == user_id:
            return True
        return register_id in self.managed_register_ids(user_id)

    def require_register(self, register_id: int) -> Register:
        register = self._registers.get_by_id(register_id)
        if not register:
            raise NotFoundError("Register not found")
        return register

    def require_register_access(self, caller_id: int, register_id: int) -> Register:
        register = self.require_register(register_id)
        if register.owner_id != caller_id and register_id not in self.managed_register_ids(caller_id):
            raise AuthorizationError("Access denied")
        return register

    def require_owner(self, caller_id: int, register_id: int, message: str) -> Register:
        register = self.require_register(register_id)
        if register.owner_id != caller_id:
            raise AuthorizationError(message)
        return register
