from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"


class EmployeeStatus(str, Enum):
    """Live status of an employee for one business day."""

    REGISTER_NOT_STARTED = "register_not_started"
    NOT_MARKED = "not_marked"
    PRESENT = "present"
    CHECKOUT = "checkout"
    ABSENT = "absent"


class LoginStatus(str, Enum):
    """Provisioning state of a manager's login account."""

    NONE = "none"
    PENDING = "pending"
    LINKED = "linked"
