from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a login account (admin or manager).

    Plain data object, no DB access code.
    """

    user_id: int
    name: Optional[str]
    email: Optional[str]
    password_hash: str
    role: Role
    login_key: Optional[str] = None
    created_at: int = 0
