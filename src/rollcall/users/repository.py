from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_login_key(self, login_key: str, *, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: Optional[str],
        email: str,
        password_hash: str,
        role: Role,
        login_key: Optional[str],
        created_at: int,
    ) -> int:
        raise NotImplementedError

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def update_profile(self, user_id: int, *, name: Optional[str], login_key: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
