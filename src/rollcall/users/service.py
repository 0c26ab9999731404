from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_ms
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_ADMIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .identity import make_login_key
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: Optional[str]
    email: Optional[str]
    role: Role


def _to_session_user(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


def _password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # e.g. placeholder or corrupted hashes
        return False


class AuthService:
    """Use cases: sign up, log in, resolve the caller's identity."""

    def __init__(self, users: UserRepository):
        self._users = users

    def signup_admin(self, *, email: str, password: str, name: Optional[str] = None, now: Optional[int] = None) -> int:
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", MIN_ADMIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("User already exists")

        user_id = self._users.create_user(
            name=(name or "").strip() or email.split("@")[0],
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.ADMIN,
            login_key=None,
            created_at=now_ms() if now is None else now,
        )
        logger.info("admin account created user_id=%s", user_id)
        return user_id

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not _password_matches(user.password_hash, password or ""):
            raise AuthenticationError("Invalid email or password")
        return _to_session_user(user)

    def authenticate_manager(self, name: str, pin: str) -> SessionUser:
        """Manager login by display name and PIN.

        Several managers may share a name; the PIN picks the account.
        """
        for user in self._users.list_by_login_key(make_login_key(name), role=Role.MANAGER):
            if _password_matches(user.password_hash, pin or ""):
                return _to_session_user(user)
        raise AuthenticationError("Manager account not found or PIN is wrong")

    def find_manager_account_by_name(self, name: str) -> Optional[dict]:
        key = make_login_key(name)
        if not key:
            return None
        matches = self._users.list_by_login_key(key, role=Role.MANAGER)
        if not matches:
            return None
        user = matches[0]
        return {"id": user.user_id, "name": user.name, "email": user.email}

    def get_current_user(self, caller_id: Optional[int]) -> Optional[dict]:
        if caller_id is None:
            return None
        user = self._users.get_by_id(caller_id)
        if not user:
            return None
        return {"id": user.user_id, "name": user.name, "email": user.email, "role": user.role.value}

    def get_user_role(self, caller_id: Optional[int]) -> Optional[Role]:
        if caller_id is None:
            return None
        user = self._users.get_by_id(caller_id)
        return user.role if user else None

    def has_role(self, caller_id: Optional[int], role: Role) -> bool:
        return self.get_user_role(caller_id) == role


class UserService:
    """Use case: manage user accounts (admin)."""

    def __init__(self, users: UserRepository, auth: AuthService):
        self._users = users
        self._auth = auth

    def _require_admin(self, caller_id: Optional[int]) -> User:
        if caller_id is None:
            raise AuthenticationError("Not authenticated")
        user = self._users.get_by_id(caller_id)
        if not user or user.role != Role.ADMIN:
            raise AuthorizationError("Only admins can manage users")
        return user

    def create_admin(self, caller_id: Optional[int], *, email: str, password: str, name: str) -> int:
        self._require_admin(caller_id)
        return self._auth.signup_admin(email=email, password=password, name=name)

    def list_users(self, caller_id: Optional[int]) -> list[dict]:
        self._require_admin(caller_id)
        return [
            {"id": u.user_id, "name": u.name, "email": u.email, "role": u.role.value}
            for u in self._users.list_all()
        ]
