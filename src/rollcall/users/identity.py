"""Deterministic login identifiers for manager accounts."""

from __future__ import annotations

import re

from ..core.constants import DEFAULT_LOGIN_DOMAIN, LOGIN_ID_SUFFIX_LENGTH

_WHITESPACE = re.compile(r"\s+")
_NOT_KEY_CHARS = re.compile(r"[^a-z0-9.]")


def make_login_key(name: str) -> str:
    """Normalize a display name into the indexed lookup key.

    ``"Anna  Marie O'Neil"`` -> ``"anna.marie.oneil"``. The same function is
    used when the account is created and when a manager logs in by name.
    """
    key = _WHITESPACE.sub(".", (name or "").strip().lower())
    return _NOT_KEY_CHARS.sub("", key)


def make_manager_login_id(
    name: str, employee_id: int, *, domain: str = DEFAULT_LOGIN_DOMAIN, full_id: bool = False
) -> str:
    """``key.last4(id)@domain``; ``full_id`` keeps every digit of the id."""
    suffix = str(employee_id) if full_id else str(employee_id)[-LOGIN_ID_SUFFIX_LENGTH:]
    return f"{make_login_key(name)}.{suffix}@{domain}"
