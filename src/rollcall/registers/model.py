from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Register:
    """Domain entity: a physical store location owned by one admin."""

    register_id: int
    name: str
    address: Optional[str]
    avatar_seed: str
    owner_id: int
    is_active: bool
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class RegisterLog:
    """The register was opened for business at ``timestamp`` (one per business day)."""

    register_log_id: int
    register_id: int
    timestamp: int
    created_by: int
    created_at: int
    updated_at: int
