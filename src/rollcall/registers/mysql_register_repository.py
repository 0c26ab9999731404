from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import DayWindow
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Register, RegisterLog
from .repository import RegisterRepository

_REGISTER_COLUMNS = "register_id, name, address, avatar_seed, owner_id, is_active, created_at, updated_at"
_LOG_COLUMNS = "register_log_id, register_id, timestamp, created_by, created_at, updated_at"


def _to_register(r: dict) -> Register:
    return Register(
        register_id=int(r["register_id"]),
        name=r["name"],
        address=r.get("address"),
        avatar_seed=r["avatar_seed"],
        owner_id=int(r["owner_id"]),
        is_active=bool(r["is_active"]),
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


def _to_log(r: dict) -> RegisterLog:
    return RegisterLog(
        register_log_id=int(r["register_log_id"]),
        register_id=int(r["register_id"]),
        timestamp=int(r["timestamp"]),
        created_by=int(r["created_by"]),
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


class MySQLRegisterRepository(RegisterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, register_id: int) -> Optional[Register]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REGISTER_COLUMNS} FROM registers WHERE register_id=%s", (int(register_id),))
            row = fetchone(cur)
            return _to_register(row) if row else None

    def list_by_owner(self, owner_id: int, *, active_only: bool = True) -> Sequence[Register]:
        sql = f"SELECT {_REGISTER_COLUMNS} FROM registers WHERE owner_id=%s"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY register_id", (int(owner_id),))
            return [_to_register(r) for r in fetchall(cur)]

    def create_register(self, *, name: str, address: Optional[str], avatar_seed: str, owner_id: int, now: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO registers(name, address, avatar_seed, owner_id, is_active, created_at, updated_at)
                VALUES(%s,%s,%s,%s,1,%s,%s)
                """,
                (name, address, avatar_seed, int(owner_id), int(now), int(now)),
            )
            return int(cur.lastrowid)

    def set_active(self, register_id: int, *, is_active: bool, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE registers SET is_active=%s, updated_at=%s WHERE register_id=%s",
                (1 if is_active else 0, int(now), int(register_id)),
            )
            return cur.rowcount > 0

    def get_log_by_id(self, register_log_id: int) -> Optional[RegisterLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LOG_COLUMNS} FROM register_logs WHERE register_log_id=%s", (int(register_log_id),))
            row = fetchone(cur)
            return _to_log(row) if row else None

    def find_log_in_window(self, register_id: int, window: DayWindow) -> Optional[RegisterLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}
                FROM register_logs
                WHERE register_id=%s AND timestamp BETWEEN %s AND %s
                ORDER BY register_log_id
                LIMIT 1
                """,
                (int(register_id), int(window.start), int(window.end)),
            )
            row = fetchone(cur)
            return _to_log(row) if row else None

    def list_logs_in_range(self, register_ids: Sequence[int], *, start: int, end: int) -> Sequence[RegisterLog]:
        if not register_ids:
            return []
        placeholders, params = in_clause(register_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}
                FROM register_logs
                WHERE register_id IN ({placeholders}) AND timestamp BETWEEN %s AND %s
                ORDER BY timestamp
                """,
                params + (int(start), int(end)),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def create_log(self, *, register_id: int, timestamp: int, created_by: int, now: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO register_logs(register_id, timestamp, created_by, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(register_id), int(timestamp), int(created_by), int(now), int(now)),
            )
            return int(cur.lastrowid)

    def update_log_timestamp(self, register_log_id: int, *, timestamp: int, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE register_logs SET timestamp=%s, updated_at=%s WHERE register_log_id=%s",
                (int(timestamp), int(now), int(register_log_id)),
            )
            return cur.rowcount > 0
