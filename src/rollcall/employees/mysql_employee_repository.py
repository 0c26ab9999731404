from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LoginStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, opt_int
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = (
    "employee_id, name, register_id, start_time, end_time, allowed_break_time, rate_per_day, "
    "is_manager, user_id, pin_hash, login_status, is_active, created_by, created_at, updated_at"
)


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        name=r["name"],
        register_id=int(r["register_id"]),
        start_time=int(r["start_time"]),
        end_time=int(r["end_time"]),
        allowed_break_time=int(r.get("allowed_break_time") or 0),
        rate_per_day=float(r.get("rate_per_day") or 0),
        is_manager=bool(r["is_manager"]),
        user_id=opt_int(r.get("user_id")),
        pin_hash=r.get("pin_hash"),
        login_status=LoginStatus(r.get("login_status") or LoginStatus.NONE.value),
        is_active=bool(r["is_active"]),
        created_by=int(r["created_by"]),
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_for_registers(self, register_ids: Sequence[int], *, active_only: bool = True) -> Sequence[Employee]:
        if not register_ids:
            return []
        placeholders, params = in_clause(register_ids)
        sql = f"SELECT {_COLUMNS} FROM employees WHERE register_id IN ({placeholders})"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY employee_id", params)
            return [_to_employee(r) for r in fetchall(cur)]

    def list_active_managers_for_user(self, user_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE user_id=%s AND is_manager=1 AND is_active=1
                ORDER BY employee_id
                """,
                (int(user_id),),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def list_by_login_status(self, status: LoginStatus) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE login_status=%s ORDER BY employee_id",
                (status.value,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def list_by_user_id(self, user_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE user_id=%s ORDER BY employee_id",
                (int(user_id),),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def create_employee(
        self,
        *,
        name: str,
        register_id: int,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool,
        pin_hash: Optional[str],
        login_status: LoginStatus,
        created_by: int,
        now: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(
                    name, register_id, start_time, end_time, allowed_break_time, rate_per_day,
                    is_manager, user_id, pin_hash, login_status, is_active, created_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,NULL,%s,%s,1,%s,%s,%s)
                """,
                (
                    name,
                    int(register_id),
                    int(start_time),
                    int(end_time),
                    int(allowed_break_time),
                    rate_per_day,
                    1 if is_manager else 0,
                    pin_hash,
                    login_status.value,
                    int(created_by),
                    int(now),
                    int(now),
                ),
            )
            return int(cur.lastrowid)

    def update_employee(
        self,
        *,
        employee_id: int,
        name: str,
        start_time: int,
        end_time: int,
        allowed_break_time: int,
        rate_per_day: float,
        is_manager: bool,
        pin_hash: Optional[str],
        login_status: LoginStatus,
        now: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET name=%s, start_time=%s, end_time=%s, allowed_break_time=%s, rate_per_day=%s,
                    is_manager=%s, pin_hash=%s, login_status=%s, updated_at=%s
                WHERE employee_id=%s
                """,
                (
                    name,
                    int(start_time),
                    int(end_time),
                    int(allowed_break_time),
                    rate_per_day,
                    1 if is_manager else 0,
                    pin_hash,
                    login_status.value,
                    int(now),
                    int(employee_id),
                ),
            )
            return cur.rowcount > 0

    def link_user(self, employee_id: int, *, user_id: int, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET user_id=%s, login_status=%s, updated_at=%s WHERE employee_id=%s",
                (int(user_id), LoginStatus.LINKED.value, int(now), int(employee_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (int(employee_id),))
            return cur.rowcount > 0
