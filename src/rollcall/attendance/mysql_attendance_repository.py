from __future__ import annotations

from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, opt_int
from .model import AttendanceLog, EmployeeRollcall
from .repository import AttendanceRepository

_ROLLCALL_COLUMNS = (
    "rollcall_id, register_log_id, employee_id, present_time, absent_time, half_day, "
    "created_by, created_at, updated_at"
)
_LOG_COLUMNS = (
    "attendance_log_id, employee_rollcall_id, employee_id, checkin_time, check_out_time, "
    "created_by, created_at, updated_at"
)


def _to_rollcall(r: dict) -> EmployeeRollcall:
    return EmployeeRollcall(
        rollcall_id=int(r["rollcall_id"]),
        register_log_id=int(r["register_log_id"]),
        employee_id=int(r["employee_id"]),
        present_time=opt_int(r.get("present_time")),
        absent_time=opt_int(r.get("absent_time")),
        half_day=bool(r.get("half_day")),
        created_by=int(r["created_by"]),
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


def _to_log(r: dict) -> AttendanceLog:
    return AttendanceLog(
        attendance_log_id=int(r["attendance_log_id"]),
        employee_rollcall_id=int(r["employee_rollcall_id"]),
        employee_id=int(r["employee_id"]),
        checkin_time=int(r["checkin_time"]),
        check_out_time=opt_int(r.get("check_out_time")),
        created_by=int(r["created_by"]),
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


def _is_duplicate_key(exc: IntegrityError) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # rollcalls

    def get_rollcall(self, rollcall_id: int) -> Optional[EmployeeRollcall]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ROLLCALL_COLUMNS} FROM employee_rollcalls WHERE rollcall_id=%s", (int(rollcall_id),))
            row = fetchone(cur)
            return _to_rollcall(row) if row else None

    def find_rollcall(self, employee_id: int, register_log_id: int) -> Optional[EmployeeRollcall]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ROLLCALL_COLUMNS}
                FROM employee_rollcalls
                WHERE employee_id=%s AND register_log_id=%s
                """,
                (int(employee_id), int(register_log_id)),
            )
            row = fetchone(cur)
            return _to_rollcall(row) if row else None

    def list_rollcalls_for_log(self, register_log_id: int) -> Sequence[EmployeeRollcall]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ROLLCALL_COLUMNS} FROM employee_rollcalls WHERE register_log_id=%s ORDER BY rollcall_id",
                (int(register_log_id),),
            )
            return [_to_rollcall(r) for r in fetchall(cur)]

    def list_rollcalls_for_employee(self, employee_id: int) -> Sequence[EmployeeRollcall]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ROLLCALL_COLUMNS} FROM employee_rollcalls WHERE employee_id=%s ORDER BY rollcall_id",
                (int(employee_id),),
            )
            return [_to_rollcall(r) for r in fetchall(cur)]

    def list_rollcalls_created_between(
        self,
        *,
        start: int,
        end: int,
        employee_id: Optional[int] = None,
    ) -> Sequence[EmployeeRollcall]:
        clauses = ["created_at BETWEEN %s AND %s"]
        params: list[object] = [int(start), int(end)]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ROLLCALL_COLUMNS} FROM employee_rollcalls WHERE {where} ORDER BY created_at",
                tuple(params),
            )
            return [_to_rollcall(r) for r in fetchall(cur)]

    def create_rollcall(
        self,
        *,
        register_log_id: int,
        employee_id: int,
        present_time: Optional[int],
        absent_time: Optional[int],
        created_by: int,
        now: int,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO employee_rollcalls(
                        register_log_id, employee_id, present_time, absent_time, half_day,
                        created_by, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,0,%s,%s,%s)
                    """,
                    (int(register_log_id), int(employee_id), present_time, absent_time, int(created_by), int(now), int(now)),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                return None
            raise

    def mark_present(self, rollcall_id: int, *, present_time: int, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employee_rollcalls SET present_time=%s, absent_time=NULL, updated_at=%s WHERE rollcall_id=%s",
                (int(present_time), int(now), int(rollcall_id)),
            )
            return cur.rowcount > 0

    def set_absent_time(self, rollcall_id: int, *, absent_time: Optional[int], now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employee_rollcalls SET absent_time=%s, updated_at=%s WHERE rollcall_id=%s",
                (absent_time, int(now), int(rollcall_id)),
            )
            return cur.rowcount > 0

    def set_present_time(self, rollcall_id: int, *, present_time: int, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employee_rollcalls SET present_time=%s, updated_at=%s WHERE rollcall_id=%s",
                (int(present_time), int(now), int(rollcall_id)),
            )
            return cur.rowcount > 0

    def set_half_day(self, rollcall_id: int, *, half_day: bool, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employee_rollcalls SET half_day=%s, updated_at=%s WHERE rollcall_id=%s",
                (1 if half_day else 0, int(now), int(rollcall_id)),
            )
            return cur.rowcount > 0

    def delete_rollcalls(self, rollcall_ids: Sequence[int]) -> int:
        if not rollcall_ids:
            return 0
        placeholders, params = in_clause(rollcall_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM employee_rollcalls WHERE rollcall_id IN ({placeholders})", params)
            return int(cur.rowcount)

    # break logs

    def get_log(self, attendance_log_id: int) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOG_COLUMNS} FROM attendance_logs WHERE attendance_log_id=%s",
                (int(attendance_log_id),),
            )
            row = fetchone(cur)
            return _to_log(row) if row else None

    def list_logs_for_rollcalls(self, rollcall_ids: Sequence[int]) -> Sequence[AttendanceLog]:
        if not rollcall_ids:
            return []
        placeholders, params = in_clause(rollcall_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}
                FROM attendance_logs
                WHERE employee_rollcall_id IN ({placeholders})
                ORDER BY checkin_time, attendance_log_id
                """,
                params,
            )
            return [_to_log(r) for r in fetchall(cur)]

    def find_open_log(self, rollcall_id: int) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}
                FROM attendance_logs
                WHERE employee_rollcall_id=%s AND check_out_time IS NULL
                ORDER BY attendance_log_id DESC
                LIMIT 1
                """,
                (int(rollcall_id),),
            )
            row = fetchone(cur)
            return _to_log(row) if row else None

    def open_break(self, *, rollcall_id: int, employee_id: int, checkin_time: int, created_by: int, now: int) -> Optional[int]:
        # uq_attendance_open_break rejects a second open row for the rollcall.
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_logs(
                        employee_rollcall_id, employee_id, checkin_time, check_out_time,
                        created_by, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,NULL,%s,%s,%s)
                    """,
                    (int(rollcall_id), int(employee_id), int(checkin_time), int(created_by), int(now), int(now)),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                return None
            raise

    def create_closed_log(
        self,
        *,
        rollcall_id: int,
        employee_id: int,
        checkin_time: int,
        check_out_time: int,
        created_by: int,
        now: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_logs(
                    employee_rollcall_id, employee_id, checkin_time, check_out_time,
                    created_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(rollcall_id),
                    int(employee_id),
                    int(checkin_time),
                    int(check_out_time),
                    int(created_by),
                    int(now),
                    int(now),
                ),
            )
            return int(cur.lastrowid)

    def close_log(self, attendance_log_id: int, *, check_out_time: int, now: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_logs
                SET check_out_time=%s, updated_at=%s
                WHERE attendance_log_id=%s AND check_out_time IS NULL
                """,
                (int(check_out_time), int(now), int(attendance_log_id)),
            )
            return cur.rowcount > 0

    def close_open_logs(self, rollcall_id: int, *, check_out_time: int, now: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_logs
                SET check_out_time=%s, updated_at=%s
                WHERE employee_rollcall_id=%s AND check_out_time IS NULL
                """,
                (int(check_out_time), int(now), int(rollcall_id)),
            )
            return int(cur.rowcount)

    def delete_logs_for_rollcalls(self, rollcall_ids: Sequence[int]) -> int:
        if not rollcall_ids:
            return 0
        placeholders, params = in_clause(rollcall_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM attendance_logs WHERE employee_rollcall_id IN ({placeholders})", params)
            return int(cur.rowcount)
