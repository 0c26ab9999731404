from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LOGIN_DOMAIN
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService, ManagerLoginService
from .payroll.service import PayrollReportService
from .registers.mysql_register_repository import MySQLRegisterRepository
from .registers.repository import RegisterRepository
from .registers.service import RegisterService
from .users.access import AccessService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    registers_repo: RegisterRepository
    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository

    access_service: AccessService
    auth_service: AuthService
    user_service: UserService
    register_service: RegisterService
    manager_login_service: ManagerLoginService
    employee_service: EmployeeService
    attendance_service: AttendanceService
    payroll_report_service: PayrollReportService


def build_services(
    *,
    users_repo: UserRepository,
    registers_repo: RegisterRepository,
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    login_domain: str = DEFAULT_LOGIN_DOMAIN,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any repository implementation (MySQL or in-memory)."""
    access_service = AccessService(users_repo, registers_repo, employees_repo)
    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo, auth_service)
    register_service = RegisterService(registers_repo, employees_repo, attendance_repo, access_service)
    manager_login_service = ManagerLoginService(employees_repo, users_repo, login_domain=login_domain)
    employee_service = EmployeeService(
        employees_repo,
        users_repo,
        registers_repo,
        attendance_repo,
        access_service,
        manager_login_service,
    )
    attendance_service = AttendanceService(attendance_repo, employees_repo, registers_repo, access_service)
    payroll_report_service = PayrollReportService(
        users_repo,
        registers_repo,
        employees_repo,
        attendance_repo,
        access_service,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        registers_repo=registers_repo,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        access_service=access_service,
        auth_service=auth_service,
        user_service=user_service,
        register_service=register_service,
        manager_login_service=manager_login_service,
        employee_service=employee_service,
        attendance_service=attendance_service,
        payroll_report_service=payroll_report_service,
    )


def build_container(*, db_config: dict, login_domain: str = DEFAULT_LOGIN_DOMAIN) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        registers_repo=MySQLRegisterRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        login_domain=login_domain,
        conn=conn,
    )
