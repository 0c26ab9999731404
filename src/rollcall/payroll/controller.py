from __future__ import annotations

from flask import Flask, request

from ..common.web import current_user_id, login_required, ok, to_int
from ..container import Container


def _range_args() -> dict:
    return {
        "start": to_int(request.args.get("start"), "start"),
        "end": to_int(request.args.get("end"), "end"),
        "register_id": to_int(request.args.get("register_id"), "register_id", required=False),
        "employee_id": to_int(request.args.get("employee_id"), "employee_id", required=False),
        "timezone_offset": to_int(request.args.get("timezone_offset"), "timezone_offset", required=False),
    }


def register(app: Flask, container: Container) -> None:
    service = container.payroll_report_service

    @app.route("/api/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @login_required
    def dashboard_stats():
        return ok(stats=service.get_dashboard_stats(current_user_id(), **_range_args()))

    @app.route("/api/dashboard/contributions", methods=["GET"], endpoint="contribution_data")
    @login_required
    def contribution_data():
        return ok(days=service.get_contribution_data(current_user_id(), **_range_args()))

    @app.route("/api/dashboard/hourly", methods=["GET"], endpoint="hourly_data")
    @login_required
    def hourly_data():
        return ok(days=service.get_hourly_data(current_user_id(), **_range_args()))

    @app.route("/api/dashboard/employee-log", methods=["GET"], endpoint="employee_log")
    @login_required
    def employee_log():
        log = service.get_employee_log(
            current_user_id(),
            to_int(request.args.get("register_log_id"), "register_log_id"),
            to_int(request.args.get("employee_id"), "employee_id"),
        )
        return ok(log=log)

    @app.route("/api/dashboard/employee-log/range", methods=["GET"], endpoint="employee_log_by_range")
    @login_required
    def employee_log_by_range():
        log = service.get_employee_log_by_time_range(
            current_user_id(),
            to_int(request.args.get("employee_id"), "employee_id"),
            start=to_int(request.args.get("start"), "start"),
            end=to_int(request.args.get("end"), "end"),
        )
        return ok(log=log)
