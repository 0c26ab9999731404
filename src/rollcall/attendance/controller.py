from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, day_window_from, json_body, login_required, ok, to_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/registers/<int:register_id>/status", methods=["GET"], endpoint="employees_with_status")
    @login_required
    def employees_with_status(register_id: int):
        window = day_window_from(request.args)
        return ok(employees=service.get_employees_with_status(current_user_id(), register_id, window=window))

    @app.route("/api/attendance/present", methods=["POST"], endpoint="mark_present")
    @login_required
    def mark_present():
        data = json_body()
        rollcall_id = service.mark_employee_present(
            current_user_id(),
            to_int(data.get("employee_id"), "employee_id"),
            to_int(data.get("register_log_id"), "register_log_id"),
        )
        return ok(rollcall_id=rollcall_id)

    @app.route("/api/attendance/absent", methods=["POST"], endpoint="mark_absent")
    @login_required
    def mark_absent():
        data = json_body()
        rollcall_id = service.mark_employee_absent(
            current_user_id(),
            to_int(data.get("employee_id"), "employee_id"),
            to_int(data.get("register_log_id"), "register_log_id"),
        )
        return ok(rollcall_id=rollcall_id)

    @app.route("/api/attendance/breaks", methods=["POST"], endpoint="start_break")
    @login_required
    def start_break():
        data = json_body()
        attendance_log_id = service.start_employee_break(
            current_user_id(),
            to_int(data.get("employee_id"), "employee_id"),
            to_int(data.get("rollcall_id"), "rollcall_id"),
        )
        return ok(201, attendance_log_id=attendance_log_id)

    @app.route("/api/attendance/breaks/<int:attendance_log_id>/end", methods=["POST"], endpoint="end_break")
    @login_required
    def end_break(attendance_log_id: int):
        return ok(attendance_log_id=service.end_employee_break(current_user_id(), attendance_log_id))

    @app.route("/api/rollcalls/<int:rollcall_id>/return", methods=["POST"], endpoint="return_from_absence")
    @login_required
    def return_from_absence(rollcall_id: int):
        return ok(attendance_log_id=service.return_from_absence(current_user_id(), rollcall_id))

    @app.route("/api/rollcalls/<int:rollcall_id>/half-day", methods=["POST"], endpoint="mark_half_day")
    @login_required
    def mark_half_day(rollcall_id: int):
        return ok(rollcall_id=service.mark_half_day(current_user_id(), rollcall_id))

    @app.route("/api/rollcalls/<int:rollcall_id>/half-day", methods=["DELETE"], endpoint="remove_half_day")
    @login_required
    def remove_half_day(rollcall_id: int):
        return ok(rollcall_id=service.remove_half_day(current_user_id(), rollcall_id))

    @app.route("/api/rollcalls/<int:rollcall_id>/present-time", methods=["PUT"], endpoint="update_present_time")
    @login_required
    def update_present_time(rollcall_id: int):
        data = json_body()
        service.update_present_time(
            current_user_id(),
            rollcall_id,
            new_present_time=to_int(data.get("present_time"), "present_time"),
        )
        return ok(rollcall_id=rollcall_id)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="employee_attendance_status")
    @login_required
    def employee_attendance_status():
        status = service.get_employee_attendance_status(
            current_user_id(),
            to_int(request.args.get("employee_id"), "employee_id"),
            to_int(request.args.get("register_log_id"), "register_log_id"),
        )
        if status is None:
            return jsonify({"success": False, "message": "Attendance status not available"}), 404
        return ok(attendance=status)

    @app.route("/api/register-logs/<int:register_log_id>/active-breaks", methods=["GET"], endpoint="active_breaks")
    @login_required
    def active_breaks(register_log_id: int):
        return ok(logs=service.get_active_attendance_logs(current_user_id(), register_log_id))

    @app.route(
        "/api/register-logs/<int:register_log_id>/employees/<int:employee_id>/logs",
        methods=["GET"],
        endpoint="employee_attendance_logs",
    )
    @login_required
    def employee_attendance_logs(register_log_id: int, employee_id: int):
        return ok(**service.get_employee_attendance_logs(current_user_id(), employee_id, register_log_id))
