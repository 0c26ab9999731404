from __future__ import annotations

from flask import Flask, request

from ..common.web import current_user_id, day_window_from, json_body, login_required, ok
from ..container import Container


def _schedule_fields(data: dict) -> dict:
    return {
        "name": data.get("name", ""),
        "start_time": data.get("start_time"),
        "end_time": data.get("end_time"),
        "allowed_break_time": data.get("allowed_break_time", 0),
        "rate_per_day": data.get("rate_per_day"),
        "is_manager": bool(data.get("is_manager", False)),
        "pin": str(data["pin"]) if data.get("pin") not in (None, "") else None,
    }


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/registers/<int:register_id>/employees", methods=["GET"], endpoint="register_employees")
    @login_required
    def register_employees(register_id: int):
        return ok(employees=service.get_register_employees(current_user_id(), register_id))

    @app.route("/api/registers/<int:register_id>/employees", methods=["POST"], endpoint="create_employee")
    @login_required
    def create_employee(register_id: int):
        employee_id = service.create_employee(current_user_id(), register_id=register_id, **_schedule_fields(json_body()))
        return ok(201, id=employee_id)

    @app.route("/api/employees/<int:employee_id>", methods=["PUT"], endpoint="update_employee")
    @login_required
    def update_employee(employee_id: int):
        service.update_employee(current_user_id(), employee_id, **_schedule_fields(json_body()))
        return ok()

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="delete_employee")
    @login_required
    def delete_employee(employee_id: int):
        service.delete_employee(current_user_id(), employee_id, window=day_window_from(request.args))
        return ok()
