from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_ms
from ..common.web import current_user_id, day_window_from, json_body, login_required, ok, to_int
from ..container import Container
from .service import register_log_view


def register(app: Flask, container: Container) -> None:
    service = container.register_service

    @app.route("/api/registers", methods=["GET"], endpoint="my_registers")
    @login_required
    def my_registers():
        window = day_window_from(request.args)
        return ok(registers=service.get_my_registers(current_user_id(), window=window))

    @app.route("/api/registers/accessible", methods=["GET"], endpoint="accessible_registers")
    @login_required
    def accessible_registers():
        return ok(registers=service.get_accessible_registers(current_user_id()))

    @app.route("/api/registers", methods=["POST"], endpoint="create_register")
    @login_required
    def create_register():
        data = json_body()
        register_id = service.create_register(current_user_id(), name=data.get("name", ""), address=data.get("address"))
        return ok(201, id=register_id)

    @app.route("/api/registers/<int:register_id>", methods=["GET"], endpoint="get_register")
    @login_required
    def get_register(register_id: int):
        view = service.get_register(current_user_id(), register_id)
        if view is None:
            return jsonify({"success": False, "message": "Register not found"}), 404
        return ok(register=view)

    @app.route("/api/registers/<int:register_id>", methods=["DELETE"], endpoint="deactivate_register")
    @login_required
    def deactivate_register(register_id: int):
        service.deactivate_register(current_user_id(), register_id)
        return ok()

    @app.route("/api/registers/<int:register_id>/start", methods=["POST"], endpoint="start_register")
    @login_required
    def start_register(register_id: int):
        data = json_body()
        now = now_ms()
        register_log_id = service.start_register(
            current_user_id(),
            register_id,
            opening_time=to_int(data.get("opening_time"), "opening_time", required=False),
            window=day_window_from(data, now=now),
            now=now,
        )
        return ok(register_log_id=register_log_id)

    @app.route("/api/registers/<int:register_id>/today", methods=["GET"], endpoint="today_register_log")
    @login_required
    def today_register_log(register_id: int):
        log = service.get_today_register_log(current_user_id(), register_id, window=day_window_from(request.args))
        return ok(register_log=register_log_view(log) if log else None)

    @app.route("/api/registers/<int:register_id>/start-time", methods=["PUT"], endpoint="update_register_start_time")
    @login_required
    def update_register_start_time(register_id: int):
        data = json_body()
        now = now_ms()
        register_log_id = service.update_register_start_time(
            current_user_id(),
            register_id,
            new_start_time=to_int(data.get("new_start_time"), "new_start_time"),
            window=day_window_from(data, now=now),
            now=now,
        )
        return ok(register_log_id=register_log_id)
