from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.web import current_user_id, json_body, login_required, ok
from ..container import Container
from .service import SessionUser

logger = logging.getLogger(__name__)


def _start_session(s_user: SessionUser, *, remember: bool = False) -> dict:
    session.clear()
    session.permanent = remember
    session["user_id"] = s_user.user_id
    session["name"] = s_user.name
    session["role"] = s_user.role.value
    return {"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        data = json_body()
        container.auth_service.signup_admin(
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name"),
        )
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        return ok(201, user=_start_session(s_user))

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        logger.info("admin login user_id=%s", s_user.user_id)
        return ok(user=_start_session(s_user, remember=bool(data.get("remember_me"))))

    @app.route("/api/auth/manager-login", methods=["POST"], endpoint="manager_login")
    def manager_login():
        data = json_body()
        s_user = container.auth_service.authenticate_manager(data.get("name", ""), str(data.get("pin", "")))
        logger.info("manager login user_id=%s", s_user.user_id)
        return ok(user=_start_session(s_user, remember=bool(data.get("remember_me"))))

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/auth/me", methods=["GET"], endpoint="current_user")
    def current_user():
        return ok(user=container.auth_service.get_current_user(current_user_id()))

    @app.route("/api/managers/lookup", methods=["GET"], endpoint="find_manager")
    def find_manager():
        account = container.auth_service.find_manager_account_by_name(request.args.get("name", ""))
        if account is None:
            return jsonify({"success": False, "message": "Manager account not found"}), 404
        return ok(account=account)

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @login_required
    def list_users():
        return ok(users=container.user_service.list_users(current_user_id()))

    @app.route("/api/users/admins", methods=["POST"], endpoint="create_admin")
    @login_required
    def create_admin():
        data = json_body()
        user_id = container.user_service.create_admin(
            current_user_id(),
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name", ""),
        )
        return ok(201, id=user_id)
