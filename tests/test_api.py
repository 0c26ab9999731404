from __future__ import annotations

import pytest

from rollcall.main import create_app


@pytest.fixture
def client(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=world.container)
    return app.test_client()


def _signup(client, email="owner@shop.test"):
    resp = client.post("/api/auth/signup", json={"email": email, "password": "secret1", "name": "Owner"})
    assert resp.status_code == 201
    return resp.get_json()["user"]["id"]


def _store_with_employee(client):
    register_id = client.post("/api/registers", json={"name": "Main Street"}).get_json()["id"]
    employee_id = client.post(
        f"/api/registers/{register_id}/employees",
        json={"name": "Alice", "start_time": 540, "end_time": 1020, "allowed_break_time": 60, "rate_per_day": 800},
    ).get_json()["id"]
    return register_id, employee_id


def test_requires_session(client):
    resp = client.get("/api/registers")
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Not authenticated"}

    assert client.get("/api/auth/me").get_json()["user"] is None


def test_signup_login_logout(client):
    user_id = _signup(client)
    assert client.get("/api/auth/me").get_json()["user"]["id"] == user_id

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").get_json()["user"] is None

    bad = client.post("/api/auth/login", json={"email": "owner@shop.test", "password": "nope"})
    assert bad.status_code == 401
    good = client.post("/api/auth/login", json={"email": "owner@shop.test", "password": "secret1"})
    assert good.status_code == 200
    assert good.get_json()["user"]["role"] == "admin"


def test_rollcall_day_over_http(client):
    _signup(client)
    register_id, employee_id = _store_with_employee(client)

    log_id = client.post(f"/api/registers/{register_id}/start", json={"timezone_offset": 0}).get_json()["register_log_id"]
    today = client.get(f"/api/registers/{register_id}/today?timezone_offset=0").get_json()["register_log"]
    assert today["id"] == log_id

    rollcall_id = client.post(
        "/api/attendance/present", json={"employee_id": employee_id, "register_log_id": log_id}
    ).get_json()["rollcall_id"]
    resp = client.post("/api/attendance/breaks", json={"employee_id": employee_id, "rollcall_id": rollcall_id})
    assert resp.status_code == 201

    again = client.post("/api/attendance/breaks", json={"employee_id": employee_id, "rollcall_id": rollcall_id})
    assert again.status_code == 409
    assert again.get_json()["message"] == "Employee is already on break"

    rows = client.get(f"/api/registers/{register_id}/status?timezone_offset=0").get_json()["employees"]
    assert [(r["id"], r["status"]) for r in rows] == [(employee_id, "checkout")]

    status = client.get(f"/api/attendance/status?employee_id={employee_id}&register_log_id={log_id}").get_json()
    assert status["attendance"]["status"] == "checkout"


def test_domain_errors_map_to_status_codes(client):
    _signup(client)
    register_id, _ = _store_with_employee(client)

    missing = client.post("/api/attendance/present", json={"register_log_id": 1})
    assert missing.status_code == 400
    assert missing.get_json()["message"] == "employee_id is required"

    assert client.get("/api/registers/999").status_code == 404
    assert client.post("/api/attendance/breaks/999/end").status_code == 404

    bad_employee = client.post(
        f"/api/registers/{register_id}/employees",
        json={"name": "Bob", "start_time": 540, "end_time": 1020, "rate_per_day": 800, "is_manager": True},
    )
    assert bad_employee.status_code == 400

    client.post("/api/auth/logout")
    _signup(client, email="other@shop.test")
    assert client.get(f"/api/registers/{register_id}/employees").status_code == 403


def test_manager_login_over_http(client):
    _signup(client)
    register_id = client.post("/api/registers", json={"name": "Main Street"}).get_json()["id"]
    client.post(
        f"/api/registers/{register_id}/employees",
        json={
            "name": "Bob Smith",
            "start_time": 540,
            "end_time": 1020,
            "allowed_break_time": 30,
            "rate_per_day": 900,
            "is_manager": True,
            "pin": "1234",
        },
    )
    client.post("/api/auth/logout")

    resp = client.post("/api/auth/manager-login", json={"name": "bob smith", "pin": "1234"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "manager"

    registers = client.get("/api/registers?timezone_offset=0").get_json()["registers"]
    assert registers[0]["id"] == register_id
    assert registers[0]["break_time_info"] == {"allowed": 30, "used": 0}


def test_dashboard_endpoints(client):
    _signup(client)
    register_id, _ = _store_with_employee(client)

    resp = client.get(f"/api/dashboard/stats?start=0&end=1&register_id={register_id}&timezone_offset=0")
    assert resp.status_code == 200
    assert resp.get_json()["stats"]["present_days"] == 0

    assert client.get("/api/dashboard/hourly?start=0&end=1").get_json()["days"] == []
    assert client.get("/api/dashboard/stats?start=abc&end=1").status_code == 400


def test_cli_commands(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=world.container)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-admin", "--email", "cli@shop.test", "--password", "secret9"])
    assert result.exit_code == 0
    assert world.users.get_by_email("cli@shop.test") is not None

    duplicate = runner.invoke(args=["create-admin", "--email", "cli@shop.test", "--password", "secret9"])
    assert duplicate.exit_code != 0
    assert "User already exists" in duplicate.output

    assert runner.invoke(args=["retry-logins"]).output.strip() == "linked=0 failed=0"
