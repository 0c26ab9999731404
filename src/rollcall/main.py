from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask

from .common.logger import setup_logger
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_LOGIN_DOMAIN
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables

from .attendance.controller import register as register_attendance
from .employees.controller import register as register_employees
from .payroll.controller import register as register_payroll
from .registers.controller import register as register_registers
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _ensure_bootstrap_admin(container: Container, settings) -> None:
    email = getattr(settings, "BOOTSTRAP_ADMIN_EMAIL", None)
    password = getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", None)
    if not email or not password:
        return
    if container.users_repo.get_by_email(email.strip().lower()):
        return
    container.auth_service.signup_admin(email=email, password=password)
    logger.info("bootstrap admin created email=%s", email)


def _register_cli(app: Flask, container: Container, db_config: dict) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Apply schema.sql to the configured database."""
        apply_schema(db_config)
        tables = list_tables(db_config)
        click.echo(
            "OK: Applied schema.sql -> "
            f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
            f"(tables={len(tables)})"
        )

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True)
    @click.option("--name", default=None)
    def create_admin(email: str, password: str, name: Optional[str]):
        """Create an admin account without going through the API."""
        try:
            user_id = container.auth_service.signup_admin(email=email, password=password, name=name)
        except DomainError as e:
            raise click.ClickException(str(e))
        click.echo(f"OK: admin user_id={user_id}")

    @app.cli.command("retry-logins")
    def retry_logins():
        """Provision login accounts for managers still pending."""
        result = container.manager_login_service.retry_pending()
        click.echo(f"linked={result['linked']} failed={result['failed']}")


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Pass ``container`` to run the API over other repositories (tests); otherwise
    MySQL repositories are built from the selected settings module.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.permanent_session_lifetime = timedelta(days=7)

    setup_logger(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FILE", None))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(
            db_config=db_config,
            login_domain=getattr(settings, "LOGIN_DOMAIN", DEFAULT_LOGIN_DOMAIN),
        )
        _ensure_bootstrap_admin(container, settings)

    app.extensions["rollcall"] = container
    register_error_handlers(app)

    register_users(app, container)
    register_registers(app, container)
    register_employees(app, container)
    register_attendance(app, container)
    register_payroll(app, container)

    _register_cli(app, container, db_config)

    return app
