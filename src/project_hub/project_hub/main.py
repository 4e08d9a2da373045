from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, flash, redirect, request, url_for
from flask_login import LoginManager
from sqlalchemy.engine import make_url
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .common.web import fail, is_api_request
from .container import build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .core.exceptions import DomainError
from .database.bootstrap import init_schema, list_tables, seed_demo_data
from .database.orm import db

from .activity.controller import register as register_activity
from .attendance.controller import register as register_attendance
from .dashboard.controller import register as register_dashboard
from .permissions.controller import register as register_permissions
from .projects.controller import register as register_projects
from .tasks.controller import register as register_tasks
from .team.controller import register as register_team
from .users.controller import register as register_users

SETTING_KEYS = (
    "SECRET_KEY",
    "SQLALCHEMY_DATABASE_URI",
    "SQLALCHEMY_TRACK_MODIFICATIONS",
    "DEBUG",
    "TESTING",
    "AUTO_INIT_DB",
    "AUTO_SEED_DB",
    "SESSION_DAYS",
)


def _load_settings(settings_module: str, override: Optional[dict]) -> dict:
    settings = importlib.import_module(settings_module)
    values = {key: getattr(settings, key) for key in SETTING_KEYS if hasattr(settings, key)}
    values.update(override or {})
    return values


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 403:
            app.logger.warning("%s %s -> %s: %s", request.method, request.path, e.status_code, e)
        return fail(str(e), e.status_code)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            if is_api_request():
                return fail(e.description or e.name, e.code or 500)
            return e
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        if is_api_request():
            return fail("Internal server error", 500)
        return "Internal server error", 500


def _init_login(app: Flask, container) -> None:
    login_manager = LoginManager()
    login_manager.login_view = "login"
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        return container.auth_service.load_session_user(user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        if is_api_request():
            return fail("Authentication required", 401)
        flash("Please log in to continue", "warning")
        return redirect(url_for("login", next=request.path))


def create_app(settings_override: Optional[dict] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates", static_folder="../../../static")

    settings_module = get_settings_module()
    settings = _load_settings(settings_module, settings_override)
    app.config.update(settings)
    app.secret_key = settings["SECRET_KEY"]
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    app.permanent_session_lifetime = timedelta(days=int(settings.get("SESSION_DAYS", DEFAULT_SESSION_DAYS)))

    if app.config["DEBUG"]:
        target = make_url(settings["SQLALCHEMY_DATABASE_URI"]).render_as_string(hide_password=True)
        app.logger.setLevel(logging.INFO)
        app.logger.info("[project-hub] settings=%s db=%s", settings_module, target)

    db.init_app(app)

    if settings.get("AUTO_INIT_DB"):
        init_schema(app, db)
        if app.config["DEBUG"]:
            app.logger.info("[project-hub] schema ready (tables=%s)", len(list_tables(app, db)))
    if settings.get("AUTO_SEED_DB"):
        seed_demo_data(app, db)
        if app.config["DEBUG"]:
            app.logger.info("[project-hub] demo seed ready")

    container = build_container(db=db)
    app.extensions["project_hub.container"] = container

    _init_login(app, container)
    _register_error_handlers(app)

    register_users(app, container)
    register_permissions(app, container)
    register_dashboard(app, container)
    register_projects(app, container)
    register_tasks(app, container)
    register_team(app, container)
    register_activity(app, container)
    register_attendance(app, container)

    return app
