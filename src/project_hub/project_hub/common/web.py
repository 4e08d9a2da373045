"""Helpers shared by the Flask controllers."""

from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import jsonify, render_template, request
from flask_login import current_user

from ..core.enums import Permission, Role
from ..core.exceptions import ValidationError
from ..permissions.model import Actor
from ..permissions.service import has_permission
from .pagination import Page
from .serialization import to_json
from .validators import optional_int, positive_int


def is_api_request() -> bool:
    return request.path.startswith("/api/")


def current_actor() -> Actor:
    return current_user.actor


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, **extra):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = to_json(data)
    for key, value in extra.items():
        body[key] = to_json(value)
    return jsonify(body), status


def fail(message: str, status: int = 400):
    return jsonify({"success": False, "message": message}), status


def paged(page: Page, items: Optional[list] = None):
    return ok(items if items is not None else page.items, pagination=page.meta())


def payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def arg_int(name: str) -> Optional[int]:
    return optional_int(request.args.get(name), name)


def page_args(default_limit: int) -> tuple[int, int]:
    return (
        positive_int(request.args.get("page"), "page", 1),
        positive_int(request.args.get("limit"), "limit", default_limit),
    )


def _forbidden(message: str):
    if is_api_request():
        return fail(message, 403)
    return render_template("403.html", message=message), 403


def roles_required(*roles: Role):
    """Only the listed roles may call the view (login is checked first)."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if current_user.role not in roles:
                return _forbidden("You do not have access to this page")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def permission_required(permission: Permission):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not has_permission(current_user.role, permission):
                return _forbidden("You do not have permission to perform this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator
