from __future__ import annotations

from dataclasses import asdict

from flask import Flask, request
from flask_login import login_required

from ..common.web import current_actor, ok
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from . import service as permissions


def register(app: Flask, container: Container) -> None:
    @app.route("/api/permissions", methods=["GET"], endpoint="api_permissions")
    @login_required
    def api_permissions():
        role = request.args.get("role")
        if not role:
            return ok(permissions.all_permissions())
        parsed = Role.parse(role)
        if parsed is None:
            raise ValidationError("Invalid role")
        granted = {p.value for p in permissions.permissions_for_role(parsed)}
        return ok([p for p in permissions.all_permissions() if p.id in granted])

    @app.route("/api/permissions/matrix", methods=["GET"], endpoint="api_permission_matrix")
    @login_required
    def api_permission_matrix():
        return ok(
            {
                "roles": permissions.all_roles(),
                "permissions": permissions.all_permissions(),
                "matrix": permissions.permission_matrix(),
            }
        )

    @app.route("/api/roles", methods=["GET"], endpoint="api_roles")
    @login_required
    def api_roles():
        return ok(
            [
                {**asdict(info), "permissions": permissions.permissions_for_role(info.id)}
                for info in permissions.all_roles()
            ]
        )

    @app.route("/api/roles/permissions", methods=["GET"], endpoint="api_role_permissions")
    @login_required
    def api_role_permissions():
        if not current_actor().is_admin:
            raise AuthorizationError("Admin access required")
        return ok({role.value: permissions.permissions_for_role(role) for role in Role})
