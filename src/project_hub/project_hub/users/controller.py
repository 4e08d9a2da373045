from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, login_required, login_user, logout_user

from ..common.web import arg_int, current_actor, ok, page_args, paged, payload
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_USER_LIST_LIMIT
from ..core.enums import Permission
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError
from ..permissions.service import has_permission, permissions_for_role


def _landing() -> str:
    if has_permission(current_user.role, Permission.VIEW_DASHBOARD):
        return url_for("dashboard")
    return url_for("projects_page")


def register(app: Flask, container: Container) -> None:
    @app.route("/", endpoint="home")
    def home():
        if current_user.is_authenticated:
            return redirect(_landing())
        return redirect(url_for("login"))

    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        if current_user.is_authenticated:
            return redirect(_landing())

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            try:
                user = container.auth_service.authenticate(email, password)
            except DomainError as e:
                app.logger.warning("failed login for %s", email)
                flash(str(e), "danger")
                return render_template("login.html", email=email), 401

            session.permanent = True
            login_user(user, remember=bool(request.form.get("remember")))
            app.logger.info("user %s logged in", user.user_id)
            flash(f"Welcome back, {user.name}!", "success")
            next_url = request.args.get("next") or ""
            if next_url.startswith("/") and not next_url.startswith("//"):
                return redirect(next_url)
            return redirect(_landing())

        return render_template("login.html")

    @app.route("/logout", endpoint="logout")
    @login_required
    def logout():
        logout_user()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/profile", methods=["GET", "POST"], endpoint="profile")
    @login_required
    def profile():
        actor = current_actor()
        if request.method == "POST":
            try:
                container.user_service.update_profile(
                    actor=actor,
                    user_id=actor.user_id,
                    name=request.form.get("name"),
                    image=request.form.get("image"),
                    password=request.form.get("password") or None,
                )
                flash("Profile updated", "success")
                return redirect(url_for("profile"))
            except DomainError as e:
                flash(str(e), "danger")

        data = container.user_service.get_profile(actor=actor, user_id=actor.user_id)
        return render_template("users/profile.html", profile=data, active_page="profile")

    # JSON API

    @app.route("/api/register", methods=["POST"], endpoint="api_register")
    def api_register():
        data = payload()
        user = container.auth_service.register(
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
        )
        app.logger.info("user %s registered", user.user_id)
        return ok(
            {"id": user.user_id, "name": user.name, "email": user.email, "role": user.role},
            message="User registered successfully",
            status=201,
        )

    @app.route("/api/auth-status", methods=["GET"], endpoint="api_auth_status")
    def api_auth_status():
        if not current_user.is_authenticated:
            return ok({"authenticated": False})
        return ok(
            {
                "authenticated": True,
                "user": {
                    "id": current_user.user_id,
                    "name": current_user.name,
                    "email": current_user.email,
                    "role": current_user.role,
                    "image": current_user.image,
                },
            }
        )

    @app.route("/api/users", methods=["GET"], endpoint="api_users")
    @login_required
    def api_users():
        limit = arg_int("limit") or DEFAULT_USER_LIST_LIMIT
        users = container.user_service.list_users(
            search=request.args.get("search"),
            project_id=arg_int("projectId"),
            limit=limit,
        )
        return ok(users)

    @app.route("/api/users/permissions", methods=["GET"], endpoint="api_user_permissions")
    @login_required
    def api_user_permissions():
        return ok({"role": current_user.role, "permissions": permissions_for_role(current_user.role)})

    @app.route("/api/users/roles", methods=["GET"], endpoint="api_user_roles")
    @login_required
    def api_user_roles():
        actor = current_actor()
        user_id = arg_int("userId") or actor.user_id
        if user_id != actor.user_id and not has_permission(actor.role, Permission.USER_MANAGEMENT):
            raise AuthorizationError("You do not have permission to view other users' roles")
        user = container.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return ok({"userId": user.user_id, "roles": [user.role]})

    @app.route("/api/users/check-permission", methods=["GET", "POST"], endpoint="api_check_permission")
    @login_required
    def api_check_permission():
        permission = request.args.get("permission") or payload().get("permission") or ""
        return ok({"permission": permission, "hasPermission": has_permission(current_user.role, permission)})

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="api_user_get")
    @login_required
    def api_user_get(user_id: int):
        return ok(container.user_service.get_profile(actor=current_actor(), user_id=user_id))

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="api_user_update")
    @login_required
    def api_user_update(user_id: int):
        data = payload()
        user = container.user_service.update_profile(
            actor=current_actor(),
            user_id=user_id,
            name=data.get("name"),
            image=data.get("image"),
            password=data.get("password"),
        )
        app.logger.info("user %s updated profile %s", current_user.user_id, user_id)
        return ok(user, message="Profile updated")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="api_user_delete")
    @login_required
    def api_user_delete(user_id: int):
        container.user_service.delete_user(actor=current_actor(), user_id=user_id)
        app.logger.info("user %s deleted user %s", current_user.user_id, user_id)
        return ok(message="User deleted")

    @app.route("/api/users/<int:user_id>/role", methods=["PATCH"], endpoint="api_user_role")
    @login_required
    def api_user_role(user_id: int):
        user = container.user_service.update_role(
            actor=current_actor(), user_id=user_id, role=payload().get("role", "")
        )
        app.logger.info("user %s set role of %s to %s", current_user.user_id, user_id, user.role.value)
        return ok(user, message="Role updated")

    @app.route("/api/users/<int:user_id>/teams", methods=["GET"], endpoint="api_user_teams")
    @login_required
    def api_user_teams(user_id: int):
        actor = current_actor()
        if actor.user_id != user_id and not actor.is_admin_or_manager:
            raise AuthorizationError("You do not have permission to view this user")
        return ok(container.user_service.user_teams(user_id=user_id))

    @app.route("/api/users/<int:user_id>/attendance", methods=["GET"], endpoint="api_user_attendance")
    @login_required
    def api_user_attendance(user_id: int):
        page, limit = page_args(DEFAULT_HISTORY_LIMIT)
        history = container.attendance_service.history(
            actor=current_actor(),
            user_id=user_id,
            period=request.args.get("period"),
            page=page,
            limit=limit,
        )
        return paged(history.page)
