from __future__ import annotations

from src.project_hub.project_hub.core.enums import Permission, Role
from src.project_hub.project_hub.permissions.service import (
    all_permissions,
    all_roles,
    describe_permission,
    has_permission,
    permission_matrix,
    permissions_for_role,
    roles_with_permission,
)


def test_admin_has_every_permission():
    assert all(has_permission(Role.ADMIN, p) for p in Permission)
    assert permissions_for_role("admin") == list(Permission)


def test_guest_can_only_view_projects():
    assert permissions_for_role(Role.GUEST) == [Permission.VIEW_PROJECTS]
    assert not has_permission("guest", Permission.VIEW_DASHBOARD)


def test_manager_and_user_grants():
    assert has_permission("manager", "team_add")
    assert has_permission(Role.MANAGER, Permission.VIEW_TEAM_ATTENDANCE)
    assert not has_permission(Role.MANAGER, Permission.PROJECT_DELETION)
    assert not has_permission(Role.MANAGER, Permission.USER_MANAGEMENT)

    assert has_permission(Role.USER, Permission.TASK_CREATION)
    assert has_permission(Role.USER, Permission.TEAM_VIEW)
    assert not has_permission(Role.USER, Permission.PROJECT_CREATION)


def test_unknown_role_or_permission_is_denied():
    assert not has_permission("superuser", Permission.VIEW_PROJECTS)
    assert not has_permission(None, Permission.VIEW_PROJECTS)
    assert not has_permission(Role.USER, "fly_to_the_moon")
    assert permissions_for_role("nobody") == []


def test_role_strings_are_normalised():
    assert has_permission(" Manager ", "PROJECT_CREATION")


def test_roles_with_permission():
    assert roles_with_permission(Permission.PROJECT_CREATION) == [Role.ADMIN, Role.MANAGER]
    assert roles_with_permission(Permission.VIEW_PROJECTS) == list(Role)


def test_permission_descriptions_and_categories():
    info = describe_permission(Permission.TASK_ASSIGNMENT)
    assert info.id == "task_assignment"
    assert info.name == "Task Assignment"
    assert info.description == "Permission to task assignment"
    assert info.category == "Task Management"

    assert describe_permission(Permission.MANAGE_ROLES).category == "User Management"
    assert describe_permission(Permission.VIEW_TEAM_ATTENDANCE).category == "Team Management"
    assert describe_permission(Permission.ATTENDANCE_MANAGEMENT).category == "Attendance"
    assert describe_permission(Permission.EDIT_PROFILE).category == "General"
    assert len(all_permissions()) == len(Permission)


def test_matrix_covers_all_roles():
    matrix = permission_matrix()
    assert set(matrix) == {"admin", "manager", "user", "guest"}
    assert matrix["guest"]["view_projects"] is True
    assert matrix["guest"]["task_creation"] is False
    assert [r.id for r in all_roles()] == ["admin", "manager", "user", "guest"]
