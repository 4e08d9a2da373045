"""Static role -> permission table."""

from __future__ import annotations

from ..core.enums import Permission, Role
from .model import RoleInfo

P = Permission

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.MANAGER: frozenset(
        {
            P.PROJECT_CREATION,
            P.PROJECT_MANAGEMENT,
            P.TEAM_MANAGEMENT,
            P.TEAM_ADD,
            P.TEAM_REMOVE,
            P.TEAM_VIEW,
            P.TASK_CREATION,
            P.TASK_ASSIGNMENT,
            P.TASK_MANAGEMENT,
            P.TASK_DELETION,
            P.VIEW_PROJECTS,
            P.EDIT_PROFILE,
            P.VIEW_DASHBOARD,
            P.VIEW_TEAM_ATTENDANCE,
        }
    ),
    Role.USER: frozenset(
        {
            P.TASK_CREATION,
            P.TASK_MANAGEMENT,
            P.VIEW_PROJECTS,
            P.EDIT_PROFILE,
            P.VIEW_DASHBOARD,
            P.TEAM_VIEW,
        }
    ),
    Role.GUEST: frozenset({P.VIEW_PROJECTS}),
}

ROLE_INFO: dict[Role, RoleInfo] = {
    Role.ADMIN: RoleInfo("admin", "Administrator", "Full access to all system features", "#8B5CF6"),
    Role.MANAGER: RoleInfo("manager", "Manager", "Can manage projects, tasks, and team members", "#3B82F6"),
    Role.USER: RoleInfo("user", "User", "Regular user with limited permissions", "#10B981"),
    Role.GUEST: RoleInfo("guest", "Guest", "View-only access to projects", "#6B7280"),
}

# Checked in order; first keyword found in the permission key wins.
CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("USER", "ROLE"), "User Management"),
    (("PROJECT",), "Project Management"),
    (("TASK",), "Task Management"),
    (("TEAM",), "Team Management"),
    (("ATTENDANCE",), "Attendance"),
    (("SYSTEM",), "System"),
)
