from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Global user role used by the permission table."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


class Permission(str, Enum):
    USER_MANAGEMENT = "user_management"
    MANAGE_ROLES = "manage_roles"
    MANAGE_PERMISSIONS = "manage_permissions"
    PROJECT_CREATION = "project_creation"
    PROJECT_MANAGEMENT = "project_management"
    PROJECT_DELETION = "project_deletion"
    TEAM_MANAGEMENT = "team_management"
    TEAM_ADD = "team_add"
    TEAM_REMOVE = "team_remove"
    TEAM_VIEW = "team_view"
    TASK_CREATION = "task_creation"
    TASK_ASSIGNMENT = "task_assignment"
    TASK_MANAGEMENT = "task_management"
    TASK_DELETION = "task_deletion"
    VIEW_PROJECTS = "view_projects"
    EDIT_PROFILE = "edit_profile"
    SYSTEM_SETTINGS = "system_settings"
    VIEW_DASHBOARD = "view_dashboard"
    ATTENDANCE_MANAGEMENT = "attendance_management"
    VIEW_TEAM_ATTENDANCE = "view_team_attendance"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CorrectionStatus(str, Enum):
    """Lifecycle of an attendance correction request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExceptionType(str, Enum):
    """Kinds of attendance exceptions computed from records."""

    ABSENT = "absent"
    LATE = "late"
    FORGOT_CHECKOUT = "forgot_checkout"
    PATTERN = "pattern"
