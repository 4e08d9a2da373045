from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_USER_LIST_LIMIT
from ..core.enums import Permission, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..permissions.model import Actor
from ..permissions.service import has_permission
from ..projects.repository import ProjectRepository
from ..tasks.repository import TaskRepository
from ..team.repository import TeamRepository
from .model import PublicUser, SessionUser, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class UserTeam:
    member_id: int
    project_id: int
    project_title: str
    role: Role
    is_creator: bool


@dataclass(frozen=True)
class UserProfile:
    user: PublicUser
    last_login: Optional[datetime]
    teams: Sequence[UserTeam]
    assigned_task_count: int
    projects_created: int
    recent_attendance: Sequence[AttendanceRecord]


def _to_session_user(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role, image=user.image)


class AuthService:
    """Use case: login, registration and session reload."""

    def __init__(self, users: UserRepository, *, clock: Callable[[], datetime] = now_local):
        self._users = users
        self._clock = clock

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (TypeError, ValueError):
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        self._users.touch_last_login(user_id=user.user_id, at=self._clock())
        return _to_session_user(user)

    def register(self, *, name: str, email: str, password: str) -> SessionUser:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("A user with this email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.USER,
        )
        logger.info("registered user %s (%s)", user_id, email)
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("Registration failed")
        return _to_session_user(user)

    def load_session_user(self, user_id) -> Optional[SessionUser]:
        try:
            user = self._users.get_by_id(int(user_id))
        except (TypeError, ValueError):
            return None
        if not user or not user.is_active:
            return None
        return _to_session_user(user)


class UserService:
    """Use case: list and manage accounts."""

    def __init__(
        self,
        users: UserRepository,
        team: TeamRepository,
        projects: ProjectRepository,
        tasks: TaskRepository,
        attendance: AttendanceRepository,
    ):
        self._users = users
        self._team = team
        self._projects = projects
        self._tasks = tasks
        self._attendance = attendance

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        *,
        search: Optional[str] = None,
        project_id: Optional[int] = None,
        limit: int = DEFAULT_USER_LIST_LIMIT,
    ) -> list[PublicUser]:
        if project_id is not None:
            members = self._team.list_for_project(int(project_id))[: int(limit)]
            users = self._users.list_by_ids([m.user_id for m in members])
        else:
            users = self._users.list_users(search=(search or "").strip() or None, limit=int(limit))
        return [PublicUser.of(u) for u in users]

    def user_teams(self, *, user_id: int) -> list[UserTeam]:
        memberships = self._team.list_for_user(int(user_id))
        projects = {p.project_id: p for p in self._projects.list_by_ids([m.project_id for m in memberships])}
        user = self._require_user(user_id)

        out: list[UserTeam] = []
        for m in memberships:
            project = projects.get(m.project_id)
            if not project:
                continue
            out.append(
                UserTeam(
                    member_id=m.member_id,
                    project_id=m.project_id,
                    project_title=project.title,
                    role=m.role or user.role,
                    is_creator=project.created_by == user.user_id,
                )
            )
        return out

    def get_profile(self, *, actor: Actor, user_id: int) -> UserProfile:
        user_id = int(user_id)
        if actor.user_id != user_id and not actor.is_admin_or_manager:
            raise AuthorizationError("You do not have permission to view this user")

        user = self._require_user(user_id)
        recent, _ = self._attendance.list_for_user(user_id, limit=5)
        return UserProfile(
            user=PublicUser.of(user),
            last_login=user.last_login,
            teams=self.user_teams(user_id=user_id),
            assigned_task_count=self._tasks.count_assigned(user_id=user_id),
            projects_created=self._projects.count_created_by(user_id),
            recent_attendance=list(recent),
        )

    def update_profile(
        self,
        *,
        actor: Actor,
        user_id: int,
        name: Optional[str] = None,
        image: Optional[str] = None,
        password: Optional[str] = None,
    ) -> PublicUser:
        user_id = int(user_id)
        if actor.user_id != user_id and not actor.is_admin:
            raise AuthorizationError("You can only edit your own profile")
        if actor.user_id == user_id and not has_permission(actor.role, Permission.EDIT_PROFILE):
            raise AuthorizationError("Your role cannot edit profiles")

        self._require_user(user_id)
        clean_name = require_non_empty(name, "Name") if name is not None else None
        password_hash = None
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            password_hash = generate_password_hash(password)

        self._users.update_profile(
            user_id=user_id,
            name=clean_name,
            image=image.strip() if isinstance(image, str) else None,
            password_hash=password_hash,
        )
        return PublicUser.of(self._require_user(user_id))

    def update_role(self, *, actor: Actor, user_id: int, role: str) -> PublicUser:
        if not has_permission(actor.role, Permission.MANAGE_ROLES):
            raise AuthorizationError("You do not have permission to change roles")

        new_role = Role.parse(role)
        if new_role is None:
            raise ValidationError("Invalid role")
        if actor.user_id == int(user_id):
            raise ValidationError("You cannot change your own role")

        self._require_user(user_id)
        self._users.update_role(user_id=int(user_id), role=new_role)
        logger.info("user %s changed role of %s to %s", actor.user_id, user_id, new_role.value)
        return PublicUser.of(self._require_user(user_id))

    def delete_user(self, *, actor: Actor, user_id: int) -> None:
        if not has_permission(actor.role, Permission.USER_MANAGEMENT):
            raise AuthorizationError("You do not have permission to delete users")
        if actor.user_id == int(user_id):
            raise ValidationError("You cannot delete your own account")

        self._require_user(user_id)
        if self._projects.count_created_by(int(user_id)) > 0:
            raise ConflictError("User still owns projects; transfer or delete them first")

        if not self._users.delete_by_id(int(user_id)):
            raise ValidationError("Deleting the user failed")
