"""In-memory repositories for service unit tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from src.project_hub.project_hub.attendance.model import AttendanceRecord, AttendanceReportRow, AttendanceSettings
from src.project_hub.project_hub.core.enums import CorrectionStatus, Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, NotFoundError
from src.project_hub.project_hub.corrections.model import CorrectionRequest
from src.project_hub.project_hub.users.model import User


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[int, AttendanceRecord] = {}
        self._id = 0

    def add(self, user_id: int, check_in: datetime, check_out: Optional[datetime] = None, **extra) -> AttendanceRecord:
        self._id += 1
        record = AttendanceRecord(
            attendance_id=self._id,
            user_id=user_id,
            check_in_time=check_in,
            check_out_time=check_out,
            **extra,
        )
        self.rows[self._id] = record
        return record

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_open_for_user(self, user_id):
        open_rows = [r for r in self.rows.values() if r.user_id == user_id and r.check_out_time is None]
        return max(open_rows, key=lambda r: r.check_in_time, default=None)

    def _for_user(self, user_id, start=None, end=None):
        rows = [
            r
            for r in self.rows.values()
            if r.user_id == user_id
            and (start is None or r.check_in_time >= start)
            and (end is None or r.check_in_time <= end)
        ]
        return sorted(rows, key=lambda r: r.check_in_time, reverse=True)

    def get_latest_for_user(self, user_id, *, start=None, end=None):
        rows = self._for_user(user_id, start, end)
        return rows[0] if rows else None

    def list_for_user(self, user_id, *, start=None, end=None, offset=0, limit=None):
        rows = self._for_user(user_id, start, end)
        page = rows[offset:] if limit is None else rows[offset : offset + limit]
        return page, len(rows)

    def list_between(self, *, start, end, user_ids=None, project_id=None):
        wanted = None if user_ids is None else set(user_ids)
        rows = [
            r
            for r in self.rows.values()
            if start <= r.check_in_time <= end
            and (wanted is None or r.user_id in wanted)
            and (project_id is None or r.project_id == project_id)
        ]
        return sorted(rows, key=lambda r: r.check_in_time)

    def create_checkin(self, *, user_id, check_in_time, project_id=None, task_id=None, notes=None, ip=None, device=None):
        record = self.add(
            user_id,
            check_in_time,
            project_id=project_id,
            task_id=task_id,
            notes=notes,
            check_in_ip=ip,
            check_in_device=device,
        )
        return record.attendance_id

    def update_checkout(self, *, attendance_id, check_out_time, total_hours, auto_checkout=False, notes=None, ip=None, device=None):
        record = self.rows[attendance_id]
        self.rows[attendance_id] = replace(
            record,
            check_out_time=check_out_time,
            total_hours=total_hours,
            auto_checkout=auto_checkout,
            notes=notes,
            check_out_ip=ip,
            check_out_device=device,
        )
        return True

    def admin_update_record(self, *, attendance_id, check_in_time, check_out_time, total_hours, notes=None):
        record = self.rows.get(attendance_id)
        if record is None:
            return False
        self.rows[attendance_id] = replace(
            record,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            total_hours=total_hours,
            notes=notes,
        )
        return True

    def get_report_rows(self, *, start, end, user_id=None, project_id=None):
        rows = self.list_between(
            start=start,
            end=end,
            user_ids=None if user_id is None else [user_id],
            project_id=project_id,
        )
        return [
            AttendanceReportRow(
                attendance_id=r.attendance_id,
                user_id=r.user_id,
                name=f"User {r.user_id}",
                email=f"user{r.user_id}@example.com",
                project_title=None,
                check_in_time=r.check_in_time,
                check_out_time=r.check_out_time,
                total_hours=r.total_hours,
                auto_checkout=r.auto_checkout,
                notes=r.notes,
            )
            for r in rows
        ]


@dataclass
class InMemorySettings:
    rows: dict = field(default_factory=dict)

    def get_for_user(self, user_id):
        return self.rows.get(user_id)

    def save(self, settings: AttendanceSettings):
        self.rows[settings.user_id] = settings
        return settings


class InMemoryCorrections:
    def __init__(self, clock):
        self.rows: dict[int, CorrectionRequest] = {}
        self._id = 0
        self._clock = clock

    def create(self, *, attendance_id, user_id, original_check_in, original_check_out, requested_check_in, requested_check_out, reason):
        self._id += 1
        self.rows[self._id] = CorrectionRequest(
            request_id=self._id,
            attendance_id=attendance_id,
            user_id=user_id,
            original_check_in=original_check_in,
            original_check_out=original_check_out,
            requested_check_in=requested_check_in,
            requested_check_out=requested_check_out,
            reason=reason,
            status=CorrectionStatus.PENDING,
            created_at=self._clock(),
        )
        return self._id

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def list_requests(self, *, status=None, user_id=None, limit=200):
        rows = [
            r
            for r in self.rows.values()
            if (status is None or r.status == status) and (user_id is None or r.user_id == user_id)
        ]
        return sorted(rows, key=lambda r: r.request_id, reverse=True)[:limit]

    def decide(self, *, request_id, status, reviewed_by, reviewed_at, review_notes=None):
        req = self.rows.get(request_id)
        if req is None or not req.is_pending:
            return False
        self.rows[request_id] = replace(
            req, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, review_notes=review_notes
        )
        return True


@dataclass
class InMemoryUsers:
    rows: dict = field(default_factory=dict)

    def add(self, user_id: int, role: Role = Role.USER, name: Optional[str] = None) -> User:
        user = User(
            user_id=user_id,
            name=name or f"User {user_id}",
            email=f"user{user_id}@example.com",
            password_hash="x",
            role=role,
        )
        self.rows[user_id] = user
        return user

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def list_by_ids(self, user_ids):
        return [self.rows[i] for i in user_ids if i in self.rows]

    def list_non_admin(self):
        return [u for u in self.rows.values() if u.role != Role.ADMIN]


class RecordingActivity:
    """Stands in for ActivityService; keeps the logged entries."""

    def __init__(self):
        self.entries: list[dict] = []

    def log(self, **entry) -> int:
        self.entries.append(entry)
        return len(self.entries)

    def actions(self) -> list[str]:
        return [e["action"] for e in self.entries]


@dataclass
class StubProjects:
    """Only ``require_viewable`` and ``visible_project_ids`` are used by attendance code."""

    viewable: dict = field(default_factory=dict)

    def require_viewable(self, actor, project_id):
        if int(project_id) not in self.viewable:
            raise NotFoundError("Project not found")
        if actor.user_id not in self.viewable[int(project_id)]:
            raise AuthorizationError("You do not have access to this project")
        return int(project_id)

    def visible_project_ids(self, actor):
        if actor.is_admin:
            return None
        return [pid for pid, users in self.viewable.items() if actor.user_id in users]


@dataclass
class StubTasks:
    rows: dict = field(default_factory=dict)

    def get_by_id(self, task_id):
        return self.rows.get(int(task_id))
