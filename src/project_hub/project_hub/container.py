from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from flask_sqlalchemy import SQLAlchemy

from .activity.service import ActivityService
from .activity.sqlalchemy_activity_repository import SqlAlchemyActivityRepository
from .attendance.analytics_service import AttendanceAnalyticsService
from .attendance.factory import CheckoutStrategyFactory
from .attendance.service import AttendanceService
from .attendance.settings_service import AttendanceSettingsService
from .attendance.sqlalchemy_attendance_repository import (
    SqlAlchemyAttendanceRepository,
    SqlAlchemyAttendanceSettingsRepository,
)
from .core.constants import DEFAULT_CHECKOUT_HOURS, MAX_HOURS_PER_DAY
from .corrections.service import CorrectionService
from .corrections.sqlalchemy_correction_repository import SqlAlchemyCorrectionRepository
from .dashboard.service import DashboardService
from .database.session import transaction
from .permissions.policy import AccessPolicy
from .projects.service import ProjectService
from .projects.sqlalchemy_project_repository import SqlAlchemyProjectRepository
from .projects.sqlalchemy_status_repository import SqlAlchemyStatusRepository
from .projects.status_service import ProjectStatusService
from .reports.calculator.standard_calculator import StandardHoursCalculator
from .reports.service import AttendanceReportService
from .tasks.service import TaskService
from .tasks.sqlalchemy_task_repository import SqlAlchemyTaskRepository
from .team.service import TeamService
from .team.sqlalchemy_team_repository import SqlAlchemyTeamRepository
from .users.service import AuthService, UserService
from .users.sqlalchemy_user_repository import SqlAlchemyUserRepository


@dataclass(frozen=True)
class Container:
    users_repo: SqlAlchemyUserRepository
    projects_repo: SqlAlchemyProjectRepository
    statuses_repo: SqlAlchemyStatusRepository
    tasks_repo: SqlAlchemyTaskRepository
    team_repo: SqlAlchemyTeamRepository
    activity_repo: SqlAlchemyActivityRepository
    attendance_repo: SqlAlchemyAttendanceRepository
    attendance_settings_repo: SqlAlchemyAttendanceSettingsRepository
    corrections_repo: SqlAlchemyCorrectionRepository

    activity_service: ActivityService
    auth_service: AuthService
    user_service: UserService
    project_service: ProjectService
    status_service: ProjectStatusService
    task_service: TaskService
    team_service: TeamService
    attendance_service: AttendanceService
    attendance_settings_service: AttendanceSettingsService
    attendance_analytics_service: AttendanceAnalyticsService
    correction_service: CorrectionService
    attendance_report_service: AttendanceReportService
    dashboard_service: DashboardService


def build_container(*, db: SQLAlchemy) -> Container:
    users_repo = SqlAlchemyUserRepository(db)
    projects_repo = SqlAlchemyProjectRepository(db)
    statuses_repo = SqlAlchemyStatusRepository(db)
    tasks_repo = SqlAlchemyTaskRepository(db)
    team_repo = SqlAlchemyTeamRepository(db)
    activity_repo = SqlAlchemyActivityRepository(db)
    attendance_repo = SqlAlchemyAttendanceRepository(db)
    attendance_settings_repo = SqlAlchemyAttendanceSettingsRepository(db)
    corrections_repo = SqlAlchemyCorrectionRepository(db)

    policy = AccessPolicy()
    unit_of_work = partial(transaction, db)
    calculator = StandardHoursCalculator()

    activity_service = ActivityService(activity_repo)
    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo, team_repo, projects_repo, tasks_repo, attendance_repo)
    project_service = ProjectService(
        projects_repo, statuses_repo, team_repo, tasks_repo, activity_service, policy=policy, unit_of_work=unit_of_work
    )
    status_service = ProjectStatusService(statuses_repo, project_service, policy=policy)
    task_service = TaskService(tasks_repo, statuses_repo, team_repo, project_service, activity_service, policy=policy)
    team_service = TeamService(team_repo, users_repo, project_service, tasks_repo, activity_service, policy=policy)
    attendance_service = AttendanceService(
        attendance_repo,
        project_service,
        tasks_repo,
        activity_service,
        strategy_factory=CheckoutStrategyFactory(DEFAULT_CHECKOUT_HOURS),
        calculator=calculator,
        max_hours_per_day=MAX_HOURS_PER_DAY,
    )
    attendance_settings_service = AttendanceSettingsService(attendance_settings_repo)
    attendance_analytics_service = AttendanceAnalyticsService(
        attendance_repo,
        users_repo,
        team_repo,
        project_service,
        activity_repo,
        calculator=calculator,
    )
    correction_service = CorrectionService(
        corrections_repo, attendance_repo, activity_service, unit_of_work=unit_of_work
    )
    attendance_report_service = AttendanceReportService(attendance_repo, calculator=calculator)
    dashboard_service = DashboardService(project_service, statuses_repo, tasks_repo, team_repo, activity_service)

    return Container(
        users_repo=users_repo,
        projects_repo=projects_repo,
        statuses_repo=statuses_repo,
        tasks_repo=tasks_repo,
        team_repo=team_repo,
        activity_repo=activity_repo,
        attendance_repo=attendance_repo,
        attendance_settings_repo=attendance_settings_repo,
        corrections_repo=corrections_repo,
        activity_service=activity_service,
        auth_service=auth_service,
        user_service=user_service,
        project_service=project_service,
        status_service=status_service,
        task_service=task_service,
        team_service=team_service,
        attendance_service=attendance_service,
        attendance_settings_service=attendance_settings_service,
        attendance_analytics_service=attendance_analytics_service,
        correction_service=correction_service,
        attendance_report_service=attendance_report_service,
        dashboard_service=dashboard_service,
    )
