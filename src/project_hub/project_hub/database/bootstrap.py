from __future__ import annotations

import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect
from werkzeug.security import generate_password_hash

from ..core.constants import DEFAULT_PROJECT_STATUSES
from .orm import ProjectModel, ProjectStatusModel, TeamMemberModel, UserModel
from .session import transaction

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("Admin Demo", "admin@example.com", "admin123", "admin"),
    ("Manager Demo", "manager@example.com", "manager123", "manager"),
    ("User Demo", "user@example.com", "user123", "user"),
    ("Guest Demo", "guest@example.com", "guest123", "guest"),
)
DEMO_PROJECT_TITLE = "Demo Project"


def init_schema(app: Flask, db: SQLAlchemy) -> None:
    with app.app_context():
        db.create_all()


def list_tables(app: Flask, db: SQLAlchemy) -> list[str]:
    with app.app_context():
        return inspect(db.engine).get_table_names()


def seed_demo_data(app: Flask, db: SQLAlchemy) -> None:
    """Demo accounts plus one project; running it again changes nothing."""

    with app.app_context(), transaction(db) as session:
        users: dict[str, UserModel] = {}
        for name, email, password, role in DEMO_USERS:
            user = session.query(UserModel).filter(UserModel.email == email).first()
            if user is None:
                user = UserModel(name=name, email=email, password=generate_password_hash(password), role=role)
                session.add(user)
                session.flush()
            users[role] = user

        if session.query(ProjectModel).filter(ProjectModel.title == DEMO_PROJECT_TITLE).first():
            return

        manager = users["manager"]
        project = ProjectModel(
            title=DEMO_PROJECT_TITLE,
            description="Sample project created by the seed step",
            created_by_id=manager.id,
        )
        session.add(project)
        session.flush()

        for index, preset in enumerate(DEFAULT_PROJECT_STATUSES):
            session.add(
                ProjectStatusModel(
                    project_id=project.id,
                    name=preset["name"],
                    color=preset["color"],
                    is_default=preset["is_default"],
                    is_completed_status=preset["is_completed_status"],
                    sort_order=index,
                )
            )
        for role in ("manager", "user"):
            session.add(TeamMemberModel(project_id=project.id, user_id=users[role].id))
        logger.info("seeded demo project %s", project.id)
