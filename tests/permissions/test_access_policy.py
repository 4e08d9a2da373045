from __future__ import annotations

from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.permissions.model import Actor
from src.project_hub.project_hub.permissions.policy import AccessPolicy, ProjectFacts, TaskFacts

policy = AccessPolicy()

ADMIN = Actor(1, Role.ADMIN)
CREATOR = Actor(2, Role.MANAGER)
MANAGER = Actor(3, Role.MANAGER)
USER = Actor(4, Role.USER)
GUEST = Actor(5, Role.GUEST)


def _project(*, member: bool = False) -> ProjectFacts:
    return ProjectFacts(project_id=10, created_by=CREATOR.user_id, is_member=member)


def test_project_visibility():
    assert policy.can_view_project(ADMIN, _project())
    assert policy.can_view_project(CREATOR, _project())
    assert policy.can_view_project(USER, _project(member=True))
    assert not policy.can_view_project(USER, _project())


def test_project_edit_by_creator_or_project_management():
    assert policy.can_edit_project(CREATOR, _project())
    assert policy.can_edit_project(MANAGER, _project(member=True))
    assert policy.can_edit_project(MANAGER, _project())
    assert not policy.can_edit_project(GUEST, _project(member=True))
    assert not policy.can_edit_project(USER, _project(member=True))


def test_project_delete():
    assert policy.can_delete_project(ADMIN, _project())
    assert policy.can_delete_project(CREATOR, _project())
    assert not policy.can_delete_project(MANAGER, _project(member=True))


def test_task_creation_requires_permission_and_access():
    assert policy.can_create_task(USER, _project(member=True))
    assert not policy.can_create_task(USER, _project())
    assert not policy.can_create_task(GUEST, _project(member=True))


def test_assignee_can_update_task_outside_project():
    task = TaskFacts(project=_project(), created_by=CREATOR.user_id, is_assignee=True)
    assert policy.can_update_task(GUEST, task)
    assert policy.can_view_task(GUEST, task)


def test_subtask_delete_falls_back_to_parent_edit_right():
    project = _project(member=True)
    parent = TaskFacts(project=project, created_by=CREATOR.user_id, is_assignee=True)
    child = TaskFacts(project=project, created_by=CREATOR.user_id, is_assignee=False, parent_id=99)

    assert not policy.can_delete_task(USER, child)
    assert policy.can_delete_task(USER, child, parent_facts=lambda _id: parent)


def test_creator_cannot_be_removed_or_demoted():
    project = _project(member=True)
    assert not policy.can_remove_team_member(ADMIN, project, CREATOR.user_id)
    assert not policy.can_update_team_member(ADMIN, project, CREATOR.user_id)


def test_member_can_leave_project():
    assert policy.can_remove_team_member(USER, _project(member=True), USER.user_id)
    assert not policy.can_remove_team_member(USER, _project(member=True), MANAGER.user_id)


def test_team_view_for_non_members():
    assert policy.can_view_team_member(MANAGER, _project(), 42)
    assert policy.can_view_team_member(USER, _project(), 42)
    assert not policy.can_view_team_member(GUEST, _project(), 42)
    assert policy.can_view_team_member(GUEST, _project(), GUEST.user_id)
    assert policy.can_view_team_member(USER, _project(member=True), 42)


def test_task_deletion_right_applies_outside_membership():
    task = TaskFacts(project=_project(), created_by=CREATOR.user_id, is_assignee=False)

    assert policy.can_delete_task(MANAGER, task)
    assert policy.can_delete_task(CREATOR, task)
    assert not policy.can_delete_task(USER, task)


def test_status_change_for_members():
    task = TaskFacts(project=_project(member=True), created_by=CREATOR.user_id, is_assignee=False)

    assert policy.can_change_task_status(GUEST, task)
    assert policy.can_change_task_status(USER, task)


def test_status_change_with_task_management_outside_membership():
    task = TaskFacts(project=_project(), created_by=ADMIN.user_id, is_assignee=False)

    assert policy.can_change_task_status(MANAGER, task)
    assert policy.can_change_task_status(USER, task)
    assert policy.can_change_task_status(CREATOR, task)
    assert not policy.can_change_task_status(GUEST, task)
