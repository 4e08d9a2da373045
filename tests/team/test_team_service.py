from __future__ import annotations

import pytest

from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _member(container, project_id, user_id):
    return container.team_repo.get_by_user_and_project(user_id=user_id, project_id=project_id)


def test_add_member_with_project_role(ctx, container, actors, demo_project):
    guest = actors["guest"]

    view = container.team_service.add_member(
        actor=actors["manager"], project_id=demo_project.project_id, user_id=guest.user_id, role="manager"
    )

    assert view.global_role is Role.GUEST
    assert view.project_role is Role.MANAGER
    assert view.effective_role is Role.MANAGER
    assert view.project_title == "Demo Project"
    with pytest.raises(ValidationError):
        container.team_service.add_member(
            actor=actors["manager"], project_id=demo_project.project_id, user_id=guest.user_id
        )


def test_add_member_validation(ctx, container, actors, demo_project):
    with pytest.raises(NotFoundError):
        container.team_service.add_member(actor=actors["manager"], project_id=demo_project.project_id, user_id=9999)
    with pytest.raises(ValidationError):
        container.team_service.add_member(
            actor=actors["manager"], project_id=demo_project.project_id, user_id=actors["guest"].user_id, role="boss"
        )


def test_denied_add_is_logged(ctx, container, actors, demo_project):
    with pytest.raises(AuthorizationError):
        container.team_service.add_member(
            actor=actors["user"], project_id=demo_project.project_id, user_id=actors["guest"].user_id
        )

    entry = container.activity_repo.list_recent(limit=1, project_ids=[demo_project.project_id])[0]
    assert entry.action == "permission_denied"
    assert entry.entity_type == "team_member"


def test_update_member_role(ctx, container, actors, demo_project):
    member = _member(container, demo_project.project_id, actors["user"].user_id)

    view = container.team_service.update_member(actor=actors["manager"], member_id=member.member_id, role="manager")
    assert view.effective_role is Role.MANAGER

    cleared = container.team_service.update_member(actor=actors["manager"], member_id=member.member_id, role="")
    assert cleared.project_role is None
    assert cleared.effective_role is Role.USER


def test_creator_membership_is_protected(ctx, container, actors, demo_project):
    owner = _member(container, demo_project.project_id, actors["manager"].user_id)
    with pytest.raises(AuthorizationError):
        container.team_service.remove_member(actor=actors["admin"], member_id=owner.member_id)
    with pytest.raises(AuthorizationError):
        container.team_service.update_member(actor=actors["admin"], member_id=owner.member_id, role="user")


def test_member_can_leave(ctx, container, actors, demo_project):
    user = actors["user"]
    container.team_service.remove_user_from_project(actor=user, project_id=demo_project.project_id, user_id=user.user_id)

    assert _member(container, demo_project.project_id, user.user_id) is None
    with pytest.raises(NotFoundError):
        container.team_service.remove_user_from_project(
            actor=user, project_id=demo_project.project_id, user_id=user.user_id
        )


def test_list_members_visibility(ctx, container, actors, demo_project):
    hidden = container.project_service.create_project(actor=actors["admin"], title="Hidden team")

    mine = container.team_service.list_members(actor=actors["user"])
    everything = container.team_service.list_members(actor=actors["manager"])

    assert {m.project_id for m in mine.items} == {demo_project.project_id}
    assert {m.project_id for m in everything.items} == {demo_project.project_id, hidden.project_id}
    with pytest.raises(AuthorizationError):
        container.team_service.list_members(actor=actors["user"], project_id=hidden.project_id)


def test_task_count_in_team_view(ctx, container, actors, demo_project):
    user = actors["user"]
    container.task_service.create_task(
        actor=actors["manager"], project_id=demo_project.project_id, title="For user", assignee_ids=[user.user_id]
    )

    page = container.team_service.list_members(actor=actors["manager"], project_id=demo_project.project_id)

    counts = {m.user_id: m.task_count for m in page.items}
    assert counts[user.user_id] == 1
    assert counts[actors["manager"].user_id] == 0
