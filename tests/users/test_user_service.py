from __future__ import annotations

import pytest

from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)


def test_authenticate_demo_user(ctx, container):
    user = container.auth_service.authenticate(" Manager@Example.com ", "manager123")

    assert user.role is Role.MANAGER
    assert container.users_repo.get_by_id(user.user_id).last_login is not None


def test_authenticate_rejects_wrong_password(ctx, container):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("manager@example.com", "nope")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("nobody@example.com", "manager123")


def test_register_creates_regular_user(ctx, container):
    user = container.auth_service.register(name="New Person", email="new@example.com", password="secret1")

    assert user.role is Role.USER
    assert container.auth_service.authenticate("new@example.com", "secret1").user_id == user.user_id
    with pytest.raises(ConflictError):
        container.auth_service.register(name="Again", email="new@example.com", password="secret1")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "email": "a@example.com", "password": "secret1"},
        {"name": "A", "email": "not-an-email", "password": "secret1"},
        {"name": "A", "email": "a@example.com", "password": "123"},
    ],
)
def test_register_validation(ctx, container, kwargs):
    with pytest.raises(ValidationError):
        container.auth_service.register(**kwargs)


def test_load_session_user(ctx, container, actors):
    assert container.auth_service.load_session_user(str(actors["user"].user_id)).email == "user@example.com"
    assert container.auth_service.load_session_user("abc") is None
    assert container.auth_service.load_session_user("9999") is None


def test_update_role(ctx, container, actors):
    service = container.user_service
    admin, guest = actors["admin"], actors["guest"]

    updated = service.update_role(actor=admin, user_id=guest.user_id, role="user")
    assert updated.role is Role.USER

    with pytest.raises(ValidationError):
        service.update_role(actor=admin, user_id=admin.user_id, role="user")
    with pytest.raises(ValidationError):
        service.update_role(actor=admin, user_id=guest.user_id, role="boss")
    with pytest.raises(AuthorizationError):
        service.update_role(actor=actors["manager"], user_id=guest.user_id, role="admin")


def test_delete_user(ctx, container, actors):
    service = container.user_service
    admin = actors["admin"]

    with pytest.raises(ConflictError):
        service.delete_user(actor=admin, user_id=actors["manager"].user_id)
    with pytest.raises(ValidationError):
        service.delete_user(actor=admin, user_id=admin.user_id)
    with pytest.raises(AuthorizationError):
        service.delete_user(actor=actors["user"], user_id=actors["guest"].user_id)

    service.delete_user(actor=admin, user_id=actors["guest"].user_id)
    assert container.users_repo.get_by_id(actors["guest"].user_id) is None


def test_profile_visibility(ctx, container, actors, demo_project):
    user = actors["user"]

    mine = container.user_service.get_profile(actor=user, user_id=user.user_id)
    assert [t.project_id for t in mine.teams] == [demo_project.project_id]
    assert mine.projects_created == 0

    owner = container.user_service.get_profile(actor=actors["admin"], user_id=actors["manager"].user_id)
    assert owner.projects_created == 1
    assert owner.teams[0].is_creator is True

    with pytest.raises(AuthorizationError):
        container.user_service.get_profile(actor=user, user_id=actors["manager"].user_id)


def test_update_profile(ctx, container, actors):
    user = actors["user"]

    updated = container.user_service.update_profile(actor=user, user_id=user.user_id, name=" Renamed ")
    assert updated.name == "Renamed"

    with pytest.raises(AuthorizationError):
        container.user_service.update_profile(actor=user, user_id=actors["guest"].user_id, name="Nope")
    with pytest.raises(ValidationError):
        container.user_service.update_profile(actor=user, user_id=user.user_id, password="123")
