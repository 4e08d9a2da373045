from __future__ import annotations

from typing import Union

from ..core.enums import Permission, Role
from .matrix import CATEGORY_KEYWORDS, ROLE_INFO, ROLE_PERMISSIONS
from .model import PermissionInfo, RoleInfo

RoleLike = Union[Role, str, None]
PermissionLike = Union[Permission, str]


def _role(value: RoleLike) -> Role | None:
    if isinstance(value, Role):
        return value
    return Role.parse(value)


def _permission(value: PermissionLike) -> Permission | None:
    if isinstance(value, Permission):
        return value
    try:
        return Permission(str(value).strip().lower())
    except ValueError:
        return None


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    """Admin always passes; unknown roles never do."""
    r = _role(role)
    if r is None:
        return False
    if r == Role.ADMIN:
        return True
    p = _permission(permission)
    if p is None:
        return False
    return p in ROLE_PERMISSIONS.get(r, frozenset())


def permissions_for_role(role: RoleLike) -> list[Permission]:
    r = _role(role)
    if r is None:
        return []
    granted = ROLE_PERMISSIONS.get(r, frozenset())
    return [p for p in Permission if p in granted]


def roles_with_permission(permission: PermissionLike) -> list[Role]:
    return [r for r in Role if has_permission(r, permission)]


def permission_category(permission: Permission) -> str:
    key = permission.name
    for keywords, category in CATEGORY_KEYWORDS:
        if any(k in key for k in keywords):
            return category
    return "General"


def describe_permission(permission: Permission) -> PermissionInfo:
    words = permission.value.split("_")
    return PermissionInfo(
        id=permission.value,
        name=" ".join(w.capitalize() for w in words),
        description=f"Permission to {' '.join(words)}",
        category=permission_category(permission),
    )


def all_permissions() -> list[PermissionInfo]:
    return [describe_permission(p) for p in Permission]


def all_roles() -> list[RoleInfo]:
    return [ROLE_INFO[r] for r in Role]


def permission_matrix() -> dict[str, dict[str, bool]]:
    return {r.value: {p.value: has_permission(r, p) for p in Permission} for r in Role}
