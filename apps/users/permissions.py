"""Helpers for working with user roles and permissions."""

from __future__ import annotations

from typing import Iterable, Union

from .constants import ROLE_GROUP_MAP, UserRole


RoleLike = Union[UserRole, str]


def _normalise_role(role: RoleLike) -> UserRole:
    if isinstance(role, UserRole):
        return role

    if isinstance(role, str):
        try:
            return UserRole(role.lower())
        except ValueError as exc:
            raise KeyError(f"Unknown role: {role}") from exc

    raise TypeError(f"Role must be a UserRole or string, got {type(role)!r}")


def user_has_role(user, role: RoleLike) -> bool:
    """Return ``True`` if the user belongs to any group mapped to ``role``."""

    if not getattr(user, "is_authenticated", False):
        return False

    if getattr(user, "is_superuser", False):
        return True

    normalised_role = _normalise_role(role)
    role_groups = ROLE_GROUP_MAP.get(normalised_role, set())
    if not role_groups:
        return False

    return user.groups.filter(name__in=role_groups).exists()


def user_has_any_role(user, roles: Iterable[RoleLike]) -> bool:
    """Return ``True`` if the user matches any of the provided roles."""

    return any(user_has_role(user, role) for role in roles)


def request_has_any_role(request, roles: Iterable[RoleLike]) -> bool:
    """Check bearer token roles first, then the session user's groups."""

    wanted = {_normalise_role(role) for role in roles}
    token_roles = getattr(request, "jwt_roles", None) or set()
    if token_roles & wanted:
        return True
    return user_has_any_role(getattr(request, "user", None), wanted)
