"""DRF permission classes aligned with the application's role model."""

from __future__ import annotations

from typing import FrozenSet

from rest_framework.permissions import BasePermission

from apps.users.constants import STAFF_ROLES, UserRole
from apps.users.permissions import request_has_any_role


class _RolePermission(BasePermission):
    """Grant access when the bearer token or session user holds one of ``roles``."""

    roles: FrozenSet[UserRole] = frozenset()
    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):  # type: ignore[override]
        return request_has_any_role(request, self.roles)


class IsStaffUserRole(_RolePermission):
    """Allow access to staff members and admins."""

    roles = STAFF_ROLES

