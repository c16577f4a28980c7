"""Constants and role/group mappings for the users app."""

from enum import Enum
from typing import Dict, Set


CLIENTS_GROUP_NAME = "Clients"
STAFF_GROUP_NAME = "Staff"
ADMINS_GROUP_NAME = "Admins"


class UserRole(str, Enum):
    """High-level roles recognised by the application."""

    CLIENT = "client"
    STAFF = "staff"
    ADMIN = "admin"


ROLE_GROUP_MAP: Dict[UserRole, Set[str]] = {
    UserRole.CLIENT: {CLIENTS_GROUP_NAME},
    UserRole.STAFF: {STAFF_GROUP_NAME, ADMINS_GROUP_NAME},
    UserRole.ADMIN: {ADMINS_GROUP_NAME},
}

# Roles allowed to operate on consultation requests.
STAFF_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN})
