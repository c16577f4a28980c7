"""Rate limiting keyed on the caller's role (anonymous, client or staff)."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Mapping, MutableMapping, Optional, Set

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

from apps.users.constants import ROLE_GROUP_MAP, UserRole

ANONYMOUS = "anon"

DEFAULT_ROLE_RATES = {
    ANONYMOUS: "20/min",
    UserRole.CLIENT.value: "60/min",
    UserRole.STAFF.value: "120/min",
}


@dataclass(frozen=True)
class _RateSelection:
    rate: str
    scope_key: str


class RoleBasedRateThrottle(SimpleRateThrottle):
    """Throttle requests based on the caller's effective application roles.

    Callers without a recognised role are throttled at the ``anon`` rate.
    When several roles apply, the most generous rate wins. Admins are exempt.
    """

    scope = "role"

    #: Roles that are exempt from throttling entirely.
    unlimited_roles = {UserRole.ADMIN}

    def __init__(self) -> None:
        self.role_rates = self._load_role_rates()
        self._scope_key: Optional[str] = None
        super().__init__()

    @staticmethod
    def _load_role_rates() -> Mapping[str, str]:
        config: Mapping[str, str] = (
            getattr(settings, "REST_FRAMEWORK", {}) or {}
        ).get("ROLE_BASED_THROTTLE_RATES", {})

        rates: MutableMapping[str, str] = {}
        for key, rate in config.items():
            name = key.value if isinstance(key, UserRole) else str(key).lower()
            if name == ANONYMOUS or name in UserRole._value2member_map_:
                rates[name] = rate
        return rates or dict(DEFAULT_ROLE_RATES)

    def allow_request(self, request, view):  # type: ignore[override]
        selection = self._select_rate(request)
        if selection is None:
            self.rate = None
            self.num_requests, self.duration = None, None
            self._scope_key = None
            return True

        self.rate = selection.rate
        self.num_requests, self.duration = self.parse_rate(self.rate)
        self._scope_key = selection.scope_key
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):  # type: ignore[override]
        if not self._scope_key:
            return None

        ident = self._identify_request(request)
        if ident is None:
            return None
        return self.cache_format % {
            "scope": self.scope,
            "ident": f"{self._scope_key}:{ident}",
        }

    def _select_rate(self, request) -> Optional[_RateSelection]:
        roles = self._resolve_roles(request)
        if roles & self.unlimited_roles:
            return None

        candidates = [role.value for role in roles if role.value in self.role_rates]
        if not candidates:
            rate = self.role_rates.get(ANONYMOUS)
            return _RateSelection(rate=rate, scope_key=ANONYMOUS) if rate else None

        best: Optional[_RateSelection] = None
        best_ratio: Optional[float] = None
        for name in sorted(candidates):
            rate = self.role_rates[name]
            num_requests, duration = self.parse_rate(rate)
            ratio = num_requests / duration
            if best_ratio is None or ratio > best_ratio:
                best = _RateSelection(rate=rate, scope_key=name)
                best_ratio = ratio
        return best

    def _resolve_roles(self, request) -> Set[UserRole]:
        roles: Set[UserRole] = set(getattr(request, "jwt_roles", None) or ())

        user = getattr(request, "user", None)
        if getattr(user, "is_authenticated", False):
            if getattr(user, "is_superuser", False):
                roles.update(self.unlimited_roles)
                return roles

            group_names = set(user.groups.values_list("name", flat=True))
            for role, mapped_groups in ROLE_GROUP_MAP.items():
                if group_names & mapped_groups:
                    roles.add(role)

        return roles

    def _identify_request(self, request) -> Optional[str]:
        user = getattr(request, "user", None)
        if getattr(user, "is_authenticated", False) and getattr(user, "pk", None) is not None:
            return f"user:{user.pk}"

        auth_header = request.META.get("HTTP_AUTHORIZATION")
        if auth_header:
            digest = hashlib.sha256(auth_header.encode("utf-8")).hexdigest()
            return f"token:{digest}"

        ident = self.get_ident(request)
        return f"ip:{ident}" if ident else None

    def parse_rate(self, rate):  # type: ignore[override]
        num_requests, duration = super().parse_rate(rate)
        if num_requests is None or duration is None:
            raise ValueError("Role-based throttle requires concrete rate definitions.")
        return num_requests, duration
