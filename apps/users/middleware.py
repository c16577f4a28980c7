"""Middleware for attaching JWT-derived role information to requests."""

from __future__ import annotations

from typing import Any, Set

from apps.users.constants import UserRole
from apps.users.jwt_utils import (
    JWTValidationError,
    decode_claims,
    extract_bearer_token,
    roles_from_claims,
)


class JWTAuthenticationMiddleware:
    """Decode bearer tokens and expose their roles and subject on the request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        claims = self._resolve_claims(request)
        roles: Set[UserRole] = set()
        if claims is not None:
            try:
                roles = roles_from_claims(claims)
            except JWTValidationError:
                claims = None
        request.jwt_roles = roles
        request.jwt_token_present = claims is not None
        request.jwt_subject = (claims or {}).get("email") or (claims or {}).get("sub")
        return self.get_response(request)

    def _resolve_claims(self, request) -> dict[str, Any] | None:
        token = extract_bearer_token(request.META.get("HTTP_AUTHORIZATION"))
        if not token:
            return None
        try:
            return decode_claims(token)
        except JWTValidationError:
            return None
