"""Utilities for issuing, decoding and validating JWT bearer tokens."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence, Set

import jwt
from django.conf import settings
from django.utils import timezone
from jwt import InvalidTokenError

from apps.users.constants import UserRole


class JWTValidationError(Exception):
    """Raised when a JWT token cannot be decoded or validated."""


def _normalise_algorithms(value: Iterable[str] | str | None) -> Sequence[str]:
    if not value:
        return ("HS256",)

    if isinstance(value, str):
        return (value,)

    return tuple(value)


def jwt_secret() -> str:
    return getattr(settings, "JWT_AUTH_SECRET", None) or settings.SECRET_KEY


def jwt_algorithms() -> Sequence[str]:
    return _normalise_algorithms(
        getattr(settings, "JWT_AUTH_ALGORITHMS", None)
        or getattr(settings, "JWT_AUTH_ALGORITHM", None)
    )


def encode_token(
    claims: Mapping[str, Any],
    *,
    ttl: timedelta,
    issued_at: datetime | None = None,
) -> str:
    """Sign ``claims`` with the configured secret, adding ``iat`` and ``exp``."""

    issued_at = issued_at or timezone.now()
    payload = {
        **claims,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(
        payload,
        jwt_secret(),
        algorithm=getattr(settings, "JWT_AUTH_ALGORITHM", None) or "HS256",
    )


def issue_access_token(user, roles: Iterable[UserRole]) -> str:
    """Return a session token for ``user`` carrying ``roles``."""

    ttl = timedelta(seconds=getattr(settings, "CLIENT_SESSION_TTL_SECONDS", 86400))
    return encode_token(
        {
            "sub": str(user.pk),
            "email": user.email,
            "roles": sorted(role.value for role in roles),
        },
        ttl=ttl,
    )


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the JWT token from a standard ``Authorization`` header."""

    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2:
        return None

    prefix, token = parts
    if prefix.lower() != "bearer" or not token:
        return None

    return token


def decode_claims(token: str) -> dict[str, Any]:
    """Decode ``token`` and return its verified claims."""

    if not token:
        raise JWTValidationError("Bearer token is missing.")

    try:
        return jwt.decode(
            token,
            jwt_secret(),
            algorithms=list(jwt_algorithms()),
            options={"verify_aud": False},
        )
    except InvalidTokenError as exc:
        raise JWTValidationError("Invalid JWT token") from exc


def roles_from_claims(payload: Mapping[str, Any]) -> Set[UserRole]:
    """Return the declared ``roles`` claim as :class:`UserRole` members."""

    raw_roles = payload.get("roles")
    if raw_roles is None:
        return set()

    if isinstance(raw_roles, (list, tuple, set)):
        role_values = raw_roles
    else:
        role_values = [raw_roles]

    roles: Set[UserRole] = set()
    for role in role_values:
        if not isinstance(role, str):
            raise JWTValidationError("Roles claim must contain strings.")
        try:
            roles.add(UserRole(role.lower()))
        except ValueError as exc:
            raise JWTValidationError(f"Unknown role: {role}") from exc

    return roles


def decode_roles(token: str) -> Set[UserRole]:
    """Decode ``token`` and return the declared roles as :class:`UserRole`."""

    return roles_from_claims(decode_claims(token))
