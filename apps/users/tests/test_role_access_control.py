"""Tests for role resolution from groups and bearer tokens."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse
from django.test import RequestFactory

from apps.users.constants import STAFF_ROLES, UserRole as Roles
from apps.users.middleware import JWTAuthenticationMiddleware
from apps.users.permissions import request_has_any_role, user_has_any_role, user_has_role


def _run_middleware(authorization=None):
    factory = RequestFactory()
    extra = {"HTTP_AUTHORIZATION": authorization} if authorization else {}
    request = factory.get("/", **extra)
    request.user = AnonymousUser()
    JWTAuthenticationMiddleware(lambda req: HttpResponse())(request)
    return request


@pytest.mark.django_db
def test_group_membership_maps_to_roles(user_factory):
    staff = user_factory(username="coach", role=Roles.STAFF)
    client = user_factory(username="client", role=Roles.CLIENT)

    assert user_has_role(staff, Roles.STAFF)
    assert not user_has_role(staff, Roles.ADMIN)
    assert user_has_role(client, "client")
    assert not user_has_any_role(client, STAFF_ROLES)


@pytest.mark.django_db
def test_admin_group_implies_staff(user_factory):
    admin = user_factory(username="boss", role=Roles.ADMIN)

    assert user_has_role(admin, Roles.STAFF)
    assert user_has_role(admin, Roles.ADMIN)


@pytest.mark.django_db
def test_superuser_has_every_role():
    superuser = get_user_model().objects.create_superuser(
        username="root", email="root@example.com", password="password123"
    )

    assert user_has_role(superuser, Roles.CLIENT)
    assert user_has_role(superuser, Roles.ADMIN)


def test_anonymous_user_has_no_roles():
    assert not user_has_role(AnonymousUser(), Roles.STAFF)


def test_unknown_role_names_raise():
    with pytest.raises(KeyError):
        user_has_role(type("U", (), {"is_authenticated": True})(), "board")


def test_middleware_exposes_token_roles_and_subject(role_token):
    request = _run_middleware(f"Bearer {role_token(Roles.STAFF, email='grace@example.com')}")

    assert request.jwt_roles == {Roles.STAFF}
    assert request.jwt_token_present is True
    assert request.jwt_subject == "grace@example.com"
    assert request_has_any_role(request, STAFF_ROLES)


@pytest.mark.parametrize("authorization", [None, "Bearer not-a-jwt", "Token abc"])
def test_middleware_ignores_missing_or_invalid_tokens(authorization):
    request = _run_middleware(authorization)

    assert request.jwt_roles == set()
    assert request.jwt_token_present is False
    assert request.jwt_subject is None
    assert not request_has_any_role(request, STAFF_ROLES)
