"""Tests for the role-aware request throttle."""

from __future__ import annotations

import pytest
from django.core.cache import cache
from django.urls import reverse

from apps.api.throttling import RoleBasedRateThrottle
from apps.users.constants import UserRole as Roles


@pytest.fixture
def tight_rates(settings):
    cache.clear()
    settings.REST_FRAMEWORK = {
        **settings.REST_FRAMEWORK,
        "ROLE_BASED_THROTTLE_RATES": {
            "anon": "2/min",
            "client": "3/min",
            "staff": "4/min",
        },
    }
    yield settings
    cache.clear()


def _hit(client, url, times, **extra):
    return [client.get(url, **extra).status_code for _ in range(times)]


def test_rates_fall_back_to_defaults(settings):
    settings.REST_FRAMEWORK = {"ROLE_BASED_THROTTLE_RATES": {"board": "1/min"}}

    throttle = RoleBasedRateThrottle()

    assert throttle.role_rates == {"anon": "20/min", "client": "60/min", "staff": "120/min"}


@pytest.mark.django_db
def test_anonymous_callers_use_anon_rate(api_client, tight_rates):
    url = reverse("api:consultation-validate-token", kwargs={"token": "x"})

    assert _hit(api_client, url, 3) == [400, 400, 429]


@pytest.mark.django_db
def test_staff_tokens_use_staff_rate(api_client, role_token, tight_rates):
    url = reverse("api:consultation-list")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {role_token(Roles.STAFF)}")

    assert _hit(api_client, url, 5) == [200, 200, 200, 200, 429]


@pytest.mark.django_db
def test_admin_tokens_are_not_throttled(api_client, role_token, tight_rates):
    url = reverse("api:consultation-list")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {role_token(Roles.ADMIN)}")

    assert set(_hit(api_client, url, 6)) == {200}
