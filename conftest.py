import os
from datetime import timedelta

import pytest


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.test")

import django  # noqa: E402

django.setup()


from django.contrib.auth import get_user_model  # noqa: E402
from django.contrib.auth.models import Group  # noqa: E402
from rest_framework.test import APIClient  # noqa: E402

from apps.consultations.models import ConsultationRequest  # noqa: E402
from apps.users.constants import (  # noqa: E402
    ADMINS_GROUP_NAME,
    ROLE_GROUP_MAP,
    UserRole as Roles,
)
from apps.users.jwt_utils import encode_token  # noqa: E402


User = get_user_model()


@pytest.fixture
def user_factory(db):
    def create_user(username="testuser", role=Roles.CLIENT):
        user = User.objects.create_user(
            username=username,
            email=f"{username}@example.com",
            password="password123",
        )

        for group_name in ROLE_GROUP_MAP.get(role, set()):
            if role == Roles.STAFF and group_name == ADMINS_GROUP_NAME:
                continue
            group, _ = Group.objects.get_or_create(name=group_name)
            user.groups.add(group)

        return user

    return create_user


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def role_token():
    def build(*roles, email="staff@applybureau.test"):
        return encode_token(
            {
                "sub": email,
                "email": email,
                "roles": [role.value for role in roles],
            },
            ttl=timedelta(hours=1),
        )

    return build


@pytest.fixture
def staff_client(db, role_token) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {role_token(Roles.STAFF)}")
    return client


@pytest.fixture
def consultation_factory(db):
    def create(**overrides):
        defaults = {
            "full_name": "Ada Lovelace",
            "email": "ada@example.com",
            "role_targets": "Analytical Engine Programmer",
            "message": "I would like help with my job search.",
            "preferred_slots": [
                {"date": "2030-01-15", "time": "10:00"},
                {"date": "2030-01-16", "time": "14:30"},
            ],
        }
        defaults.update(overrides)
        return ConsultationRequest.objects.create(**defaults)

    return create


STATUS_PATHS = {
    "lead": [],
    "under_review": ["under_review"],
    "approved": ["under_review", "approved"],
    "payment_verified": ["under_review", "approved", "payment_verified"],
    "scheduled": ["under_review", "approved", "payment_verified", "scheduled"],
    "confirmed": ["under_review", "approved", "payment_verified", "scheduled", "confirmed"],
    "completed": [
        "under_review",
        "approved",
        "payment_verified",
        "scheduled",
        "confirmed",
        "completed",
    ],
    "waitlisted": ["waitlisted"],
    "rejected": ["rejected"],
}

TRANSITION_EXTRAS = {
    "payment_verified": {
        "payment_method": "card",
        "payment_amount": 500,
        "payment_reference": "R-1",
    },
    "scheduled": {"selected_slot_index": 0},
    "confirmed": {"selected_slot_index": 0},
    "waitlisted": {"reason": "Fully booked this month"},
    "rejected": {"reason": "not a fit"},
}


@pytest.fixture
def advance_to():
    """Drive a consultation through the transition engine to ``status``."""

    from apps.consultations.transitions import transition

    def advance(consultation, status):
        for step in STATUS_PATHS[status]:
            consultation = transition(
                consultation.pk, step, extra_fields=TRANSITION_EXTRAS.get(step)
            )
        return consultation

    return advance
