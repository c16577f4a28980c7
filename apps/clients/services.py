"""Create client accounts for redeemed consultations."""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from apps.users.constants import CLIENTS_GROUP_NAME

from .models import Client

logger = logging.getLogger(__name__)


def _split_name(full_name: str) -> tuple[str, str]:
    first, _, last = full_name.strip().partition(" ")
    return first[:150], last.strip()[:150]


def create_client_for_consultation(consultation, password: str) -> Client:
    """Create the login user and client record; callers own the transaction."""

    UserModel = get_user_model()
    first_name, last_name = _split_name(consultation.full_name)
    user = UserModel.objects.create_user(
        username=consultation.email,
        email=consultation.email,
        password=password,
        first_name=first_name,
        last_name=last_name,
    )
    group, _ = Group.objects.get_or_create(name=CLIENTS_GROUP_NAME)
    user.groups.add(group)

    client = Client.objects.create(
        user=user,
        consultation=consultation,
        full_name=consultation.full_name,
        email=consultation.email,
        phone=consultation.phone,
    )
    logger.info(
        "Created client %s for consultation %s",
        client.pk,
        consultation.pk,
        extra={
            "context": {
                "action": "client.created",
                "client_id": client.pk,
                "consultation_id": str(consultation.pk),
            }
        },
    )
    return client
