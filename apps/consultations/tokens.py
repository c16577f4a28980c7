"""Registration token issuance, verification and single-use redemption."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.crypto import constant_time_compare

from apps.clients.services import create_client_for_consultation
from apps.users.constants import UserRole
from apps.users.jwt_utils import (
    encode_token,
    issue_access_token,
    jwt_algorithms,
    jwt_secret,
)

from .exceptions import (
    DependencyError,
    InvalidInputError,
    InvalidTransitionError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenInvalidError,
)
from .models import ConsultationRequest, ConsultationStatus
from .tasks import queue_email

logger = logging.getLogger(__name__)

REGISTRATION_TOKEN_TYPE = "registration"


@dataclass(frozen=True)
class Redemption:
    client: object
    access_token: str


def registration_token_ttl() -> timedelta:
    return timedelta(seconds=settings.REGISTRATION_TOKEN_TTL_SECONDS)


def registration_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/register?token={token}"


def issue_registration_token(consultation: ConsultationRequest) -> str:
    """Mint the registration token and store it on ``consultation`` (unsaved)."""

    if consultation.registration_token:
        raise InvalidTransitionError(
            consultation.status,
            ConsultationStatus.PAYMENT_VERIFIED,
            "A registration token has already been issued for this consultation.",
        )

    issued_at = timezone.now().replace(microsecond=0)
    ttl = registration_token_ttl()
    token = encode_token(
        {
            "type": REGISTRATION_TOKEN_TYPE,
            "consultation_id": str(consultation.pk),
            "email": consultation.email,
        },
        ttl=ttl,
        issued_at=issued_at,
    )
    consultation.registration_token = token
    consultation.token_expires_at = issued_at + ttl
    consultation.token_used = False
    consultation.token_used_at = None
    return token


def _decode(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            jwt_secret(),
            algorithms=list(jwt_algorithms()),
            options={"require": ["exp"], "verify_aud": False},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError() from exc


def verify_registration_token(token: str) -> ConsultationRequest:
    """Return the consultation ``token`` can currently redeem, without consuming it."""

    if not token:
        raise TokenInvalidError()

    claims = _decode(token)
    if claims.get("type") != REGISTRATION_TOKEN_TYPE:
        raise TokenInvalidError()

    try:
        consultation = ConsultationRequest.objects.filter(
            pk=claims.get("consultation_id")
        ).first()
    except (ValidationError, ValueError) as exc:
        raise TokenInvalidError() from exc

    if consultation is None or not constant_time_compare(
        consultation.registration_token, token
    ):
        raise TokenInvalidError()
    if consultation.email.lower() != str(claims.get("email", "")).lower():
        raise TokenInvalidError()
    if not consultation.payment_verified or consultation.status in (
        ConsultationStatus.WAITLISTED,
        ConsultationStatus.REJECTED,
    ):
        raise TokenInvalidError()
    if consultation.token_used:
        raise TokenAlreadyUsedError()
    if consultation.token_expires_at and consultation.token_expires_at <= timezone.now():
        raise TokenExpiredError()
    return consultation


def _validate_password(password: str, consultation: ConsultationRequest) -> None:
    UserModel = get_user_model()
    candidate = UserModel(username=consultation.email, email=consultation.email)
    try:
        password_validation.validate_password(password, user=candidate)
    except ValidationError as exc:
        raise InvalidInputError(fields={"password": exc.messages}) from exc


def redeem_registration_token(token: str, password: str) -> Redemption:
    """Consume ``token`` exactly once and create the client account."""

    consultation = verify_registration_token(token)
    _validate_password(password, consultation)

    now = timezone.now()
    try:
        with transaction.atomic():
            # Conditional update: only one concurrent caller can flip the flag.
            claimed = ConsultationRequest.objects.filter(
                pk=consultation.pk,
                registration_token=token,
                token_used=False,
            ).update(token_used=True, token_used_at=now, updated_at=now)
            if claimed != 1:
                raise TokenAlreadyUsedError()

            client = create_client_for_consultation(consultation, password)
    except IntegrityError as exc:
        logger.warning(
            "Registration for consultation %s collided with an existing account",
            consultation.pk,
            extra={
                "context": {
                    "action": "registration.duplicate_account",
                    "consultation_id": str(consultation.pk),
                }
            },
        )
        raise InvalidInputError(
            fields={"email": "An account already exists for this email address."}
        ) from exc
    except DatabaseError as exc:
        logger.exception(
            "Registration for consultation %s failed",
            consultation.pk,
            extra={
                "context": {
                    "action": "registration.error",
                    "consultation_id": str(consultation.pk),
                }
            },
        )
        raise DependencyError() from exc

    logger.info(
        "Registration token redeemed for consultation %s",
        consultation.pk,
        extra={
            "context": {
                "action": "registration.redeemed",
                "consultation_id": str(consultation.pk),
                "client_id": client.pk,
            }
        },
    )
    queue_email(
        client.email,
        "client_welcome",
        {
            "client_name": client.full_name,
            "login_url": f"{settings.FRONTEND_URL}/login",
        },
        consultation_id=consultation.pk,
    )
    return Redemption(
        client=client,
        access_token=issue_access_token(client.user, {UserRole.CLIENT}),
    )
