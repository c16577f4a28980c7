"""Tests for registration token issuance, verification and redemption."""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest
from django.contrib.auth import get_user_model
from django.core import mail
from django.utils import timezone

from apps.clients.models import Client
from apps.consultations.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenInvalidError,
)
from apps.consultations.models import ConsultationStatus
from apps.consultations.tokens import (
    issue_registration_token,
    redeem_registration_token,
    verify_registration_token,
)
from apps.consultations.transitions import transition
from apps.users.constants import CLIENTS_GROUP_NAME
from apps.users.jwt_utils import decode_claims


@pytest.fixture
def paid_consultation(consultation_factory, advance_to):
    return advance_to(consultation_factory(), ConsultationStatus.PAYMENT_VERIFIED)


@pytest.mark.django_db
def test_token_binds_consultation_and_email(paid_consultation):
    claims = decode_claims(paid_consultation.registration_token)

    assert claims["type"] == "registration"
    assert claims["consultation_id"] == str(paid_consultation.pk)
    assert claims["email"] == "ada@example.com"
    assert claims["exp"] > claims["iat"]


@pytest.mark.django_db
def test_token_is_issued_only_once(paid_consultation):
    with pytest.raises(InvalidTransitionError):
        issue_registration_token(paid_consultation)


@pytest.mark.django_db
def test_token_verifies_before_expiry_without_being_consumed(paid_consultation):
    token = paid_consultation.registration_token

    assert verify_registration_token(token).pk == paid_consultation.pk
    assert verify_registration_token(token).pk == paid_consultation.pk

    paid_consultation.refresh_from_db()
    assert paid_consultation.token_used is False


@pytest.mark.django_db
def test_token_issued_with_elapsed_lifetime_is_expired(
    settings, consultation_factory, advance_to
):
    settings.REGISTRATION_TOKEN_TTL_SECONDS = -60
    consultation = advance_to(consultation_factory(), ConsultationStatus.PAYMENT_VERIFIED)

    with pytest.raises(TokenExpiredError):
        verify_registration_token(consultation.registration_token)


@pytest.mark.django_db
def test_token_fails_after_stored_expiry(paid_consultation, mocker):
    later = paid_consultation.token_expires_at + timedelta(seconds=1)
    mocker.patch("apps.consultations.tokens.timezone.now", return_value=later)

    with pytest.raises(TokenExpiredError):
        verify_registration_token(paid_consultation.registration_token)


@pytest.mark.django_db
def test_token_signed_with_another_secret_is_invalid(paid_consultation):
    claims = decode_claims(paid_consultation.registration_token)
    forged = jwt.encode(claims, "not-the-secret", algorithm="HS256")

    with pytest.raises(TokenInvalidError):
        verify_registration_token(forged)


@pytest.mark.django_db
@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens_are_invalid(token):
    with pytest.raises(TokenInvalidError):
        verify_registration_token(token)


@pytest.mark.django_db
def test_token_for_a_different_consultation_is_invalid(
    paid_consultation, consultation_factory, advance_to
):
    other = advance_to(
        consultation_factory(email="babbage@example.com"),
        ConsultationStatus.PAYMENT_VERIFIED,
    )
    claims = decode_claims(other.registration_token)
    claims["consultation_id"] = str(paid_consultation.pk)
    swapped = jwt.encode(claims, "test-jwt-secret", algorithm="HS256")

    with pytest.raises(TokenInvalidError):
        verify_registration_token(swapped)


@pytest.mark.django_db
def test_token_is_invalid_once_consultation_is_rejected(paid_consultation):
    transition(
        paid_consultation.pk,
        ConsultationStatus.REJECTED,
        extra_fields={"reason": "Refunded"},
    )

    with pytest.raises(TokenInvalidError):
        verify_registration_token(paid_consultation.registration_token)


@pytest.mark.django_db
def test_waitlisted_consultation_cannot_redeem_token(paid_consultation):
    transition(
        paid_consultation.pk,
        ConsultationStatus.WAITLISTED,
        extra_fields={"reason": "Coach unavailable"},
    )

    with pytest.raises(TokenInvalidError):
        redeem_registration_token(paid_consultation.registration_token, "Secr3t!")

    paid_consultation.refresh_from_db()
    assert paid_consultation.token_used is False
    assert Client.objects.count() == 0


@pytest.mark.django_db
def test_redeem_creates_client_and_marks_token_used(
    paid_consultation, django_capture_on_commit_callbacks
):
    mail.outbox.clear()

    with django_capture_on_commit_callbacks(execute=True):
        redemption = redeem_registration_token(
            paid_consultation.registration_token, "Secr3t!"
        )

    client = redemption.client
    assert client.email == "ada@example.com"
    assert client.consultation_id == paid_consultation.pk
    assert client.user.check_password("Secr3t!")
    assert client.user.groups.filter(name=CLIENTS_GROUP_NAME).exists()

    paid_consultation.refresh_from_db()
    assert paid_consultation.token_used is True
    assert paid_consultation.token_used_at is not None

    claims = decode_claims(redemption.access_token)
    assert claims["roles"] == ["client"]
    assert claims["email"] == "ada@example.com"

    assert [message.subject for message in mail.outbox] == ["Welcome to Apply Bureau"]


@pytest.mark.django_db
def test_second_redemption_fails_and_creates_one_client(paid_consultation):
    token = paid_consultation.registration_token
    redeem_registration_token(token, "Secr3t!")

    with pytest.raises(TokenAlreadyUsedError):
        redeem_registration_token(token, "An0ther-pass")

    assert Client.objects.count() == 1
    assert get_user_model().objects.filter(email="ada@example.com").count() == 1


@pytest.mark.django_db
def test_concurrent_redemption_loses_the_conditional_update(paid_consultation, mocker):
    token = paid_consultation.registration_token
    # Both callers pass verification before either writes.
    stale = verify_registration_token(token)
    redeem_registration_token(token, "Secr3t!")
    mocker.patch(
        "apps.consultations.tokens.verify_registration_token", return_value=stale
    )

    with pytest.raises(TokenAlreadyUsedError):
        redeem_registration_token(token, "Secr3t!")

    assert Client.objects.count() == 1


@pytest.mark.django_db
def test_weak_password_is_rejected_without_consuming_token(paid_consultation):
    with pytest.raises(InvalidInputError) as excinfo:
        redeem_registration_token(paid_consultation.registration_token, "12345")

    assert "password" in excinfo.value.fields
    paid_consultation.refresh_from_db()
    assert paid_consultation.token_used is False
    assert Client.objects.count() == 0


@pytest.mark.django_db
def test_existing_account_rolls_back_redemption(paid_consultation):
    get_user_model().objects.create_user(
        username="ada@example.com", email="ada@example.com", password="whatever-123"
    )

    with pytest.raises(InvalidInputError) as excinfo:
        redeem_registration_token(paid_consultation.registration_token, "Secr3t!")

    assert "email" in excinfo.value.fields
    paid_consultation.refresh_from_db()
    assert paid_consultation.token_used is False
    assert timezone.now() < paid_consultation.token_expires_at
