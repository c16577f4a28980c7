"""Status transition engine for consultation requests."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import (
    DependencyError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from .models import ConsultationRequest, ConsultationStatus, ConsultationStatusChange
from .tasks import queue_email
from .tokens import issue_registration_token, registration_url

logger = logging.getLogger(__name__)

S = ConsultationStatus

# Statuses from which a request may still be waitlisted or rejected.
PRE_CONFIRMED = (S.LEAD, S.UNDER_REVIEW, S.APPROVED, S.PAYMENT_VERIFIED, S.SCHEDULED)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    S.LEAD: frozenset({S.UNDER_REVIEW, S.WAITLISTED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.WAITLISTED, S.REJECTED}),
    S.APPROVED: frozenset({S.PAYMENT_VERIFIED, S.WAITLISTED, S.REJECTED}),
    S.PAYMENT_VERIFIED: frozenset({S.SCHEDULED, S.WAITLISTED, S.REJECTED}),
    S.SCHEDULED: frozenset({S.CONFIRMED, S.SCHEDULED, S.WAITLISTED, S.REJECTED}),
    S.CONFIRMED: frozenset({S.COMPLETED, S.SCHEDULED}),
    S.WAITLISTED: frozenset({S.REJECTED}),
    S.REJECTED: frozenset(),
    S.COMPLETED: frozenset(),
}

TRANSITION_EMAIL_TEMPLATES: dict[tuple[str, str], str] = {
    (S.LEAD, S.UNDER_REVIEW): "profile_under_review",
    (S.UNDER_REVIEW, S.APPROVED): "consultation_approved",
    (S.APPROVED, S.PAYMENT_VERIFIED): "payment_verified_registration",
    (S.PAYMENT_VERIFIED, S.SCHEDULED): "consultation_scheduled",
    (S.SCHEDULED, S.SCHEDULED): "consultation_rescheduled",
    (S.CONFIRMED, S.SCHEDULED): "consultation_rescheduled",
    (S.SCHEDULED, S.CONFIRMED): "consultation_confirmed",
    (S.CONFIRMED, S.COMPLETED): "consultation_completed",
    (S.WAITLISTED, S.REJECTED): "consultation_rejected",
    **{(status, S.WAITLISTED): "consultation_waitlisted" for status in PRE_CONFIRMED},
    (S.LEAD, S.REJECTED): "consultation_rejected",
    (S.UNDER_REVIEW, S.REJECTED): "consultation_rejected",
    (S.APPROVED, S.REJECTED): "consultation_cancelled",
    (S.PAYMENT_VERIFIED, S.REJECTED): "consultation_cancelled",
    (S.SCHEDULED, S.REJECTED): "consultation_cancelled",
}

PAYMENT_FIELDS = ("payment_method", "payment_amount", "payment_reference")


@dataclass(frozen=True)
class Actor:
    """Who requested a transition."""

    user: Optional[Any] = None
    label: str = ""

    @classmethod
    def from_request(cls, request) -> "Actor":
        user = getattr(request, "user", None)
        if not getattr(user, "is_authenticated", False):
            user = None
        label = ""
        if user is not None:
            label = user.get_full_name() or user.get_username()
        label = label or getattr(request, "jwt_subject", None) or "staff"
        return cls(user=user, label=str(label))


def is_allowed(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(extra: Mapping[str, Any], names: tuple[str, ...]) -> None:
    missing = {name: "This field is required." for name in names if _blank(extra.get(name))}
    if missing:
        raise InvalidInputError(fields=missing)


def _check_amount(amount: Decimal) -> None:
    field = ConsultationRequest._meta.get_field("payment_amount")
    if not amount.is_finite():
        raise InvalidInputError(fields={"payment_amount": "Enter a valid amount."})
    if amount < 0:
        raise InvalidInputError(fields={"payment_amount": "Amount cannot be negative."})
    whole_digits = field.max_digits - field.decimal_places
    if amount.as_tuple().exponent < -field.decimal_places or amount >= Decimal(10) ** whole_digits:
        raise InvalidInputError(
            fields={
                "payment_amount": (
                    f"Use at most {whole_digits} digits before and "
                    f"{field.decimal_places} after the decimal point."
                )
            }
        )


def _apply_payment(consultation: ConsultationRequest, extra: Mapping[str, Any], actor: Actor) -> list[str]:
    _require(extra, PAYMENT_FIELDS)
    try:
        amount = Decimal(str(extra["payment_amount"]))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(fields={"payment_amount": "Enter a valid amount."}) from exc
    _check_amount(amount)

    consultation.payment_method = str(extra["payment_method"])
    consultation.payment_amount = amount
    consultation.payment_reference = str(extra["payment_reference"])
    consultation.payment_verified = True
    consultation.payment_verified_at = timezone.now()
    consultation.payment_verified_by = actor.label
    if not _blank(extra.get("package_tier")):
        consultation.package_tier = str(extra["package_tier"])
    issue_registration_token(consultation)
    return [
        "payment_method",
        "payment_amount",
        "payment_reference",
        "payment_verified",
        "payment_verified_at",
        "payment_verified_by",
        "package_tier",
        "registration_token",
        "token_expires_at",
        "token_used",
        "token_used_at",
    ]


def _apply_slot(consultation: ConsultationRequest, extra: Mapping[str, Any]) -> list[str]:
    _require(extra, ("selected_slot_index",))
    slots = consultation.preferred_slots or []
    try:
        index = int(extra["selected_slot_index"])
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(
            fields={"selected_slot_index": "Must be an integer."}
        ) from exc
    if not 0 <= index < len(slots):
        raise InvalidInputError(
            fields={
                "selected_slot_index": (
                    f"Must reference one of the {len(slots)} proposed time slots."
                )
            }
        )

    consultation.confirmed_slot_index = index
    consultation.confirmed_slot = dict(slots[index])
    update_fields = ["confirmed_slot_index", "confirmed_slot"]
    if not _blank(extra.get("meeting_link")):
        consultation.meeting_link = str(extra["meeting_link"])
        update_fields.append("meeting_link")
    return update_fields


def _apply_reason(consultation: ConsultationRequest, extra: Mapping[str, Any]) -> list[str]:
    _require(extra, ("reason",))
    consultation.status_reason = str(extra["reason"]).strip()
    return ["status_reason"]


def _apply_side_effects(
    consultation: ConsultationRequest,
    from_status: str,
    to_status: str,
    extra: Mapping[str, Any],
    actor: Actor,
) -> list[str]:
    if to_status == S.PAYMENT_VERIFIED:
        return _apply_payment(consultation, extra, actor)
    if to_status in (S.SCHEDULED, S.CONFIRMED):
        return _apply_slot(consultation, extra)
    if to_status in (S.WAITLISTED, S.REJECTED):
        return _apply_reason(consultation, extra)
    return []


def _email_variables(consultation: ConsultationRequest) -> dict[str, Any]:
    variables: dict[str, Any] = {
        "client_name": consultation.full_name,
        "role_targets": consultation.role_targets or "Your application",
        "reason": consultation.status_reason,
        "meeting_link": consultation.meeting_link,
        "package_tier": consultation.package_tier,
    }
    slot = consultation.confirmed_slot or {}
    variables["slot_date"] = slot.get("date", "")
    variables["slot_time"] = slot.get("time", "")
    if consultation.registration_token and not consultation.token_used:
        variables["registration_url"] = registration_url(consultation.registration_token)
        variables["expires_at"] = (
            consultation.token_expires_at.strftime("%d %B %Y %H:%M UTC")
            if consultation.token_expires_at
            else ""
        )
    return variables


def notify_transition(consultation: ConsultationRequest, from_status: str, to_status: str) -> None:
    """Queue the single email selected by the ``(from, to)`` pair."""

    template_name = TRANSITION_EMAIL_TEMPLATES.get((from_status, to_status))
    if template_name is None:
        logger.warning(
            "No email template for %s -> %s",
            from_status,
            to_status,
            extra={"context": {"action": "transition.no_template"}},
        )
        return
    queue_email(
        consultation.email,
        template_name,
        _email_variables(consultation),
        consultation_id=consultation.pk,
    )


def _load_for_update(request_id) -> ConsultationRequest:
    try:
        return ConsultationRequest.objects.select_for_update().get(pk=request_id)
    except (ConsultationRequest.DoesNotExist, ValidationError, ValueError) as exc:
        raise NotFoundError() from exc


def transition(
    request_id,
    target_status: str,
    actor: Actor | None = None,
    extra_fields: Mapping[str, Any] | None = None,
) -> ConsultationRequest:
    """Move a consultation to ``target_status`` and apply the matching side effects."""

    actor = actor or Actor(label="system")
    extra = dict(extra_fields or {})

    try:
        with transaction.atomic():
            consultation = _load_for_update(request_id)
            from_status = consultation.status
            if target_status not in S.values or not is_allowed(from_status, target_status):
                raise InvalidTransitionError(from_status, str(target_status))

            update_fields = _apply_side_effects(
                consultation, from_status, target_status, extra, actor
            )
            if not _blank(extra.get("admin_notes")):
                consultation.admin_notes = str(extra["admin_notes"])
                update_fields.append("admin_notes")

            consultation.status = target_status
            consultation.save(update_fields=[*update_fields, "status", "updated_at"])
            ConsultationStatusChange.objects.create(
                consultation=consultation,
                from_status=from_status,
                to_status=target_status,
                actor=actor.user,
                actor_label=actor.label,
                notes=(
                    consultation.status_reason
                    if target_status in (S.WAITLISTED, S.REJECTED)
                    else str(extra.get("admin_notes") or "")
                ),
            )
            notify_transition(consultation, from_status, target_status)
    except DatabaseError as exc:
        logger.exception(
            "Status change to %s failed for consultation %s",
            target_status,
            request_id,
            extra={
                "context": {
                    "action": "transition.error",
                    "consultation_id": str(request_id),
                    "to_status": str(target_status),
                }
            },
        )
        raise DependencyError() from exc

    logger.info(
        "Consultation %s moved from %s to %s",
        consultation.pk,
        from_status,
        target_status,
        extra={
            "context": {
                "action": "transition.applied",
                "consultation_id": str(consultation.pk),
                "from_status": from_status,
                "to_status": target_status,
                "actor": actor.label,
            }
        },
    )
    return consultation
