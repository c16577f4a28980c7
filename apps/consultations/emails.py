"""Named email templates and the dispatcher that renders them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string


class EmailTemplateError(Exception):
    """Raised for unknown templates or missing template variables."""


@dataclass(frozen=True)
class EmailTemplate:
    name: str
    subject: str
    required: Sequence[str]

    @property
    def path(self) -> str:
        return f"consultations/emails/{self.name}.txt"


_TEMPLATES = (
    EmailTemplate(
        "consultation_received",
        "We received your consultation request",
        ("client_name",),
    ),
    EmailTemplate(
        "consultation_staff_alert",
        "New consultation request",
        ("client_name", "client_email", "consultation_id"),
    ),
    EmailTemplate(
        "profile_under_review",
        "Your profile is under review",
        ("client_name", "role_targets"),
    ),
    EmailTemplate(
        "consultation_approved",
        "Your consultation request has been approved",
        ("client_name",),
    ),
    EmailTemplate(
        "payment_verified_registration",
        "Payment confirmed: create your Apply Bureau account",
        ("client_name", "registration_url", "expires_at"),
    ),
    EmailTemplate(
        "consultation_scheduled",
        "Your consultation has been scheduled",
        ("client_name", "slot_date", "slot_time"),
    ),
    EmailTemplate(
        "consultation_rescheduled",
        "Your consultation has been rescheduled",
        ("client_name", "slot_date", "slot_time"),
    ),
    EmailTemplate(
        "consultation_confirmed",
        "Your consultation is confirmed",
        ("client_name", "slot_date", "slot_time"),
    ),
    EmailTemplate(
        "consultation_completed",
        "Thank you for meeting with Apply Bureau",
        ("client_name",),
    ),
    EmailTemplate(
        "consultation_waitlisted",
        "Update on your consultation request",
        ("client_name", "reason"),
    ),
    EmailTemplate(
        "consultation_rejected",
        "Update on your consultation request",
        ("client_name", "reason"),
    ),
    EmailTemplate(
        "consultation_cancelled",
        "Your consultation has been cancelled",
        ("client_name", "reason"),
    ),
    EmailTemplate(
        "client_welcome",
        "Welcome to Apply Bureau",
        ("client_name", "login_url"),
    ),
    EmailTemplate(
        "contact_staff_alert",
        "New contact form submission",
        ("name", "email", "subject", "message"),
    ),
)

EMAIL_TEMPLATES: dict[str, EmailTemplate] = {template.name: template for template in _TEMPLATES}


def _default_from_email() -> str:
    return getattr(settings, "DEFAULT_FROM_EMAIL", None) or "no-reply@example.com"


def get_template(name: str) -> EmailTemplate:
    try:
        return EMAIL_TEMPLATES[name]
    except KeyError as exc:
        raise EmailTemplateError(f"Unknown email template: {name}") from exc


def render_email(name: str, variables: Mapping[str, Any]) -> tuple[str, str]:
    """Return ``(subject, body)`` for ``name`` rendered with ``variables``."""

    template = get_template(name)
    missing = [key for key in template.required if variables.get(key) in (None, "")]
    if missing:
        raise EmailTemplateError(
            f"Template {name} is missing variables: {', '.join(missing)}"
        )

    body = render_to_string(template.path, dict(variables))
    return template.subject, body.strip() + "\n"


def send_templated_email(
    recipients: str | Sequence[str],
    template_name: str,
    variables: Mapping[str, Any],
) -> int:
    """Render ``template_name`` and deliver it to ``recipients``."""

    if isinstance(recipients, str):
        recipients = [recipients]
    recipients = [address for address in recipients if address]
    if not recipients:
        return 0

    subject, body = render_email(template_name, variables)
    email = EmailMessage(
        subject=subject,
        body=body,
        from_email=_default_from_email(),
        to=list(recipients),
    )
    return email.send(fail_silently=False)
