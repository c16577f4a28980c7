"""Tests for email templates, their startup checks and dispatch tasks."""

from __future__ import annotations

from smtplib import SMTPException

import pytest
from django.core import mail

from apps.consultations import checks
from apps.consultations.emails import (
    EMAIL_TEMPLATES,
    EmailTemplate,
    EmailTemplateError,
    render_email,
    send_templated_email,
)
from apps.consultations.models import LogEntry
from apps.consultations.tasks import queue_email, send_templated_email_task


def test_render_email_substitutes_variables():
    subject, body = render_email(
        "payment_verified_registration",
        {
            "client_name": "Ada Lovelace",
            "registration_url": "https://app.applybureau.test/register?token=abc",
            "expires_at": "01 January 2030 10:00 UTC",
            "package_tier": "Tier 2",
        },
    )

    assert subject == "Payment confirmed: create your Apply Bureau account"
    assert "Hello Ada Lovelace," in body
    assert "https://app.applybureau.test/register?token=abc" in body
    assert "Tier 2 package" in body


def test_render_email_does_not_html_escape_plain_text():
    _subject, body = render_email("consultation_received", {"client_name": "O'Brien & Co"})

    assert "O'Brien & Co" in body


def test_unknown_template_is_rejected():
    with pytest.raises(EmailTemplateError):
        render_email("password_reset", {})


@pytest.mark.parametrize("value", [None, ""])
def test_missing_required_variable_is_rejected(value):
    with pytest.raises(EmailTemplateError, match="reason"):
        render_email("consultation_rejected", {"client_name": "Ada", "reason": value})


def test_send_templated_email_uses_configured_sender():
    sent = send_templated_email(
        ["ada@example.com", ""],
        "consultation_completed",
        {"client_name": "Ada Lovelace"},
    )

    assert sent == 1
    message = mail.outbox[0]
    assert message.to == ["ada@example.com"]
    assert message.from_email == "Apply Bureau <no-reply@applybureau.test>"
    assert message.subject == "Thank you for meeting with Apply Bureau"


def test_registered_templates_pass_startup_checks():
    assert checks.check_email_templates() == []
    assert checks.check_transition_templates() == []


def test_startup_check_reports_missing_template_file(monkeypatch):
    monkeypatch.setitem(
        EMAIL_TEMPLATES,
        "does_not_exist",
        EmailTemplate("does_not_exist", "Missing", ("client_name",)),
    )

    errors = checks.check_email_templates()

    assert [error.id for error in errors] == ["consultations.E001"]


def test_startup_check_reports_unreferenced_placeholder(monkeypatch):
    monkeypatch.setitem(
        EMAIL_TEMPLATES,
        "consultation_approved",
        EmailTemplate(
            "consultation_approved",
            "Approved",
            ("client_name", "meeting_link"),
        ),
    )

    errors = checks.check_email_templates()

    assert [error.id for error in errors] == ["consultations.E002"]
    assert "meeting_link" in errors[0].msg


def test_startup_check_reports_transition_without_template(monkeypatch):
    from apps.consultations import transitions

    monkeypatch.delitem(
        transitions.TRANSITION_EMAIL_TEMPLATES, ("confirmed", "completed")
    )

    errors = checks.check_transition_templates()

    assert [error.id for error in errors] == ["consultations.E003"]


@pytest.mark.django_db
def test_task_logs_and_swallows_delivery_failures(mocker):
    mocker.patch(
        "apps.consultations.tasks.send_templated_email",
        side_effect=SMTPException("relay down"),
    )

    result = send_templated_email_task.delay(
        ["ada@example.com"], "consultation_completed", {"client_name": "Ada"}, "abc"
    )

    assert result.get() is False
    entry = LogEntry.objects.get(context__action="email.error")
    assert entry.level == "ERROR"
    assert entry.context["template"] == "consultation_completed"


@pytest.mark.django_db
def test_task_reports_template_errors_as_failures():
    assert send_templated_email_task(["ada@example.com"], "consultation_completed", {}) is False
    assert mail.outbox == []


@pytest.mark.django_db
def test_queue_email_skips_blank_recipients(django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        queue_email(["", None], "consultation_completed", {"client_name": "Ada"})

    assert callbacks == []
    assert mail.outbox == []


@pytest.mark.django_db
def test_queue_email_sends_after_commit(django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        queue_email("ada@example.com", "consultation_completed", {"client_name": "Ada"})
        assert mail.outbox == []

    assert len(callbacks) == 1
    assert len(mail.outbox) == 1
