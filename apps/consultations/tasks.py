"""Background tasks for best-effort consultation emails."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from celery import shared_task
from django.db import transaction

from .emails import send_templated_email

logger = logging.getLogger(__name__)


@shared_task(name="consultations.send_templated_email")
def send_templated_email_task(
    recipients: Sequence[str],
    template_name: str,
    variables: Mapping[str, Any],
    consultation_id: str | None = None,
) -> bool:
    """Deliver one templated email; failures are logged and reported as ``False``."""

    context = {
        "template": template_name,
        "consultation_id": consultation_id,
        "recipient_count": len(recipients),
    }
    try:
        send_templated_email(recipients, template_name, variables)
    except Exception:
        logger.exception(
            "Failed to send %s email for consultation %s",
            template_name,
            consultation_id,
            extra={"context": {"action": "email.error", **context}},
        )
        return False

    logger.info(
        "Sent %s email for consultation %s",
        template_name,
        consultation_id,
        extra={"context": {"action": "email.sent", **context}},
    )
    return True


def _enqueue(
    recipients: list[str],
    template_name: str,
    variables: dict[str, Any],
    consultation_id: str | None,
) -> None:
    try:
        send_templated_email_task.delay(
            recipients, template_name, variables, consultation_id
        )
    except Exception:
        # Broker outages must not affect the request that triggered the email.
        logger.exception(
            "Unable to queue %s email for consultation %s",
            template_name,
            consultation_id,
            extra={
                "context": {
                    "action": "email.queue_error",
                    "template": template_name,
                    "consultation_id": consultation_id,
                }
            },
        )


def queue_email(
    recipients: str | Sequence[str],
    template_name: str,
    variables: Mapping[str, Any],
    *,
    consultation_id: str | None = None,
) -> None:
    """Dispatch an email once the surrounding transaction has committed."""

    if isinstance(recipients, str):
        recipients = [recipients]
    payload = (
        [address for address in recipients if address],
        template_name,
        dict(variables),
        str(consultation_id) if consultation_id else None,
    )
    if not payload[0]:
        logger.info(
            "Skipping %s email without recipients",
            template_name,
            extra={"context": {"action": "email.skipped", "template": template_name}},
        )
        return
    transaction.on_commit(lambda: _enqueue(*payload))
