"""Persistence and staff notification for contact form submissions."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.consultations.exceptions import DependencyError, InvalidInputError
from apps.consultations.services import flatten_errors
from apps.consultations.tasks import queue_email

from .models import ContactSubmission
from .serializers import ContactSubmissionSerializer

logger = logging.getLogger(__name__)


def submit_contact_form(payload: Mapping[str, Any]) -> ContactSubmission:
    serializer = ContactSubmissionSerializer(data=payload)
    if not serializer.is_valid():
        raise InvalidInputError(fields=flatten_errors(serializer.errors))

    try:
        with transaction.atomic():
            submission = serializer.save()
            queue_email(
                list(getattr(settings, "STAFF_NOTIFICATION_EMAILS", ())),
                "contact_staff_alert",
                {
                    "name": submission.name,
                    "email": submission.email,
                    "subject": submission.subject,
                    "message": submission.message,
                },
            )
    except DatabaseError as exc:
        logger.exception(
            "Failed to store contact submission",
            extra={"context": {"action": "contact.error"}},
        )
        raise DependencyError() from exc

    logger.info(
        "Contact submission %s received",
        submission.pk,
        extra={"context": {"action": "contact.submitted", "submission_id": submission.pk}},
    )
    return submission
