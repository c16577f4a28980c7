"""Intake and staff listing services for consultation requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Any, List, Mapping, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Q, QuerySet
from django.utils.dateparse import parse_date

from .exceptions import DependencyError, InvalidInputError
from .models import ConsultationRequest, ConsultationStatus
from .serializers import ConsultationIntakeSerializer
from .tasks import queue_email

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

SORT_FIELD_MAP = {
    "name": "full_name",
    "email": "email",
    "status": "status",
    "date": "created_at",
    "updated": "updated_at",
}


@dataclass(frozen=True)
class ConsultationFilters:
    """Filters applied to the staff consultation listing."""

    statuses: List[str]
    date_from: date_type | None
    date_to: date_type | None
    search: str | None
    sort: str


def flatten_errors(errors: Mapping[str, Any]) -> dict[str, list[str]]:
    flattened: dict[str, list[str]] = {}
    for field, messages in errors.items():
        if isinstance(messages, Mapping):
            for nested, nested_messages in flatten_errors(messages).items():
                flattened[f"{field}.{nested}"] = nested_messages
        elif isinstance(messages, (list, tuple)):
            collected: list[str] = []
            for index, message in enumerate(messages):
                if isinstance(message, Mapping):
                    for nested, nested_messages in flatten_errors(message).items():
                        flattened[f"{field}.{index}.{nested}"] = nested_messages
                else:
                    collected.append(str(message))
            if collected:
                flattened[field] = collected
        else:
            flattened[field] = [str(messages)]
    return flattened


def submit_consultation_request(payload: Mapping[str, Any]) -> ConsultationRequest:
    """Validate ``payload`` and persist it as a new ``lead``."""

    serializer = ConsultationIntakeSerializer(data=payload)
    if not serializer.is_valid():
        raise InvalidInputError(fields=flatten_errors(serializer.errors))

    try:
        with transaction.atomic():
            consultation = serializer.save()
            queue_email(
                consultation.email,
                "consultation_received",
                {"client_name": consultation.full_name},
                consultation_id=consultation.pk,
            )
            queue_email(
                list(getattr(settings, "STAFF_NOTIFICATION_EMAILS", ())),
                "consultation_staff_alert",
                {
                    "client_name": consultation.full_name,
                    "client_email": consultation.email,
                    "consultation_id": str(consultation.pk),
                    "phone": consultation.phone,
                    "package_interest": consultation.package_interest,
                    "message": consultation.message,
                    "preferred_slots": consultation.preferred_slots,
                },
                consultation_id=consultation.pk,
            )
    except DatabaseError as exc:
        logger.exception(
            "Failed to store consultation request for %s",
            serializer.validated_data.get("email"),
            extra={"context": {"action": "consultation.intake_error"}},
        )
        raise DependencyError() from exc

    logger.info(
        "Consultation request %s submitted",
        consultation.pk,
        extra={
            "context": {
                "action": "consultation.submitted",
                "consultation_id": str(consultation.pk),
                "slot_count": len(consultation.preferred_slots),
            }
        },
    )
    return consultation


def parse_positive_int(value: str | None, default: int) -> int:
    try:
        if value is None:
            return default
        parsed = int(value)
        return parsed if parsed > 0 else default
    except (TypeError, ValueError):
        return default


def _split_status_filter(value: str | None) -> List[str]:
    if not value:
        return []
    statuses = [item.strip().lower() for item in value.split(",")]
    return [status for status in statuses if status in ConsultationStatus.values]


def _parse_date(value: str | None) -> date_type | None:
    try:
        return parse_date(value or "")
    except ValueError:
        return None


def build_consultation_queryset(
    params,
) -> Tuple[QuerySet[ConsultationRequest], ConsultationFilters]:
    """Return the filtered queryset for the staff listing and the filters applied."""

    queryset = ConsultationRequest.objects.all()

    statuses = _split_status_filter(params.get("status"))
    if statuses:
        queryset = queryset.filter(status__in=statuses)

    date_from = _parse_date(params.get("date_from"))
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)

    date_to = _parse_date(params.get("date_to"))
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    search_query = (params.get("search") or "").strip()
    if search_query:
        queryset = queryset.filter(
            Q(full_name__icontains=search_query) | Q(email__icontains=search_query)
        )

    sort_param = (params.get("sort") or "-date").strip()
    descending = sort_param.startswith("-")
    if descending:
        sort_param = sort_param[1:]

    sort_field = SORT_FIELD_MAP.get(sort_param)
    if not sort_field:
        sort_field = "created_at"
        descending = True
        applied_sort = "-date"
    else:
        applied_sort = f"-{sort_param}" if descending else sort_param

    if descending:
        sort_field = f"-{sort_field}"

    queryset = queryset.order_by(sort_field, "-id")

    filters = ConsultationFilters(
        statuses=statuses,
        date_from=date_from,
        date_to=date_to,
        search=search_query or None,
        sort=applied_sort,
    )
    return queryset, filters
