"""DRF views providing the public and staff API surface."""

from __future__ import annotations

from django.core.paginator import Paginator
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.permissions import IsStaffUserRole
from apps.api.serializers import (
    ConsultationCreatedSerializer,
    ConsultationDetailSerializer,
    ConsultationListSerializer,
    RegistrationResultSerializer,
    StatusChangeSerializer,
    TokenValidationSerializer,
)
from apps.api.throttling import RoleBasedRateThrottle
from apps.consultations.exceptions import (
    InvalidInputError,
    NotFoundError,
    RegistrationTokenError,
)
from apps.consultations.models import ConsultationRequest
from apps.consultations.serializers import RegistrationSerializer, TransitionSerializer
from apps.consultations.services import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    build_consultation_queryset,
    flatten_errors,
    parse_positive_int,
    submit_consultation_request,
)
from apps.consultations.tokens import redeem_registration_token, verify_registration_token
from apps.consultations.transitions import Actor, transition
from apps.contact.serializers import ContactSubmissionSerializer
from apps.contact.services import submit_contact_form
from backend.health import database_status


def _get_consultation(pk) -> ConsultationRequest:
    try:
        return ConsultationRequest.objects.get(pk=pk)
    except ConsultationRequest.DoesNotExist as exc:
        raise NotFoundError() from exc


class HealthSummaryView(APIView):
    """Report process and database health."""

    permission_classes = [permissions.AllowAny]
    throttle_classes = []

    def get(self, request, *args, **kwargs):  # type: ignore[override]
        database = database_status()
        payload = {
            "status": "ok" if database != "unavailable" else "degraded",
            "timestamp": timezone.now().isoformat(),
            "database": database,
        }
        return Response(payload)


class ConsultationListCreateView(APIView):
    """Public intake (``POST``) and the staff listing (``GET``)."""

    throttle_classes = [RoleBasedRateThrottle]

    def get_permissions(self):
        if self.request.method == "POST":
            return [permissions.AllowAny()]
        return [IsStaffUserRole()]

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        consultation = submit_consultation_request(request.data)
        return Response(
            ConsultationCreatedSerializer(consultation).data,
            status=status.HTTP_201_CREATED,
        )

    def get(self, request, *args, **kwargs):  # type: ignore[override]
        queryset, filters = build_consultation_queryset(request.query_params)

        page = parse_positive_int(request.query_params.get("page"), 1)
        page_size = min(
            parse_positive_int(request.query_params.get("page_size"), DEFAULT_PAGE_SIZE),
            MAX_PAGE_SIZE,
        )
        page_obj = Paginator(queryset, page_size).get_page(page)

        payload = {
            "results": list(page_obj.object_list),
            "pagination": {
                "page": page_obj.number,
                "page_size": page_obj.paginator.per_page,
                "total_pages": page_obj.paginator.num_pages,
                "total_results": page_obj.paginator.count,
                "has_next": page_obj.has_next(),
                "has_previous": page_obj.has_previous(),
            },
            "applied_filters": filters,
        }
        return Response(ConsultationListSerializer(payload).data)


class ConsultationDetailView(APIView):
    """Fetch a request or apply a status transition to it."""

    permission_classes = [IsStaffUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, pk, *args, **kwargs):  # type: ignore[override]
        return Response(ConsultationDetailSerializer(_get_consultation(pk)).data)

    def patch(self, request, pk, *args, **kwargs):  # type: ignore[override]
        serializer = TransitionSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInputError(fields=flatten_errors(serializer.errors))

        extra = dict(serializer.validated_data)
        target_status = extra.pop("status")
        consultation = transition(
            pk,
            target_status,
            actor=Actor.from_request(request),
            extra_fields=extra,
        )
        return Response(ConsultationDetailSerializer(consultation).data)


class ConsultationHistoryView(APIView):
    permission_classes = [IsStaffUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, pk, *args, **kwargs):  # type: ignore[override]
        consultation = _get_consultation(pk)
        changes = consultation.status_changes.all()
        return Response(
            {
                "id": str(consultation.pk),
                "status": consultation.status,
                "history": StatusChangeSerializer(changes, many=True).data,
            }
        )


class ValidateRegistrationTokenView(APIView):
    """Check a registration token without consuming it."""

    permission_classes = [permissions.AllowAny]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, token, *args, **kwargs):  # type: ignore[override]
        try:
            consultation = verify_registration_token(token)
        except RegistrationTokenError as exc:
            return Response(
                {"valid": False, "error": exc.public_message},
                status=exc.status_code,
            )

        payload = {
            "valid": True,
            "email": consultation.email,
            "full_name": consultation.full_name,
            "expires_at": consultation.token_expires_at,
        }
        return Response(TokenValidationSerializer(payload).data)


class RegisterClientView(APIView):
    """Redeem a registration token and create the client account."""

    permission_classes = [permissions.AllowAny]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        serializer = RegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInputError(fields=flatten_errors(serializer.errors))

        redemption = redeem_registration_token(
            serializer.validated_data["token"],
            serializer.validated_data["password"],
        )
        return Response(
            RegistrationResultSerializer(redemption).data,
            status=status.HTTP_201_CREATED,
        )


class ContactSubmissionView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        submission = submit_contact_form(request.data)
        return Response(
            ContactSubmissionSerializer(submission).data,
            status=status.HTTP_201_CREATED,
        )
