"""Serializers for API payloads surfaced through DRF."""

from __future__ import annotations

from rest_framework import serializers

from apps.consultations.models import ConsultationRequest, ConsultationStatusChange


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1)
    page_size = serializers.IntegerField(min_value=1)
    total_pages = serializers.IntegerField(min_value=0)
    total_results = serializers.IntegerField(min_value=0)
    has_next = serializers.BooleanField()
    has_previous = serializers.BooleanField()


class ConsultationSummarySerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display")

    class Meta:
        model = ConsultationRequest
        fields = (
            "id",
            "full_name",
            "email",
            "status",
            "status_display",
            "package_interest",
            "payment_verified",
            "created_at",
            "updated_at",
        )


class ConsultationDetailSerializer(serializers.ModelSerializer):
    """Full staff view of a request. The raw registration token is never exposed."""

    status_display = serializers.CharField(source="get_status_display")
    registration_token_issued = serializers.BooleanField(source="has_registration_token")

    class Meta:
        model = ConsultationRequest
        exclude = ("registration_token",)


class ConsultationFiltersSerializer(serializers.Serializer):
    status = serializers.ListField(child=serializers.CharField(), source="statuses")
    date_from = serializers.DateField(allow_null=True)
    date_to = serializers.DateField(allow_null=True)
    search = serializers.CharField(allow_null=True)
    sort = serializers.CharField()


class ConsultationListSerializer(serializers.Serializer):
    results = ConsultationSummarySerializer(many=True)
    pagination = PaginationSerializer()
    applied_filters = ConsultationFiltersSerializer()


class StatusChangeSerializer(serializers.ModelSerializer):
    actor = serializers.CharField(source="actor_label")

    class Meta:
        model = ConsultationStatusChange
        fields = ("id", "from_status", "to_status", "actor", "notes", "created_at")


class ConsultationCreatedSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConsultationRequest
        fields = ("id", "status")


class TokenValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField(default=True)
    email = serializers.EmailField()
    full_name = serializers.CharField()
    expires_at = serializers.DateTimeField()


class RegistrationResultSerializer(serializers.Serializer):
    client_id = serializers.IntegerField(source="client.pk")
    email = serializers.EmailField(source="client.email")
    full_name = serializers.CharField(source="client.full_name")
    access_token = serializers.CharField()
    token_type = serializers.CharField(default="Bearer")
