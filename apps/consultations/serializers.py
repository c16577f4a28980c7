"""Input validation for consultation intake and staff transitions."""

from __future__ import annotations

from rest_framework import serializers

from .models import ConsultationRequest, ConsultationStatus


class TimeSlotSerializer(serializers.Serializer):
    date = serializers.DateField(input_formats=["%Y-%m-%d"])
    time = serializers.TimeField(input_formats=["%H:%M", "%H:%M:%S"])

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return {
            "date": value["date"].isoformat(),
            "time": value["time"].strftime("%H:%M"),
        }


class ConsultationIntakeSerializer(serializers.ModelSerializer):
    """Validate a public consultation submission."""

    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    first_name = serializers.CharField(
        max_length=120, required=False, allow_blank=True, write_only=True
    )
    last_name = serializers.CharField(
        max_length=120, required=False, allow_blank=True, write_only=True
    )
    email = serializers.EmailField(max_length=254)
    message = serializers.CharField(required=False, allow_blank=True)
    preferred_slots = TimeSlotSerializer(many=True, required=False)

    class Meta:
        model = ConsultationRequest
        fields = (
            "full_name",
            "first_name",
            "last_name",
            "email",
            "phone",
            "linkedin_url",
            "role_targets",
            "location_preferences",
            "minimum_salary",
            "target_market",
            "employment_status",
            "package_interest",
            "area_of_concern",
            "consultation_window",
            "message",
            "preferred_slots",
        )

    def validate(self, attrs):
        first_name = attrs.pop("first_name", "").strip()
        last_name = attrs.pop("last_name", "").strip()
        full_name = (attrs.get("full_name") or "").strip()
        if not full_name:
            full_name = f"{first_name} {last_name}".strip()
        if not full_name:
            raise serializers.ValidationError(
                {"full_name": ["Full name is required."]}
            )
        attrs["full_name"] = full_name
        attrs["email"] = attrs["email"].strip().lower()

        message = (attrs.get("message") or "").strip()
        slots = attrs.get("preferred_slots") or []
        if not message and not slots:
            raise serializers.ValidationError(
                {
                    "message": [
                        "Provide a message or at least one preferred time slot."
                    ]
                }
            )
        attrs["message"] = message
        attrs["preferred_slots"] = slots
        return attrs

    def create(self, validated_data):
        return ConsultationRequest.objects.create(
            status=ConsultationStatus.LEAD, **validated_data
        )


class TransitionSerializer(serializers.Serializer):
    """Fields a staff member may send alongside a status change."""

    status = serializers.CharField()
    payment_method = serializers.CharField(max_length=64, required=False, allow_blank=True)
    payment_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    payment_reference = serializers.CharField(
        max_length=255, required=False, allow_blank=True
    )
    package_tier = serializers.CharField(max_length=64, required=False, allow_blank=True)
    selected_slot_index = serializers.IntegerField(
        min_value=0, required=False, allow_null=True
    )
    meeting_link = serializers.URLField(max_length=500, required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True)
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class RegistrationSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)
    confirm_password = serializers.CharField(trim_whitespace=False, required=False)

    def validate(self, attrs):
        confirm = attrs.get("confirm_password")
        if confirm is not None and confirm != attrs["password"]:
            raise serializers.ValidationError(
                {"confirm_password": ["Passwords do not match."]}
            )
        return attrs
