from rest_framework import serializers

from .models import ContactSubmission


class ContactSubmissionSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    first_name = serializers.CharField(
        max_length=120, required=False, allow_blank=True, write_only=True
    )
    last_name = serializers.CharField(
        max_length=120, required=False, allow_blank=True, write_only=True
    )

    class Meta:
        model = ContactSubmission
        fields = (
            "id",
            "name",
            "first_name",
            "last_name",
            "email",
            "phone",
            "subject",
            "message",
            "source",
            "created_at",
        )
        read_only_fields = ("id", "created_at")

    def validate(self, attrs):
        first_name = attrs.pop("first_name", "").strip()
        last_name = attrs.pop("last_name", "").strip()
        name = (attrs.get("name") or "").strip() or f"{first_name} {last_name}".strip()
        if not name:
            raise serializers.ValidationError({"name": ["Name is required."]})
        attrs["name"] = name
        attrs["email"] = attrs["email"].strip().lower()
        return attrs
