"""Admin registrations for consultation requests."""

from django.contrib import admin

from .models import ConsultationRequest, ConsultationStatusChange, LogEntry


class ConsultationStatusChangeInline(admin.TabularInline):
    model = ConsultationStatusChange
    extra = 0
    can_delete = False
    fields = ("created_at", "from_status", "to_status", "actor_label", "notes")
    readonly_fields = fields


@admin.register(ConsultationRequest)
class ConsultationRequestAdmin(admin.ModelAdmin):
    list_display = (
        "full_name",
        "email",
        "status",
        "payment_verified",
        "token_issued",
        "token_used",
        "created_at",
    )
    list_filter = ("status", "payment_verified", "token_used", "created_at")
    search_fields = ("full_name", "email", "payment_reference")
    inlines = [ConsultationStatusChangeInline]
    # Status and payment fields only change through the transition engine.
    readonly_fields = (
        "id",
        "status",
        "status_reason",
        "payment_verified",
        "payment_verified_at",
        "payment_verified_by",
        "registration_token",
        "token_expires_at",
        "token_used",
        "token_used_at",
        "created_at",
        "updated_at",
    )

    def token_issued(self, obj):
        return obj.has_registration_token

    token_issued.boolean = True
    token_issued.short_description = "Token issued"


@admin.register(LogEntry)
class LogEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "level", "logger_name", "message")
    list_filter = ("level", "logger_name")
    search_fields = ("message",)
    readonly_fields = ("timestamp", "logger_name", "level", "message", "context")
